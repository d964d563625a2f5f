"""
Withdrawal Support - Routes Package

API routers for the withdrawal support service.
"""

from .cases import router as cases_router, set_dependencies as set_cases_deps

__all__ = [
    'cases_router', 'set_cases_deps',
]
