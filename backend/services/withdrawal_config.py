"""
Withdrawal Support - Service Configuration

All settings are read from environment variables (optionally from a .env file).

Workflow engine (Camunda REST):
- CAMUNDA_BASE_URL: REST root, e.g. "http://camunda:8080/engine-rest"
- DATA_ENTRY_PROCESS_KEY / DATA_ENTRY_WAITING_ACTIVITY_ID: where waiting cases sit
- EMAIL_PROCESS_KEY / EMAIL_WAITING_ACTIVITY_ID: where email resolution cases sit

Document case management (OnBase Integration Manager):
- ONBASE_BASE_URL: REST root
- ONBASE_AUTHORIZATION: full Authorization header value (Basic auth)

Case-instance store (MongoDB):
- MONGO_URL, DB_NAME, CASE_INSTANCE_COLLECTION

Disposition rules:
- DAYS_THRESHOLD: business days an IN_PROGRESS case instance may sit untouched
- EXCLUDE_US_HOLIDAYS: also skip the fixed US holiday calendar when counting days
"""

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("true", "1", "yes")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# =============================================================================
# WORKFLOW ENGINE
# =============================================================================

CAMUNDA_BASE_URL = os.environ.get("CAMUNDA_BASE_URL", "http://localhost:8080/engine-rest")
DATA_ENTRY_PROCESS_KEY = os.environ.get("DATA_ENTRY_PROCESS_KEY", "dataentry")
DATA_ENTRY_WAITING_ACTIVITY_ID = os.environ.get("DATA_ENTRY_WAITING_ACTIVITY_ID", "Event_0a7e4e6")
EMAIL_PROCESS_KEY = os.environ.get("EMAIL_PROCESS_KEY", "email_resolution_process")
EMAIL_WAITING_ACTIVITY_ID = os.environ.get("EMAIL_WAITING_ACTIVITY_ID", "Activity_14ejxxr")


# =============================================================================
# DOCUMENT CASE MANAGEMENT
# =============================================================================

ONBASE_BASE_URL = os.environ.get("ONBASE_BASE_URL", "http://localhost:8090/api")
ONBASE_AUTHORIZATION = os.environ.get("ONBASE_AUTHORIZATION", "")


# =============================================================================
# CASE-INSTANCE STORE
# =============================================================================

MONGO_URL = os.environ.get("MONGO_URL", "mongodb://localhost:27017")
DB_NAME = os.environ.get("DB_NAME", "withdrawal_support")
CASE_INSTANCE_COLLECTION = os.environ.get("CASE_INSTANCE_COLLECTION", "case_instance")


# =============================================================================
# DISPOSITION RULES
# =============================================================================

DAYS_THRESHOLD = _env_int("DAYS_THRESHOLD", 2)
EXCLUDE_US_HOLIDAYS = _env_bool("EXCLUDE_US_HOLIDAYS")


# =============================================================================
# HTTP / APP
# =============================================================================

HTTP_REQUEST_TIMEOUT = float(_env_int("HTTP_REQUEST_TIMEOUT", 30))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def get_cors_origins() -> List[str]:
    """Comma separated CORS_ORIGINS, "*" when unset."""
    raw = os.environ.get("CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]
