"""
Withdrawal Support - BPM Task Aggregator

Counts total/open/closed tasks of one type within a case's task list.
"""

import logging
from typing import Iterable, Optional

from .models import CaseTask, FollowUpSummary

logger = logging.getLogger(__name__)

FOLLOW_UP_TASK_TYPE = "BPM Follow-Up"
TASK_COMPLETE_STATUS = "Complete"


def _matches(value: Optional[str], expected: str) -> bool:
    return value is not None and value.lower() == expected.lower()


class BpmTaskAggregator:
    """Task-type counting over document case system tasks."""

    @staticmethod
    def aggregate(tasks: Optional[Iterable[CaseTask]], task_type: str = FOLLOW_UP_TASK_TYPE) -> FollowUpSummary:
        """
        Count tasks whose type equals task_type (case-insensitive).

        closed = tasks with status "Complete", open = total - closed.
        A missing or empty task list yields all zeros.
        """
        if not tasks:
            return FollowUpSummary(0, 0, 0)

        matching = [t for t in tasks if t is not None and _matches(t.task_type, task_type)]
        total = len(matching)
        closed = sum(1 for t in matching if _matches(t.status, TASK_COMPLETE_STATUS))
        summary = FollowUpSummary(total=total, open=total - closed, closed=closed)

        logger.debug("%s tasks - total: %d, open: %d, closed: %d", task_type, total, summary.open, closed)
        return summary

    @classmethod
    def all_complete(cls, tasks: Optional[Iterable[CaseTask]], task_type: str = FOLLOW_UP_TASK_TYPE) -> bool:
        """True only when at least one task of task_type exists and none is open."""
        return cls.aggregate(tasks, task_type).all_closed
