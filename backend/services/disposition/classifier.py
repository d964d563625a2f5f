"""
Withdrawal Support - Case Status Classifier

Maps a document case status plus BPM Follow-Up completion to a CaseCategory.

Rules, first match wins:
1. every BPM Follow-Up task complete           -> FOLLOW_UP_COMPLETE
2. status "Post Complete"                      -> POST_COMPLETE_INCOMPLETE_FOLLOW_UP
3. status "Pend" / "Pending" / "New"           -> CHECK_SECONDARY_SOURCE
4. anything else                               -> UNKNOWN

Follow-up completion is checked before status so a case with closed follow-ups
never goes to the case-instance store. Stateless: identical inputs always give
the same category.
"""

import logging
from typing import Iterable, Optional

from .models import CaseCategory, CaseTask
from .task_aggregator import BpmTaskAggregator, FOLLOW_UP_TASK_TYPE

logger = logging.getLogger(__name__)

POST_COMPLETE_STATUS = "post complete"
SECONDARY_SOURCE_STATUSES = frozenset({"pend", "pending", "new"})


class StatusClassifier:
    """Deterministic case categorization."""

    @staticmethod
    def is_pending_or_new(status: Optional[str]) -> bool:
        return status is not None and status.lower() in SECONDARY_SOURCE_STATUSES

    @classmethod
    def classify(cls, status: Optional[str], tasks: Optional[Iterable[CaseTask]]) -> CaseCategory:
        if tasks is None:
            logger.warning("Case tasks are missing, returning UNKNOWN category")
            return CaseCategory.UNKNOWN

        tasks = list(tasks)
        follow_up_complete = BpmTaskAggregator.all_complete(tasks, FOLLOW_UP_TASK_TYPE)
        logger.info("Case categorization - Status: %s, All BPM Follow-Up Complete: %s", status, follow_up_complete)

        if follow_up_complete:
            return CaseCategory.FOLLOW_UP_COMPLETE

        if status is not None and status.lower() == POST_COMPLETE_STATUS:
            return CaseCategory.POST_COMPLETE_INCOMPLETE_FOLLOW_UP

        if cls.is_pending_or_new(status):
            return CaseCategory.CHECK_SECONDARY_SOURCE

        logger.info("No specific category matched for status %s", status)
        return CaseCategory.UNKNOWN
