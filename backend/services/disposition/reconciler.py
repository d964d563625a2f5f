"""
Withdrawal Support - Case Instance Reconciler

Looks a document up in the case-instance store and reports whether its
follow-up case instance is still IN_PROGRESS, whether it has gone stale, and
what state its "Data entry" task is in.

The store is queried on every call; nothing is cached between calls because
staleness depends on "now".
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from services.business_days import is_older_than_business_days

from .collaborators import CaseInstanceStore
from .models import CaseInstanceAnalysis, CaseInstanceRecord
from .task_aggregator import FOLLOW_UP_TASK_TYPE

logger = logging.getLogger(__name__)

DATA_ENTRY_TASK_NAME = "Data entry"
DATA_ENTRY_COMPLETE_STATUS = "completed"
IN_PROGRESS_STATUSES = frozenset({"in_progress", "in progress", "inprogress"})


def _same(value: Optional[str], expected: Optional[str]) -> bool:
    return value is not None and expected is not None and value.lower() == expected.lower()


def is_in_progress_status(status: Optional[str]) -> bool:
    return status is not None and status.lower() in IN_PROGRESS_STATUSES


class CaseInstanceReconciler:
    """Cross-checks a document against the case-instance store."""

    def __init__(self, store: CaseInstanceStore, holidays: Optional[Iterable[date]] = None):
        self.store = store
        self.holidays = holidays

    @staticmethod
    def select_follow_up_record(
        records: List[CaseInstanceRecord],
        correlation_task_id: Optional[str]
    ) -> Optional[CaseInstanceRecord]:
        """
        First record holding a BPM Follow-Up task whose id equals correlation_task_id.

        Records without such a task are ignored even when they are the only match.
        """
        if not correlation_task_id:
            return None
        for record in records:
            for task in record.tasks or ():
                if task is None:
                    continue
                if _same(task.task_type, FOLLOW_UP_TASK_TYPE) and _same(task.id, correlation_task_id):
                    return record
        return None

    async def analyze(
        self,
        document_id: str,
        correlation_task_id: Optional[str],
        stale_days_threshold: int,
        today: Optional[date] = None
    ) -> CaseInstanceAnalysis:
        logger.info("Analyzing case_instance for document number: %s", document_id)
        if not document_id:
            logger.warning("No document number to look up in case-instance store - treating as not found")
            return CaseInstanceAnalysis.not_found()

        records = await self.store.find_by_document_identifier(document_id)
        if not records:
            logger.info("Document %s not found in case-instance store - treating as not started", document_id)
            return CaseInstanceAnalysis.not_found()

        record = self.select_follow_up_record(records, correlation_task_id)
        if record is None:
            logger.info(
                "No case instance for document %s correlates with follow-up task %s (%d candidate(s))",
                document_id, correlation_task_id, len(records)
            )
            return CaseInstanceAnalysis.not_found()

        analysis = CaseInstanceAnalysis(
            found=True,
            case_status=record.case_status,
            status_field=record.status,
            in_progress=is_in_progress_status(
                record.case_status if record.case_status is not None else record.status
            ),
            stale=False,
            data_entry_present=True,
            data_entry_complete=False,
            last_updated=record.updated_at,
            created_at=record.created_at,
            result_count=1,
        )

        if analysis.in_progress:
            data_entry_tasks = [
                t for t in (record.tasks or ())
                if t is not None and _same(t.task_name, DATA_ENTRY_TASK_NAME)
            ]
            analysis.data_entry_present = bool(data_entry_tasks)
            # Only meaningful when data_entry_present; vacuously True otherwise
            analysis.data_entry_complete = all(
                _same(t.status, DATA_ENTRY_COMPLETE_STATUS) for t in data_entry_tasks
            )
            if analysis.last_updated is None:
                analysis.last_updated = record.created_at
            analysis.stale = is_older_than_business_days(
                analysis.last_updated, stale_days_threshold, today=today, holidays=self.holidays
            )

        logger.info(
            "Case analysis - caseStatus: %s, status: %s, inProgress: %s, stale: %s, "
            "dataEntryPresent: %s, dataEntryComplete: %s, lastUpdated: %s",
            analysis.case_status, analysis.status_field, analysis.in_progress, analysis.stale,
            analysis.data_entry_present, analysis.data_entry_complete, analysis.last_updated
        )
        return analysis
