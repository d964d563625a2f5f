"""
Withdrawal Support - Disposition Orchestrator

Drives one case through classification and, when the document case status is
ambiguous, reconciliation against the case-instance store. The decision is
written to a DispositionResult and the document number is appended to the
matching action buckets.

Category handling:
- FOLLOW_UP_COMPLETE                 -> completed, cancel
- POST_COMPLETE_INCOMPLETE_FOLLOW_UP -> completed, cancel + mark complete
- CHECK_SECONDARY_SOURCE             -> depends on the case-instance analysis
- anything else                      -> manual review

dispose_one never raises; a failure becomes a manual-review result.
"""

import logging
from datetime import date
from typing import Callable, Optional

from services.withdrawal_config import DAYS_THRESHOLD

from .classifier import StatusClassifier
from .collaborators import WorkflowEngineClient
from .models import (
    ActionBucket, ActionBuckets, CaseCategory, CaseContext, CaseInstanceAnalysis,
    DispositionResult, DispositionStatus, describe_category
)
from .reconciler import CaseInstanceReconciler
from .task_aggregator import BpmTaskAggregator, FOLLOW_UP_TASK_TYPE

logger = logging.getLogger(__name__)

CORRELATION_TASK_VARIABLE = "dataEntryOnBaseTaskID"
STORE_STATUS_COMPLETE = "complete"
STORE_STATUS_EXCEPTION = "exception"

REASON_DATA_ENTRY_MISSING = "Data Entry Task not present"
REASON_DATA_ENTRY_COMPLETE = "Data Entry Task complete in case instance store - retrigger event"
REASON_UNKNOWN_CATEGORY = "Unknown category"
REASON_EXCEPTION = "Exception"


class DispositionOrchestrator:
    """
    Decides the disposition of one waiting case.

    Usage:
        orchestrator = DispositionOrchestrator(reconciler, workflow_client)
        buckets = ActionBuckets()
        result = await orchestrator.dispose_one(context, buckets)
    """

    def __init__(
        self,
        reconciler: CaseInstanceReconciler,
        workflow_client: Optional[WorkflowEngineClient] = None,
        stale_days_threshold: int = DAYS_THRESHOLD,
        today: Optional[Callable[[], date]] = None
    ):
        self.reconciler = reconciler
        self.workflow_client = workflow_client
        self.stale_days_threshold = stale_days_threshold
        self._today = today

    def _add(self, buckets: ActionBuckets, bucket: ActionBucket, document_id: Optional[str], why: str) -> None:
        if buckets.add(bucket, document_id):
            logger.info("Added document %s to %s (%s)", document_id, bucket.value, why)

    async def _correlation_task_id(self, context: CaseContext) -> Optional[str]:
        if self.workflow_client is None:
            return None
        return await self.workflow_client.get_variable(context.case_reference, CORRELATION_TASK_VARIABLE)

    async def dispose_one(
        self,
        context: CaseContext,
        buckets: ActionBuckets,
        stale_days_threshold: Optional[int] = None
    ) -> DispositionResult:
        threshold = self.stale_days_threshold if stale_days_threshold is None else stale_days_threshold
        result = DispositionResult(
            case_reference=context.case_reference,
            case_id=context.case_id,
            client_code=context.client_code,
            document_id=context.document_id,
            onbase_status=context.status,
        )

        try:
            summary = BpmTaskAggregator.aggregate(context.tasks, FOLLOW_UP_TASK_TYPE)
            result.follow_up_status = summary.status_text
            result.follow_up_total = summary.total
            result.follow_up_open = summary.open

            category = StatusClassifier.classify(context.status, context.tasks)
            result.category = category
            result.action = category.value
            description = describe_category(category)
            document_id = context.document_id

            if category == CaseCategory.FOLLOW_UP_COMPLETE:
                logger.info("Case %s - all BPM Follow-Up complete, marking for cancellation", context.case_id)
                result.status = DispositionStatus.COMPLETED
                result.message = f"{description} - Will cancel"
                self._add(buckets, ActionBucket.TO_CANCEL, document_id, category.value)

            elif category == CaseCategory.POST_COMPLETE_INCOMPLETE_FOLLOW_UP:
                logger.info("Case %s - Post Complete with open BPM Follow-Up, marking for cancellation", context.case_id)
                result.status = DispositionStatus.COMPLETED
                result.message = f"{description} - Will cancel"
                self._add(buckets, ActionBucket.TO_CANCEL, document_id, category.value)
                self._add(buckets, ActionBucket.TO_MARK_COMPLETE, document_id, category.value)

            elif category == CaseCategory.CHECK_SECONDARY_SOURCE:
                correlation_task_id = await self._correlation_task_id(context)
                today = self._today() if self._today else None
                analysis = await self.reconciler.analyze(document_id, correlation_task_id, threshold, today=today)
                self._apply_analysis(result, analysis, buckets, description, threshold)

            else:
                logger.warning("Case %s - %s, marking for manual review", context.case_id, category.value)
                result.flag_manual_review(REASON_UNKNOWN_CATEGORY, description)
                self._add(buckets, ActionBucket.TO_MANUAL_REVIEW, document_id, category.value)

        except Exception as e:
            logger.exception("Error disposing case %s", context.case_reference)
            result.flag_manual_review(REASON_EXCEPTION, f"Error: {e} Requires manual review")
            self._add(buckets, ActionBucket.TO_MANUAL_REVIEW, context.document_id, REASON_EXCEPTION)

        return result

    def _apply_analysis(
        self,
        result: DispositionResult,
        analysis: CaseInstanceAnalysis,
        buckets: ActionBuckets,
        description: str,
        threshold: int
    ) -> None:
        document_id = result.document_id

        if not analysis.data_entry_present:
            logger.warning("Document %s - Data Entry Task not present, flagging for manual review", document_id)
            result.flag_manual_review(REASON_DATA_ENTRY_MISSING, f"{description} - {REASON_DATA_ENTRY_MISSING}")
            self._add(buckets, ActionBucket.TO_MANUAL_REVIEW, document_id, "data entry task not present")
            return

        if analysis.data_entry_complete:
            logger.info("Document %s - Data Entry Task complete in case instance store, retriggering", document_id)
            result.flag_manual_review(
                REASON_DATA_ENTRY_COMPLETE, f"{description} - Data Entry Task complete - Will retrigger event"
            )
            self._add(buckets, ActionBucket.TO_RETRIGGER_EVENT, document_id, "data entry task complete")
            return

        store_status = analysis.resolved_status
        if not analysis.in_progress:
            normalized = (store_status or "").lower()
            if normalized == STORE_STATUS_COMPLETE:
                result.status = DispositionStatus.COMPLETED
                result.message = f"{description} - caseStatus: {store_status} (is Complete) - Will cancel"
                self._add(buckets, ActionBucket.TO_CANCEL, document_id, "case instance complete")
                self._add(buckets, ActionBucket.TO_RETURN_TO_QUEUE, document_id, "case instance complete")
            elif normalized == STORE_STATUS_EXCEPTION:
                result.status = DispositionStatus.EXCEPTION
                result.message = f"{description} - caseStatus: {store_status} (is exception) - Will cancel"
                self._add(buckets, ActionBucket.TO_CANCEL, document_id, "case instance in exception")
                self._add(buckets, ActionBucket.TO_RETURN_TO_QUEUE, document_id, "case instance in exception")
            else:
                # Left unresolved; picked up again on the next run
                logger.info("Document %s - caseStatus %s needs no action this run", document_id, store_status)
                result.status = DispositionStatus.NO_ACTION_REQUIRED
                result.message = f"{description} - caseStatus: {store_status} - No action this run"
            return

        if analysis.stale:
            reason = f"IN_PROGRESS for more than {threshold} business days"
            logger.warning("Document %s is IN_PROGRESS but stale (>%d business days)", document_id, threshold)
            result.flag_manual_review(
                reason, f"{description} - IN_PROGRESS but stale (>{threshold} days) - Manual review required"
            )
            self._add(buckets, ActionBucket.TO_MANUAL_REVIEW, document_id, "stale IN_PROGRESS")
            return

        logger.info("Document %s is IN_PROGRESS and recent, continue monitoring", document_id)
        result.status = DispositionStatus.IN_PROGRESS
        result.message = f"{description} - IN_PROGRESS in case instance store - Continue monitoring"
