"""
Withdrawal Support - Email Resolution Waiting Case Scan

Sorts cases waiting in the email resolution process into action buckets from
the history of their document's process instances:
- the latest instance is a finished letter resolution -> mark complete + cancel
- the withdrawal case has no open BPM Follow-Up     -> cancel
- anything else, including lookup failures          -> manual review

A case whose document number cannot be read counts as failed.
"""

import logging
from enum import Enum
from typing import Iterable, List, Optional

from services.withdrawal_config import EMAIL_PROCESS_KEY, EMAIL_WAITING_ACTIVITY_ID

from .collaborators import DocumentCaseClient, WorkflowEngineClient
from .models import ActionBucket, BatchResult, DispositionResult, DispositionStatus, WaitingCase
from .task_aggregator import BpmTaskAggregator, FOLLOW_UP_TASK_TYPE

logger = logging.getLogger(__name__)

LETTER_RESOLUTION_KEY = "letter_resolution_process"
WITHDRAWAL_KEY = "withdrawal"
REASON_EMAIL_MANUAL_REVIEW = "Email category requires manual review"


class EmailCategory(str, Enum):
    COMPLETE = "COMPLETE"
    CANCEL = "CANCEL"
    MANUAL_REVIEW = "MANUAL_REVIEW"


class EmailScanner:
    """
    Disposition of cases waiting at the email resolution activity.

    Usage:
        scanner = EmailScanner(workflow_client, case_client)
        result = await scanner.run()
    """

    def __init__(
        self,
        workflow_client: WorkflowEngineClient,
        case_client: DocumentCaseClient,
        process_key: str = EMAIL_PROCESS_KEY,
        activity_id: str = EMAIL_WAITING_ACTIVITY_ID
    ):
        self.workflow_client = workflow_client
        self.case_client = case_client
        self.process_key = process_key
        self.activity_id = activity_id

    async def resolve_email_category(self, document_number: Optional[str]) -> EmailCategory:
        """Category of one document from its process instance history. Never raises."""
        try:
            instances = await self.workflow_client.find_process_instances_by_business_key(document_number)

            if any(i.process_definition_key == LETTER_RESOLUTION_KEY and i.is_active for i in instances):
                logger.info("Document %s still has an active letter resolution", document_number)
                return EmailCategory.MANUAL_REVIEW

            started = [i for i in instances if i.start_time]
            if started:
                latest = max(started, key=lambda i: i.start_time)
                if (latest.process_definition_key or "").lower() == LETTER_RESOLUTION_KEY:
                    return EmailCategory.COMPLETE

            withdrawal_ids = [i.id for i in instances if i.process_definition_key == WITHDRAWAL_KEY and i.id]
            if not withdrawal_ids:
                logger.warning("No withdrawal process instance for document %s", document_number)
                return EmailCategory.MANUAL_REVIEW

            case_id = await self.workflow_client.get_variable(withdrawal_ids[0], "onbaseCaseId")
            client_code = await self.workflow_client.get_variable(withdrawal_ids[0], "clientCode")
            details = await self.case_client.get_case_details(client_code, case_id)
            if details is None or details.tasks is None:
                return EmailCategory.MANUAL_REVIEW

            # No follow-up tasks at all also counts as nothing open
            if BpmTaskAggregator.aggregate(details.tasks, FOLLOW_UP_TASK_TYPE).open == 0:
                return EmailCategory.CANCEL

        except Exception as e:
            logger.error("Error resolving email category for %s: %s", document_number, e)

        return EmailCategory.MANUAL_REVIEW

    async def _process_case(self, case: WaitingCase, result: BatchResult) -> DispositionResult:
        try:
            document_number = await self.workflow_client.get_variable(case.process_instance_id, "documentNumber")
        except Exception as e:
            logger.error("Error processing email case %s: %s", case.process_instance_id, e)
            return DispositionResult(
                case_reference=case.process_instance_id,
                status=DispositionStatus.FAILED,
                message=f"Error: {e}",
            )

        category = await self.resolve_email_category(document_number)
        logger.info("Processing document: %s with category: %s", document_number, category.value)

        detail = DispositionResult(
            case_reference=case.process_instance_id,
            document_id=document_number,
            action=category.value,
        )
        if category == EmailCategory.COMPLETE:
            result.buckets.add(ActionBucket.TO_MARK_COMPLETE, document_number)
            result.buckets.add(ActionBucket.TO_CANCEL, document_number)
            detail.status = DispositionStatus.COMPLETED
            detail.message = "Letter resolution finished - Will mark complete and cancel"
        elif category == EmailCategory.CANCEL:
            result.buckets.add(ActionBucket.TO_CANCEL, document_number)
            detail.status = DispositionStatus.COMPLETED
            detail.message = "No open BPM Follow-Up - Will cancel"
        else:
            result.buckets.add(ActionBucket.TO_MANUAL_REVIEW, document_number)
            detail.flag_manual_review(REASON_EMAIL_MANUAL_REVIEW, REASON_EMAIL_MANUAL_REVIEW)
        return detail

    async def run(self, waiting_cases: Optional[Iterable[WaitingCase]] = None) -> BatchResult:
        logger.info("Starting email waiting cases processing")
        result = BatchResult()

        if waiting_cases is None:
            try:
                waiting_cases = await self.workflow_client.list_waiting_cases(self.process_key, self.activity_id)
            except Exception as e:
                logger.error("Error fetching email waiting cases", exc_info=True)
                result.message = f"Processing failed: {e}"
                return result

        cases: List[WaitingCase] = list(waiting_cases)
        result.total_cases = len(cases)
        logger.info("Found %d email waiting cases to process", len(cases))

        for case in cases:
            result.record(await self._process_case(case, result))

        result.message = (
            f"Email Processing completed: {result.total_cases} total cases. "
            f"To DV POST COMPLETE: {result.buckets.size(ActionBucket.TO_MARK_COMPLETE)}, "
            f"To Cancel: {result.buckets.size(ActionBucket.TO_CANCEL)}, "
            f"Manual Review: {result.buckets.size(ActionBucket.TO_MANUAL_REVIEW)}"
        )
        logger.info("Email processing completed: %s", result.message)
        return result
