"""
Withdrawal Support - Disposition Batch Runner

Runs the disposition orchestrator over a batch of waiting cases:
1. Lists the executions waiting at the data-entry activity (or takes a given list)
2. Assembles each case's context from the workflow engine and the document case system
3. Disposes each case, collecting document numbers into action buckets
4. Summarizes totals and bucket sizes

Cases are processed one after another. A failure on one case is recorded as a
manual-review detail and never stops the batch; a failure to list the waiting
cases yields an empty result carrying the error message.
"""

import logging
from typing import Iterable, List, Optional

from services.withdrawal_config import DATA_ENTRY_PROCESS_KEY, DATA_ENTRY_WAITING_ACTIVITY_ID

from .collaborators import DocumentCaseClient, WorkflowEngineClient
from .models import (
    ActionBucket, BatchResult, CaseCategory, CaseContext, DispositionResult, WaitingCase
)
from .orchestrator import DispositionOrchestrator, REASON_EXCEPTION

logger = logging.getLogger(__name__)

CLIENT_CODE_VARIABLE = "clientCode"
CASE_ID_VARIABLE = "onbaseCaseId"
DOCUMENT_NUMBER_VARIABLE = "documentNumber"
REASON_NO_PROCESS_INSTANCE = "No process instance found"


class BatchRunner:
    """
    Batch disposition of waiting withdrawal cases.

    Usage:
        runner = BatchRunner(workflow_client, case_client, orchestrator)
        result = await runner.run()
        print(result.message)
    """

    def __init__(
        self,
        workflow_client: WorkflowEngineClient,
        case_client: DocumentCaseClient,
        orchestrator: DispositionOrchestrator,
        process_key: str = DATA_ENTRY_PROCESS_KEY,
        activity_id: str = DATA_ENTRY_WAITING_ACTIVITY_ID
    ):
        self.workflow_client = workflow_client
        self.case_client = case_client
        self.orchestrator = orchestrator
        self.process_key = process_key
        self.activity_id = activity_id

    async def build_context(self, process_instance_id: str, document_number: Optional[str] = None) -> CaseContext:
        """Collect client code, case id, status, tasks and document number for one case."""
        client_code = await self.workflow_client.get_variable(process_instance_id, CLIENT_CODE_VARIABLE)
        case_id = await self.workflow_client.get_variable(process_instance_id, CASE_ID_VARIABLE)
        logger.info(
            "Case details for process instance %s - case id: %s, client code: %s",
            process_instance_id, case_id, client_code
        )

        details = await self.case_client.get_case_details(client_code, case_id)
        if (details is None or not details.document_number) and not document_number:
            document_number = await self._lookup_document_number(process_instance_id)

        if details is None:
            logger.warning("No case details returned for case %s (client %s)", case_id, client_code)
            return CaseContext(
                case_reference=process_instance_id,
                case_id=case_id,
                client_code=client_code,
                document_id=document_number,
                status=None,
                tasks=None,
            )

        return CaseContext(
            case_reference=process_instance_id,
            case_id=case_id,
            client_code=client_code,
            document_id=details.document_number or document_number,
            status=details.status,
            tasks=details.tasks,
        )

    async def _lookup_document_number(self, process_instance_id: str) -> Optional[str]:
        try:
            return await self.workflow_client.get_variable(process_instance_id, DOCUMENT_NUMBER_VARIABLE)
        except Exception as e:
            logger.error("Could not read documentNumber for %s: %s", process_instance_id, e)
            return None

    async def _process_case(
        self,
        process_instance_id: str,
        result: BatchResult,
        document_number: Optional[str] = None
    ) -> DispositionResult:
        logger.info("Processing case with process instance ID: %s", process_instance_id)
        try:
            context = await self.build_context(process_instance_id, document_number)
        except Exception as e:
            logger.error("Error assembling case %s: %s", process_instance_id, e, exc_info=True)
            if document_number is None:
                document_number = await self._lookup_document_number(process_instance_id)
            detail = DispositionResult(case_reference=process_instance_id, document_id=document_number)
            detail.flag_manual_review(REASON_EXCEPTION, f"Error: {e} Requires manual review")
            result.buckets.add(ActionBucket.TO_MANUAL_REVIEW, document_number)
            return detail

        return await self.orchestrator.dispose_one(context, result.buckets)

    def _finish(self, result: BatchResult) -> BatchResult:
        result.message = result.build_summary()
        logger.info("Processing completed successfully: %s", result.message)
        for bucket in ActionBucket:
            logger.info("%s: %s", bucket.value, result.buckets.get(bucket))
        return result

    async def run(self, waiting_cases: Optional[Iterable[WaitingCase]] = None) -> BatchResult:
        """
        Dispose every waiting case.

        When waiting_cases is None the list is fetched from the workflow engine.
        """
        logger.info("Starting data entry waiting cases processing")
        result = BatchResult()

        if waiting_cases is None:
            try:
                waiting_cases = await self.workflow_client.list_waiting_cases(self.process_key, self.activity_id)
            except Exception as e:
                logger.error("Error fetching waiting cases", exc_info=True)
                result.message = f"Processing failed: {e}"
                return result

        cases: List[WaitingCase] = list(waiting_cases)
        result.total_cases = len(cases)
        logger.info("Found %d waiting cases to process", len(cases))

        for case in cases:
            result.record(await self._process_case(case.process_instance_id, result))

        return self._finish(result)

    async def run_for_documents(self, document_numbers: Iterable[str]) -> BatchResult:
        """
        Dispose the cases owning the given document numbers.

        Raises ValueError for an empty or blank request.
        """
        unique: List[str] = []
        for number in document_numbers or []:
            number = (number or "").strip()
            if number and number not in unique:
                unique.append(number)
        if not unique:
            raise ValueError("No document numbers provided")

        logger.info("Starting disposition for %d document number(s)", len(unique))
        result = BatchResult(total_cases=len(unique))

        for document_number in unique:
            try:
                instance_ids, _ = await self.workflow_client.resolve_process_instance_ids(document_number)
            except Exception as e:
                logger.error("Error resolving process instance for %s: %s", document_number, e)
                detail = DispositionResult(case_reference=document_number, document_id=document_number)
                detail.flag_manual_review(REASON_EXCEPTION, f"Error: {e} Requires manual review")
                result.buckets.add(ActionBucket.TO_MANUAL_REVIEW, document_number)
                result.record(detail)
                continue

            if not instance_ids:
                logger.warning("No process instance found for document: %s", document_number)
                detail = DispositionResult(
                    case_reference=document_number,
                    document_id=document_number,
                    category=CaseCategory.UNKNOWN,
                )
                detail.flag_manual_review(REASON_NO_PROCESS_INSTANCE, REASON_NO_PROCESS_INSTANCE)
                result.buckets.add(ActionBucket.TO_MANUAL_REVIEW, document_number)
                result.record(detail)
                continue

            result.record(await self._process_case(instance_ids[0], result, document_number))

        return self._finish(result)
