"""
Withdrawal Support - MRT Waiting Case Scan

Finds cases parked at manual-review / approval events whose work is already
done in the document case system: every task other than BPM Follow-Up is
"Complete". Those documents can have their waiting event fired downstream.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .collaborators import DocumentCaseClient, WorkflowEngineClient
from .models import CaseTask
from .task_aggregator import FOLLOW_UP_TASK_TYPE, TASK_COMPLETE_STATUS

logger = logging.getLogger(__name__)

# (process definition key, waiting activity id, scenario name)
MRT_SCENARIOS: Tuple[Tuple[str, str, str], ...] = (
    ("Withdrawal_GIACT_Validation_MRT", "Event_mrt_response_received", "Call Out Manual Review (GIACT)"),
    ("Withdrawal_GIACT_Validation_MRT", "Event_approval", "External PI Exception Approval"),
    ("Withdrawal_Approval", "Event_approval", "PI Management Approval"),
    ("Withdrawal_MRT", "Event_mrt_response_received", "MRT Call Out Manual Review"),
)


def all_non_follow_up_tasks_complete(tasks: Optional[Iterable[CaseTask]]) -> bool:
    """True only if there is at least one non follow-up task and all of them are Complete."""
    if not tasks:
        return False
    others = [
        t for t in tasks
        if t is not None and (t.task_type or "").lower() != FOLLOW_UP_TASK_TYPE.lower()
    ]
    if not others:
        return False
    return all((t.status or "").lower() == TASK_COMPLETE_STATUS.lower() for t in others)


@dataclass
class MrtScanResult:
    """Outcome of one MRT scan."""
    total_cases_processed: int = 0
    documents: List[str] = field(default_factory=list)
    message: Optional[str] = None

    def add_unique(self, document_numbers: Iterable[str]) -> None:
        for number in document_numbers:
            if number and number not in self.documents:
                self.documents.append(number)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_cases_processed": self.total_cases_processed,
            "cases_with_complete_tasks_and_event": len(self.documents),
            "cases_with_complete_tasks_and_event_list": list(self.documents),
            "message": self.message,
        }


class MrtScanner:
    """Scans the MRT / approval waiting events for cases whose tasks are all done."""

    def __init__(
        self,
        workflow_client: WorkflowEngineClient,
        case_client: DocumentCaseClient,
        scenarios: Tuple[Tuple[str, str, str], ...] = MRT_SCENARIOS
    ):
        self.workflow_client = workflow_client
        self.case_client = case_client
        self.scenarios = scenarios

    async def scan_scenario(self, process_key: str, activity_id: str, scenario: str) -> List[str]:
        found: List[str] = []
        try:
            waiting = await self.workflow_client.list_waiting_cases(process_key, activity_id)
        except Exception as e:
            logger.error("Error fetching waiting cases for %s / %s: %s", process_key, activity_id, e)
            return found

        logger.info("Found %d waiting cases for %s / %s (%s)", len(waiting), process_key, activity_id, scenario)

        for case in waiting:
            try:
                client_code = await self.workflow_client.get_variable(case.process_instance_id, "clientCode")
                case_id = await self.workflow_client.get_variable(case.process_instance_id, "onbaseCaseId")
                details = await self.case_client.get_case_details(client_code, case_id)
                if details is None or not all_non_follow_up_tasks_complete(details.tasks):
                    continue
                number = details.document_number
                if number and number not in found:
                    found.append(number)
                    logger.info("Added document %s - all non-BPM Follow-Up tasks complete (%s)", number, scenario)
            except Exception as e:
                logger.error("Error processing case %s: %s", case.process_instance_id, e)

        logger.info("Scenario '%s' completed with %d documents", scenario, len(found))
        return found

    async def run(self) -> MrtScanResult:
        logger.info("Starting MRT waiting cases processing")
        result = MrtScanResult()

        for process_key, activity_id, scenario in self.scenarios:
            documents = await self.scan_scenario(process_key, activity_id, scenario)
            result.total_cases_processed += len(documents)
            result.add_unique(documents)

        result.message = (
            f"MRT Processing completed: {result.total_cases_processed} total cases processed, "
            f"{len(result.documents)} unique cases with complete tasks and event received"
        )
        logger.info(result.message)
        return result
