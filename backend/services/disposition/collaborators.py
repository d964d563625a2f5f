"""
Withdrawal Support - Disposition Collaborators

Abstract interfaces for the three external systems the disposition engine
reads from, plus in-memory implementations for tests and dry runs.

- WorkflowEngineClient: waiting executions, process variables, process instances
- DocumentCaseClient: case status and tasks, queue moves
- CaseInstanceStore: task-level progress records keyed by document identifier

The HTTP/Mongo implementations live in services/camunda_client.py,
services/onbase_client.py and services/case_instance_store.py.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import (
    CaseDetails, CaseInstanceRecord, ProcessInstance, WaitingCase
)

logger = logging.getLogger(__name__)

OCR_PROCESSING_KEY = "ocr_processing"
DATA_ENTRY_KEY = "dataentry"


# =============================================================================
# EXCEPTIONS
# =============================================================================

class CollaboratorError(Exception):
    """Base exception for failures talking to an external system."""
    def __init__(self, message: str, status_code: int = None, details: Dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class WorkflowEngineError(CollaboratorError):
    """Raised when the workflow engine call fails."""
    pass


class DocumentCaseError(CollaboratorError):
    """Raised when the document case system call fails."""
    pass


class CaseInstanceStoreError(CollaboratorError):
    """Raised when the case-instance store query fails."""
    pass


# =============================================================================
# INTERFACES
# =============================================================================

class WorkflowEngineClient(ABC):
    """Read access to the workflow engine."""

    @abstractmethod
    async def list_waiting_cases(self, process_key: str, activity_id: str) -> List[WaitingCase]:
        """Active executions of process_key parked at activity_id."""
        pass

    @abstractmethod
    async def get_variable(self, process_instance_id: str, name: str) -> Optional[str]:
        """Value of a process variable, None when it does not exist."""
        pass

    @abstractmethod
    async def find_process_instances_by_business_key(
        self,
        business_key: str,
        process_key_filter: str = ""
    ) -> List[ProcessInstance]:
        """Historic process instances carrying business_key."""
        pass

    async def resolve_process_instance_ids(self, business_key: str) -> Tuple[List[str], bool]:
        """
        Pick the process instances that own a document.

        ocr_processing wins (first id only); otherwise every dataentry instance.
        The flag reports whether any instance for the key is ACTIVE.
        """
        instances = await self.find_process_instances_by_business_key(business_key)
        if not instances:
            logger.warning("No process instances found for business key: %s", business_key)
            return [], False

        has_active = any(i.is_active for i in instances)

        ocr_ids = [i.id for i in instances if i.process_definition_key == OCR_PROCESSING_KEY and i.id]
        if ocr_ids:
            logger.info("Business key %s resolved to ocr_processing instance %s", business_key, ocr_ids[0])
            return [ocr_ids[0]], has_active

        data_entry_ids = [i.id for i in instances if i.process_definition_key == DATA_ENTRY_KEY and i.id]
        if data_entry_ids:
            logger.info(
                "Business key %s resolved to %d dataentry instance(s)", business_key, len(data_entry_ids)
            )
            return data_entry_ids, has_active

        logger.warning(
            "No ocr_processing or dataentry instances for business key %s (found: %s)",
            business_key, sorted({i.process_definition_key or "?" for i in instances})
        )
        return [], has_active


class DocumentCaseClient(ABC):
    """Access to the document case-management system."""

    @abstractmethod
    async def get_case_details(self, client_code: str, case_id: str) -> Optional[CaseDetails]:
        pass

    @abstractmethod
    async def move_task(self, task_id: str, client_code: str, queue_name: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def move_case(self, case_id: str, client_code: str, queue_name: str) -> Dict[str, Any]:
        pass


class CaseInstanceStore(ABC):
    """Read access to case-instance progress records."""

    @abstractmethod
    async def find_by_document_identifier(self, document_id: str) -> List[CaseInstanceRecord]:
        pass

    @abstractmethod
    async def find_by_document_identifiers_and_task_name(
        self,
        document_ids: List[str],
        task_name: str
    ) -> List[CaseInstanceRecord]:
        pass


# =============================================================================
# IN-MEMORY IMPLEMENTATIONS
# =============================================================================

class InMemoryWorkflowEngine(WorkflowEngineClient):
    """
    Workflow engine backed by dictionaries.

    Usage:
        engine = InMemoryWorkflowEngine()
        engine.add_waiting_case("dataentry", "Event_0a7e4e6", WaitingCase("pi-1"))
        engine.set_variable("pi-1", "clientCode", "USAA")
    """

    def __init__(self):
        self._waiting: Dict[Tuple[str, str], List[WaitingCase]] = {}
        self._variables: Dict[str, Dict[str, Optional[str]]] = {}
        self._instances: Dict[str, List[ProcessInstance]] = {}

    def add_waiting_case(self, process_key: str, activity_id: str, case: WaitingCase) -> None:
        self._waiting.setdefault((process_key, activity_id), []).append(case)

    def set_variable(self, process_instance_id: str, name: str, value: Optional[str]) -> None:
        self._variables.setdefault(process_instance_id, {})[name] = value

    def set_variables(self, process_instance_id: str, **values: Optional[str]) -> None:
        for name, value in values.items():
            self.set_variable(process_instance_id, name, value)

    def add_process_instance(self, business_key: str, instance: ProcessInstance) -> None:
        self._instances.setdefault(business_key, []).append(instance)

    async def list_waiting_cases(self, process_key: str, activity_id: str) -> List[WaitingCase]:
        return list(self._waiting.get((process_key, activity_id), []))

    async def get_variable(self, process_instance_id: str, name: str) -> Optional[str]:
        return self._variables.get(process_instance_id, {}).get(name)

    async def find_process_instances_by_business_key(
        self,
        business_key: str,
        process_key_filter: str = ""
    ) -> List[ProcessInstance]:
        instances = self._instances.get(business_key, [])
        if process_key_filter:
            instances = [i for i in instances if i.process_definition_key == process_key_filter]
        return list(instances)


class InMemoryDocumentCaseClient(DocumentCaseClient):
    """Document case system backed by a dictionary keyed by (client_code, case_id)."""

    def __init__(self):
        self._cases: Dict[Tuple[str, str], CaseDetails] = {}
        self.moves: List[Dict[str, Any]] = []

    def add_case(self, client_code: str, case_id: str, details: CaseDetails) -> None:
        self._cases[(client_code, case_id)] = details

    async def get_case_details(self, client_code: str, case_id: str) -> Optional[CaseDetails]:
        details = self._cases.get((client_code, case_id))
        if details is None:
            raise DocumentCaseError(
                f"Case {case_id} not found for client {client_code}", status_code=404
            )
        return details

    async def move_task(self, task_id: str, client_code: str, queue_name: str) -> Dict[str, Any]:
        self.moves.append({"taskID": task_id, "lob": client_code, "queueName": queue_name})
        return {"statusCode": 200, "message": "Task moved"}

    async def move_case(self, case_id: str, client_code: str, queue_name: str) -> Dict[str, Any]:
        self.moves.append({"caseID": case_id, "lob": client_code, "queueName": queue_name})
        return {"statusCode": 200, "message": "Case moved"}


class InMemoryCaseInstanceStore(CaseInstanceStore):
    """Case-instance store backed by a list of records."""

    def __init__(self, records: Optional[Iterable[CaseInstanceRecord]] = None):
        self._records: List[CaseInstanceRecord] = list(records or [])

    def add(self, record: CaseInstanceRecord) -> None:
        self._records.append(record)

    async def find_by_document_identifier(self, document_id: str) -> List[CaseInstanceRecord]:
        return [r for r in self._records if document_id in r.identifiers]

    async def find_by_document_identifiers_and_task_name(
        self,
        document_ids: List[str],
        task_name: str
    ) -> List[CaseInstanceRecord]:
        wanted = set(document_ids)
        return [
            r for r in self._records
            if wanted.intersection(r.identifiers)
            and any(t.task_name == task_name for t in (r.tasks or ()))
        ]
