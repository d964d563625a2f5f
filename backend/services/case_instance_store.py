"""
Withdrawal Support - MongoDB Case Instance Store

Read access to the case_instance collection. Documents look like:

    {
        "identifiers": [{"type": "documentNumber", "value": "DOC-1"}],
        "status": "IN_PROGRESS",
        "caseStatus": "IN_PROGRESS",
        "createdAt": "2025-01-06T10:00:00Z",
        "updatedAt": "2025-01-07T10:00:00Z",
        "tasks": [{"id": "T-1", "taskName": "Data entry", "taskType": "BPM Follow-Up", "status": "completed"}]
    }
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from services.disposition.collaborators import CaseInstanceStore, CaseInstanceStoreError
from services.disposition.models import CaseInstanceRecord, InstanceTask

logger = logging.getLogger(__name__)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable case instance timestamp: %s", value)
        return None


def _str_or_none(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def record_from_document(doc: Dict[str, Any]) -> CaseInstanceRecord:
    """Map a raw case_instance document to a CaseInstanceRecord."""
    identifiers = tuple(
        str(i.get("value")) for i in doc.get("identifiers") or []
        if isinstance(i, dict) and i.get("value") is not None
    )

    tasks = None
    if doc.get("tasks") is not None:
        tasks = tuple(
            InstanceTask(
                id=_str_or_none(t.get("id", t.get("_id"))),
                task_name=t.get("taskName"),
                task_type=t.get("taskType"),
                status=t.get("status"),
            )
            for t in doc["tasks"] if t is not None
        )

    return CaseInstanceRecord(
        identifiers=identifiers,
        status=doc.get("status"),
        case_status=doc.get("caseStatus"),
        created_at=_parse_datetime(doc.get("createdAt")),
        updated_at=_parse_datetime(doc.get("updatedAt")),
        tasks=tasks,
    )


class MongoCaseInstanceStore(CaseInstanceStore):
    """
    CaseInstanceStore over a motor collection.

    Usage:
        client = AsyncIOMotorClient(MONGO_URL)
        store = MongoCaseInstanceStore(client[DB_NAME][CASE_INSTANCE_COLLECTION])
    """

    def __init__(self, collection):
        self.collection = collection

    async def _find(self, query: Dict[str, Any]) -> List[CaseInstanceRecord]:
        try:
            docs = await self.collection.find(query, {"_id": 0}).to_list(None)
        except Exception as e:
            logger.error("Case instance query failed: %s", e)
            raise CaseInstanceStoreError(f"Case instance query failed: {e}", details={"query": query}) from e
        return [record_from_document(d) for d in docs]

    async def find_by_document_identifier(self, document_id: str) -> List[CaseInstanceRecord]:
        logger.debug("Querying case_instance for document: %s", document_id)
        records = await self._find({"identifiers.value": document_id})
        logger.debug("Found %d case_instance record(s) for document: %s", len(records), document_id)
        return records

    async def find_by_document_identifiers_and_task_name(
        self,
        document_ids: List[str],
        task_name: str
    ) -> List[CaseInstanceRecord]:
        if not document_ids:
            return []
        return await self._find({
            "identifiers.value": {"$in": list(document_ids)},
            "tasks.taskName": task_name,
        })
