"""
Withdrawal Support - Disposition Data Model

Types shared by the classifier, the reconciler, the orchestrator and the batch
runner. Nothing here is persisted: every run rebuilds these from the current
state of the workflow engine, the document case system and the case-instance
store.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# =============================================================================
# ENUMS
# =============================================================================

class CaseCategory(str, Enum):
    """Closed set of categories a waiting case can fall into."""
    FOLLOW_UP_COMPLETE = "FOLLOW_UP_COMPLETE"
    POST_COMPLETE_INCOMPLETE_FOLLOW_UP = "POST_COMPLETE_INCOMPLETE_FOLLOW_UP"
    CHECK_SECONDARY_SOURCE = "CHECK_SECONDARY_SOURCE"
    WAITING_CASE = "WAITING_CASE"
    CASE_RETURNING = "CASE_RETURNING"
    UNKNOWN = "UNKNOWN"


CATEGORY_DESCRIPTIONS: Dict[CaseCategory, str] = {
    CaseCategory.FOLLOW_UP_COMPLETE: "All BPM Follow-Up tasks complete",
    CaseCategory.POST_COMPLETE_INCOMPLETE_FOLLOW_UP: "Status 'Post Complete' with incomplete BPM Follow-Up",
    CaseCategory.CHECK_SECONDARY_SOURCE: "Status Pend/Pending/New with incomplete BPM Follow-Up - Check case instance store",
    CaseCategory.WAITING_CASE: "Active process instance present",
    CaseCategory.CASE_RETURNING: "No active process instance, status Pend/New with BPM Follow-Up open - CP Returning",
    CaseCategory.UNKNOWN: "Unknown category - Requires manual review",
}


def describe_category(category: CaseCategory) -> str:
    return CATEGORY_DESCRIPTIONS.get(category, CATEGORY_DESCRIPTIONS[CaseCategory.UNKNOWN])


class DispositionStatus(str, Enum):
    """Resolved status of one case after a disposition run."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    MANUAL_REVIEW_REQUIRED = "manual_review_required"
    ACTIVE_CASE = "active_case"
    EXCEPTION = "exception"
    NO_ACTION_REQUIRED = "no_action_required"


class ActionBucket(str, Enum):
    """Downstream action a document identifier is slated for."""
    TO_CANCEL = "documents_to_cancel"
    TO_RETURN_TO_QUEUE = "documents_to_return_to_queue"
    TO_MARK_COMPLETE = "documents_to_mark_complete"
    TO_MANUAL_REVIEW = "documents_for_manual_review"
    TO_RETRIGGER_EVENT = "documents_to_retrigger_event"


# =============================================================================
# CASE CONTEXT (document case system + workflow engine)
# =============================================================================

@dataclass(frozen=True)
class CaseTask:
    """A task attached to a case in the document case system."""
    task_id: Optional[str]
    task_type: Optional[str]
    status: Optional[str]
    created_date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaseTask":
        task_id = data.get("taskID", data.get("taskId"))
        return cls(
            task_id=str(task_id) if task_id is not None else None,
            task_type=data.get("taskType"),
            status=data.get("status"),
            created_date=data.get("createdDate"),
        )


@dataclass(frozen=True)
class CaseDetails:
    """Case as returned by the document case system."""
    case_id: Optional[str]
    document_number: Optional[str]
    status: Optional[str]
    queue_name: Optional[str] = None
    tasks: Optional[Tuple[CaseTask, ...]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaseDetails":
        raw_tasks = data.get("tasks")
        tasks = None
        if raw_tasks is not None:
            tasks = tuple(CaseTask.from_dict(t) for t in raw_tasks if t is not None)
        case_id = data.get("caseID", data.get("caseId"))
        return cls(
            case_id=str(case_id) if case_id is not None else None,
            document_number=data.get("documentNumber"),
            status=data.get("status"),
            queue_name=data.get("queueName"),
            tasks=tasks,
        )


@dataclass(frozen=True)
class WaitingCase:
    """An execution parked at a waiting activity in the workflow engine."""
    process_instance_id: str
    execution_id: Optional[str] = None
    ended: bool = False
    tenant_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WaitingCase":
        return cls(
            process_instance_id=data.get("processInstanceId"),
            execution_id=data.get("id"),
            ended=bool(data.get("ended") or False),
            tenant_id=data.get("tenantId"),
        )


@dataclass(frozen=True)
class ProcessInstance:
    """Historic process instance found by business key."""
    id: str
    state: Optional[str]
    process_definition_key: Optional[str]
    start_time: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return (self.state or "").upper() == "ACTIVE"


@dataclass(frozen=True)
class CaseContext:
    """Everything the classifier needs about one case, assembled per run."""
    case_reference: str
    case_id: Optional[str]
    client_code: Optional[str]
    document_id: Optional[str]
    status: Optional[str]
    tasks: Optional[Tuple[CaseTask, ...]]


@dataclass(frozen=True)
class FollowUpSummary:
    """Counts of one task type inside a case's task list."""
    total: int = 0
    open: int = 0
    closed: int = 0

    @property
    def all_closed(self) -> bool:
        return self.total > 0 and self.open == 0

    @property
    def status_text(self) -> str:
        if self.total == 0:
            return "N/A"
        if self.open == 0:
            return "All Closed"
        return f"Open ({self.open} of {self.total})"


# =============================================================================
# CASE-INSTANCE STORE
# =============================================================================

@dataclass(frozen=True)
class InstanceTask:
    """Task-level progress entry of a case-instance record."""
    id: Optional[str]
    task_name: Optional[str]
    task_type: Optional[str]
    status: Optional[str]


@dataclass(frozen=True)
class CaseInstanceRecord:
    """One case_instance document."""
    identifiers: Tuple[str, ...] = ()
    status: Optional[str] = None
    case_status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tasks: Optional[Tuple[InstanceTask, ...]] = None


@dataclass
class CaseInstanceAnalysis:
    """Reconciliation result for one document against the case-instance store."""
    found: bool = False
    case_status: Optional[str] = None
    status_field: Optional[str] = None
    in_progress: bool = False
    stale: bool = False
    data_entry_present: bool = False
    data_entry_complete: bool = False
    last_updated: Optional[datetime] = None
    created_at: Optional[datetime] = None
    result_count: int = 0

    @classmethod
    def not_found(cls) -> "CaseInstanceAnalysis":
        return cls()

    @property
    def resolved_status(self) -> Optional[str]:
        """Preferred caseStatus, falling back to status."""
        return self.case_status if self.case_status is not None else self.status_field


# =============================================================================
# RESULTS
# =============================================================================

def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class DispositionResult:
    """Outcome for one case in one batch run."""
    case_reference: str
    case_id: Optional[str] = None
    client_code: Optional[str] = None
    document_id: Optional[str] = None
    onbase_status: Optional[str] = None
    category: Optional[CaseCategory] = None
    status: Optional[DispositionStatus] = None
    action: Optional[str] = None
    message: Optional[str] = None
    requires_manual_review: bool = False
    review_reason: Optional[str] = None
    follow_up_status: Optional[str] = None
    follow_up_total: int = 0
    follow_up_open: int = 0
    processed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def flag_manual_review(self, reason: str, message: str) -> None:
        self.status = DispositionStatus.MANUAL_REVIEW_REQUIRED
        self.requires_manual_review = True
        self.review_reason = reason
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case_reference": self.case_reference,
            "case_id": self.case_id,
            "client_code": self.client_code,
            "document_number": self.document_id,
            "onbase_status": self.onbase_status,
            "category": self.category.value if self.category else None,
            "status": self.status.value if self.status else None,
            "action": self.action,
            "message": self.message,
            "requires_manual_review": self.requires_manual_review,
            "review_reason": self.review_reason,
            "bpm_follow_up_status": self.follow_up_status,
            "bpm_follow_up_total": self.follow_up_total,
            "bpm_follow_up_open": self.follow_up_open,
            "processed_at": _iso(self.processed_at),
        }


class ActionBuckets:
    """
    Ordered, de-duplicated document lists, one per downstream action.

    A document appears at most once per bucket but may sit in several buckets.
    """

    def __init__(self):
        self._buckets: Dict[ActionBucket, List[str]] = {bucket: [] for bucket in ActionBucket}

    def add(self, bucket: ActionBucket, document_id: Optional[str]) -> bool:
        """Append document_id unless it is empty or already present. Returns True if added."""
        if not document_id:
            return False
        entries = self._buckets[bucket]
        if document_id in entries:
            return False
        entries.append(document_id)
        return True

    def get(self, bucket: ActionBucket) -> List[str]:
        return list(self._buckets[bucket])

    def size(self, bucket: ActionBucket) -> int:
        return len(self._buckets[bucket])

    def to_dict(self) -> Dict[str, List[str]]:
        return {bucket.value: list(entries) for bucket, entries in self._buckets.items()}


@dataclass
class BatchResult:
    """Aggregate outcome of one batch run."""
    total_cases: int = 0
    successful_cases: int = 0
    failed_cases: int = 0
    manual_review_required: int = 0
    details: List[DispositionResult] = field(default_factory=list)
    buckets: ActionBuckets = field(default_factory=ActionBuckets)
    message: Optional[str] = None

    def record(self, detail: DispositionResult) -> None:
        """Append a case outcome. The three counters move independently."""
        self.details.append(detail)
        if detail.status == DispositionStatus.COMPLETED:
            self.successful_cases += 1
        elif detail.status == DispositionStatus.FAILED:
            self.failed_cases += 1
        if detail.requires_manual_review:
            self.manual_review_required += 1

    def build_summary(self) -> str:
        return (
            f"Processing completed: {self.total_cases} total, {self.successful_cases} successful, "
            f"{self.failed_cases} failed, {self.manual_review_required} require manual review. "
            f"To cancel: {self.buckets.size(ActionBucket.TO_CANCEL)}, "
            f"To returning: {self.buckets.size(ActionBucket.TO_RETURN_TO_QUEUE)}, "
            f"To complete: {self.buckets.size(ActionBucket.TO_MARK_COMPLETE)}, "
            f"Manual review: {self.buckets.size(ActionBucket.TO_MANUAL_REVIEW)}, "
            f"To retrigger event: {self.buckets.size(ActionBucket.TO_RETRIGGER_EVENT)}"
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "total_cases": self.total_cases,
            "successful_cases": self.successful_cases,
            "failed_cases": self.failed_cases,
            "manual_review_required": self.manual_review_required,
            "message": self.message,
            "details": [d.to_dict() for d in self.details],
        }
        result.update(self.buckets.to_dict())
        return result
