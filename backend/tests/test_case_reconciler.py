"""
Tests for the case-instance reconciler.
"""
import pytest
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

from services.disposition import (
    CaseInstanceReconciler,
    CaseInstanceRecord,
    InMemoryCaseInstanceStore,
    InstanceTask,
)

TODAY = date(2025, 1, 10)  # Friday
FOLLOW_UP_ID = "T-100"


def make_record(
    doc="DOC-1",
    case_status="IN_PROGRESS",
    status=None,
    updated_at=datetime(2025, 1, 9, 12, 0, tzinfo=timezone.utc),
    created_at=datetime(2025, 1, 2, 12, 0, tzinfo=timezone.utc),
    data_entry_status="open",
    follow_up_id=FOLLOW_UP_ID,
    with_data_entry=True,
):
    tasks = [InstanceTask(id=follow_up_id, task_name="Follow up", task_type="BPM Follow-Up", status="open")]
    if with_data_entry:
        tasks.append(InstanceTask(id="T-200", task_name="Data entry", task_type="Data Entry", status=data_entry_status))
    return CaseInstanceRecord(
        identifiers=(doc,),
        status=status,
        case_status=case_status,
        created_at=created_at,
        updated_at=updated_at,
        tasks=tuple(tasks),
    )


class TestSelectFollowUpRecord:
    """Correlation by BPM Follow-Up task id."""

    def test_selects_record_with_matching_task(self):
        other = make_record(follow_up_id="T-999")
        wanted = make_record()
        assert CaseInstanceReconciler.select_follow_up_record([other, wanted], FOLLOW_UP_ID) is wanted

    def test_no_correlation_id_selects_nothing(self):
        assert CaseInstanceReconciler.select_follow_up_record([make_record()], None) is None

    def test_single_uncorrelated_record_is_ignored(self):
        """Even a lone match without the follow-up task is not selected."""
        assert CaseInstanceReconciler.select_follow_up_record([make_record(follow_up_id="X")], FOLLOW_UP_ID) is None


class TestAnalyze:
    """Analysis outcomes."""

    @pytest.mark.asyncio
    async def test_not_found(self):
        """Unknown document: not found, data entry not present."""
        reconciler = CaseInstanceReconciler(InMemoryCaseInstanceStore())
        analysis = await reconciler.analyze("DOC-404", FOLLOW_UP_ID, 2, today=TODAY)
        assert analysis.found is False
        assert analysis.data_entry_present is False
        assert analysis.in_progress is False

    @pytest.mark.asyncio
    async def test_uncorrelated_records_are_not_found(self):
        store = InMemoryCaseInstanceStore([make_record(follow_up_id="T-999")])
        analysis = await CaseInstanceReconciler(store).analyze("DOC-1", FOLLOW_UP_ID, 2, today=TODAY)
        assert analysis.found is False

    @pytest.mark.asyncio
    async def test_in_progress_recent(self):
        """Updated yesterday: in progress, not stale, data entry open."""
        store = InMemoryCaseInstanceStore([make_record()])
        analysis = await CaseInstanceReconciler(store).analyze("DOC-1", FOLLOW_UP_ID, 2, today=TODAY)
        assert analysis.found is True
        assert analysis.in_progress is True
        assert analysis.stale is False
        assert analysis.data_entry_present is True
        assert analysis.data_entry_complete is False

    @pytest.mark.asyncio
    async def test_in_progress_stale(self):
        """Updated Monday, checked Friday: 4 business days > 2."""
        record = make_record(updated_at=datetime(2025, 1, 6, tzinfo=timezone.utc))
        analysis = await CaseInstanceReconciler(InMemoryCaseInstanceStore([record])).analyze(
            "DOC-1", FOLLOW_UP_ID, 2, today=TODAY
        )
        assert analysis.stale is True

    @pytest.mark.asyncio
    async def test_threshold_is_passed_through(self):
        """The same record is fresh under a 5 day threshold."""
        record = make_record(updated_at=datetime(2025, 1, 6, tzinfo=timezone.utc))
        analysis = await CaseInstanceReconciler(InMemoryCaseInstanceStore([record])).analyze(
            "DOC-1", FOLLOW_UP_ID, 5, today=TODAY
        )
        assert analysis.stale is False

    @pytest.mark.asyncio
    async def test_created_at_used_when_never_updated(self):
        """Staleness falls back to createdAt."""
        record = make_record(updated_at=None)
        analysis = await CaseInstanceReconciler(InMemoryCaseInstanceStore([record])).analyze(
            "DOC-1", FOLLOW_UP_ID, 2, today=TODAY
        )
        assert analysis.last_updated == record.created_at
        assert analysis.stale is True

    @pytest.mark.asyncio
    async def test_data_entry_complete(self):
        record = make_record(data_entry_status="Completed")
        analysis = await CaseInstanceReconciler(InMemoryCaseInstanceStore([record])).analyze(
            "DOC-1", FOLLOW_UP_ID, 2, today=TODAY
        )
        assert analysis.data_entry_present is True
        assert analysis.data_entry_complete is True

    @pytest.mark.asyncio
    async def test_data_entry_missing_on_in_progress_record(self):
        record = make_record(with_data_entry=False)
        analysis = await CaseInstanceReconciler(InMemoryCaseInstanceStore([record])).analyze(
            "DOC-1", FOLLOW_UP_ID, 2, today=TODAY
        )
        assert analysis.found is True
        assert analysis.data_entry_present is False

    @pytest.mark.asyncio
    async def test_not_in_progress_skips_task_checks(self):
        """Complete records keep data_entry_present True and are never stale."""
        record = make_record(case_status="COMPLETE", with_data_entry=False, updated_at=datetime(2024, 1, 1))
        analysis = await CaseInstanceReconciler(InMemoryCaseInstanceStore([record])).analyze(
            "DOC-1", FOLLOW_UP_ID, 2, today=TODAY
        )
        assert analysis.in_progress is False
        assert analysis.data_entry_present is True
        assert analysis.stale is False
        assert analysis.resolved_status == "COMPLETE"

    @pytest.mark.asyncio
    async def test_status_field_fallback(self):
        """Without caseStatus the plain status field decides."""
        record = make_record(case_status=None, status="in_progress")
        analysis = await CaseInstanceReconciler(InMemoryCaseInstanceStore([record])).analyze(
            "DOC-1", FOLLOW_UP_ID, 2, today=TODAY
        )
        assert analysis.in_progress is True
        assert analysis.resolved_status == "in_progress"

    @pytest.mark.asyncio
    async def test_missing_document_id_skips_store(self):
        """No document number is not found without querying the store."""
        store = InMemoryCaseInstanceStore([make_record()])
        store.find_by_document_identifier = AsyncMock(return_value=[make_record()])
        analysis = await CaseInstanceReconciler(store).analyze(None, FOLLOW_UP_ID, 2, today=TODAY)
        assert analysis.found is False
        assert analysis.data_entry_present is False
        store.find_by_document_identifier.assert_not_called()
