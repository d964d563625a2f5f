"""
Tests for the MRT waiting case scan and the data-entry task lookup.
"""
import pytest
from unittest.mock import AsyncMock

from services.disposition import (
    CaseDetails,
    CaseInstanceRecord,
    CaseTask,
    DataEntryTaskLookup,
    InMemoryCaseInstanceStore,
    InMemoryDocumentCaseClient,
    InMemoryWorkflowEngine,
    InstanceTask,
    MrtScanner,
    WaitingCase,
    WorkflowEngineError,
)
from services.disposition.mrt import MRT_SCENARIOS, all_non_follow_up_tasks_complete

SCENARIO_A = ("Withdrawal_MRT", "Event_mrt_response_received", "MRT Call Out Manual Review")
SCENARIO_B = ("Withdrawal_Approval", "Event_approval", "PI Management Approval")


def task(task_type, status):
    return CaseTask(task_id=None, task_type=task_type, status=status)


def add_case(engine, cases, scenario, pid, doc, tasks):
    engine.add_waiting_case(scenario[0], scenario[1], WaitingCase(process_instance_id=pid))
    engine.set_variables(pid, clientCode="USAA", onbaseCaseId=f"C-{pid}")
    cases.add_case("USAA", f"C-{pid}", CaseDetails(
        case_id=f"C-{pid}", document_number=doc, status="Pend", tasks=tuple(tasks)
    ))


class TestAllNonFollowUpTasksComplete:
    """Task completeness rule."""

    def test_follow_up_tasks_are_ignored(self):
        tasks = [task("Review", "Complete"), task("BPM Follow-Up", "Open")]
        assert all_non_follow_up_tasks_complete(tasks) is True

    def test_open_task_fails(self):
        assert all_non_follow_up_tasks_complete([task("Review", "Complete"), task("Call", "Open")]) is False

    def test_only_follow_ups_fails(self):
        """There must be at least one other task."""
        assert all_non_follow_up_tasks_complete([task("BPM Follow-Up", "Complete")]) is False

    def test_no_tasks_fails(self):
        assert all_non_follow_up_tasks_complete(None) is False
        assert all_non_follow_up_tasks_complete([]) is False


class TestMrtScanner:
    """Scanning MRT / approval events."""

    def test_default_scenarios(self):
        assert len(MRT_SCENARIOS) == 4

    @pytest.mark.asyncio
    async def test_collects_unique_documents_across_scenarios(self):
        engine, cases = InMemoryWorkflowEngine(), InMemoryDocumentCaseClient()
        add_case(engine, cases, SCENARIO_A, "pi-1", "DOC-1", [task("Review", "Complete")])
        add_case(engine, cases, SCENARIO_A, "pi-2", "DOC-2", [task("Review", "Open")])
        add_case(engine, cases, SCENARIO_B, "pi-3", "DOC-1", [task("Approval", "Complete")])

        result = await MrtScanner(engine, cases, (SCENARIO_A, SCENARIO_B)).run()

        assert result.total_cases_processed == 2
        assert result.documents == ["DOC-1"]
        assert result.message == (
            "MRT Processing completed: 2 total cases processed, "
            "1 unique cases with complete tasks and event received"
        )
        data = result.to_dict()
        assert data["cases_with_complete_tasks_and_event"] == 1
        assert data["cases_with_complete_tasks_and_event_list"] == ["DOC-1"]

    @pytest.mark.asyncio
    async def test_failing_case_is_skipped(self):
        """A case without details is logged and skipped."""
        engine, cases = InMemoryWorkflowEngine(), InMemoryDocumentCaseClient()
        engine.add_waiting_case(SCENARIO_A[0], SCENARIO_A[1], WaitingCase(process_instance_id="pi-x"))
        add_case(engine, cases, SCENARIO_A, "pi-1", "DOC-1", [task("Review", "Complete")])

        result = await MrtScanner(engine, cases, (SCENARIO_A,)).run()
        assert result.documents == ["DOC-1"]

    @pytest.mark.asyncio
    async def test_listing_failure_skips_scenario(self):
        engine, cases = InMemoryWorkflowEngine(), InMemoryDocumentCaseClient()
        engine.list_waiting_cases = AsyncMock(side_effect=WorkflowEngineError("down"))
        result = await MrtScanner(engine, cases, (SCENARIO_A,)).run()
        assert result.total_cases_processed == 0
        assert result.documents == []


class TestDataEntryTaskLookup:
    """Partition by presence of a 'Data entry' task."""

    @pytest.fixture
    def lookup(self):
        store = InMemoryCaseInstanceStore([
            CaseInstanceRecord(identifiers=("DOC-1",), tasks=(InstanceTask("T1", "Data entry", "Data Entry", "open"),)),
            CaseInstanceRecord(identifiers=("DOC-2",), tasks=(InstanceTask("T2", "Review", "Review", "open"),)),
        ])
        return DataEntryTaskLookup(store)

    @pytest.mark.asyncio
    async def test_with_data_entry_task(self, lookup):
        assert await lookup.with_data_entry_task(["DOC-2", "DOC-1", "DOC-1"]) == ["DOC-1"]

    @pytest.mark.asyncio
    async def test_without_data_entry_task_keeps_order(self, lookup):
        assert await lookup.without_data_entry_task(["DOC-3", "DOC-1", "DOC-2"]) == ["DOC-3", "DOC-2"]

    @pytest.mark.asyncio
    async def test_empty_input(self, lookup):
        assert await lookup.with_data_entry_task([]) == []
        assert await lookup.without_data_entry_task([]) == []
