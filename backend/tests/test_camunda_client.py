"""
Tests for the Camunda and OnBase HTTP clients using httpx.MockTransport.
"""
import json

import httpx
import pytest

from services.camunda_client import CamundaClient, process_definition_key_of
from services.disposition import DocumentCaseError, WorkflowEngineError
from services.onbase_client import OnBaseClient

CAMUNDA_URL = "http://camunda.test/engine-rest"
ONBASE_URL = "http://onbase.test/api"


def camunda(handler):
    return CamundaClient(CAMUNDA_URL, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def onbase(handler, authorization="Basic abc"):
    return OnBaseClient(
        ONBASE_URL, authorization=authorization,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )


class TestProcessDefinitionKey:
    """Key resolution from instance payloads."""

    def test_explicit_key(self):
        assert process_definition_key_of({"processDefinitionKey": "dataentry"}) == "dataentry"

    def test_from_definition_id(self):
        assert process_definition_key_of({"processDefinitionId": "ocr_processing:3:abc"}) == "ocr_processing"
        assert process_definition_key_of({"definitionId": "dataentry:1:x"}) == "dataentry"

    def test_missing(self):
        assert process_definition_key_of({"id": "1"}) is None


class TestCamundaClient:
    """Camunda REST calls."""

    @pytest.mark.asyncio
    async def test_list_waiting_cases(self):
        def handler(request):
            assert request.url.path == "/engine-rest/execution"
            assert request.url.params["processDefinitionKey"] == "dataentry"
            assert request.url.params["activityId"] == "Event_0a7e4e6"
            assert request.url.params["active"] == "true"
            return httpx.Response(200, json=[
                {"id": "ex-1", "processInstanceId": "pi-1", "ended": False},
                {"id": "ex-2", "processInstanceId": None},
            ])

        cases = await camunda(handler).list_waiting_cases("dataentry", "Event_0a7e4e6")
        assert [c.process_instance_id for c in cases] == ["pi-1"]
        assert cases[0].execution_id == "ex-1"

    @pytest.mark.asyncio
    async def test_get_variable(self):
        def handler(request):
            assert request.url.path == "/engine-rest/history/variable-instance"
            assert request.url.params["variableName"] == "clientCode"
            return httpx.Response(200, json=[{"name": "clientCode", "value": "USAA"}])

        assert await camunda(handler).get_variable("pi-1", "clientCode") == "USAA"

    @pytest.mark.asyncio
    async def test_missing_variable_is_none(self):
        client = camunda(lambda request: httpx.Response(200, json=[]))
        assert await client.get_variable("pi-1", "documentNumber") is None

    @pytest.mark.asyncio
    async def test_process_instances_by_business_key(self):
        def handler(request):
            assert request.url.path == "/engine-rest/history/process-instance"
            assert request.url.params["processInstanceBusinessKey"] == "DOC-1"
            assert "processDefinitionKey" not in request.url.params
            return httpx.Response(200, json=[
                {"id": "pi-1", "state": "ACTIVE", "processDefinitionId": "dataentry:2:zz"},
                {"id": "pi-2", "state": "COMPLETED", "processDefinitionKey": "ocr_processing"},
            ])

        client = camunda(handler)
        instances = await client.find_process_instances_by_business_key("DOC-1")
        assert [i.process_definition_key for i in instances] == ["dataentry", "ocr_processing"]

        ids, has_active = await client.resolve_process_instance_ids("DOC-1")
        assert ids == ["pi-2"]
        assert has_active is True

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        client = camunda(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(WorkflowEngineError) as exc_info:
            await client.list_waiting_cases("dataentry", "Event_0a7e4e6")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(WorkflowEngineError):
            await camunda(handler).get_variable("pi-1", "clientCode")


class TestOnBaseClient:
    """OnBase REST calls."""

    @pytest.mark.asyncio
    async def test_get_case_details(self):
        def handler(request):
            assert request.url.path == "/api/GetCaseDetails"
            assert request.url.params["request.lob"] == "USAA"
            assert request.url.params["request.caseId"] == "C-1"
            assert request.headers["Authorization"] == "Basic abc"
            return httpx.Response(200, json={
                "caseID": 12345,
                "documentNumber": "DOC-1",
                "status": "Pend",
                "queueName": "Withdrawals",
                "tasks": [{"taskID": 7, "taskType": "BPM Follow-Up", "status": "Open"}],
            })

        details = await onbase(handler).get_case_details("USAA", "C-1")
        assert details.case_id == "12345"
        assert details.document_number == "DOC-1"
        assert details.tasks[0].task_id == "7"
        assert details.tasks[0].task_type == "BPM Follow-Up"

    @pytest.mark.asyncio
    async def test_missing_identifiers_rejected(self):
        client = onbase(lambda request: httpx.Response(200, json={}))
        with pytest.raises(DocumentCaseError):
            await client.get_case_details(None, "C-1")

    @pytest.mark.asyncio
    async def test_move_task_and_case(self):
        sent = []

        def handler(request):
            sent.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"statusCode": 200})

        client = onbase(handler)
        await client.move_task("T-1", "USAA", "Data Entry")
        await client.move_case("C-1", "USAA", "Returning")
        assert sent == [
            ("/api/ManageTask", {"lob": "USAA", "taskID": "T-1", "queueName": "Data Entry"}),
            ("/api/ManageCase", {"lob": "USAA", "caseID": "C-1", "queueName": "Returning"}),
        ]

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        client = onbase(lambda request: httpx.Response(401, text="denied"))
        with pytest.raises(DocumentCaseError) as exc_info:
            await client.get_case_details("USAA", "C-1")
        assert exc_info.value.status_code == 401
