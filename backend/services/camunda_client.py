"""
Withdrawal Support - Camunda Workflow Engine Client

Read-only access to the Camunda REST API:
- GET /execution                    waiting executions at an activity
- GET /history/variable-instance    process variables
- GET /history/process-instance     process instances by business key

Failures raise WorkflowEngineError; there is no retry here. A variable that
does not exist is returned as None.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from services.disposition.collaborators import WorkflowEngineClient, WorkflowEngineError
from services.disposition.models import ProcessInstance, WaitingCase
from services.withdrawal_config import CAMUNDA_BASE_URL, HTTP_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


def process_definition_key_of(instance: Dict[str, Any]) -> Optional[str]:
    """
    processDefinitionKey of a process instance payload.

    Falls back to the "<key>:<version>:<deployment>" prefix of
    processDefinitionId / definitionId.
    """
    key = instance.get("processDefinitionKey")
    if key is not None:
        return str(key)

    for field_name in ("processDefinitionId", "definitionId"):
        definition_id = instance.get(field_name)
        if definition_id is not None:
            definition_id = str(definition_id)
            colon = definition_id.find(":")
            return definition_id[:colon] if colon > 0 else definition_id

    logger.warning("No processDefinitionKey in instance. Available keys: %s", list(instance.keys()))
    return None


class CamundaClient(WorkflowEngineClient):
    """
    Camunda REST client.

    Usage:
        client = CamundaClient()
        waiting = await client.list_waiting_cases("dataentry", "Event_0a7e4e6")
        client_code = await client.get_variable(waiting[0].process_instance_id, "clientCode")
    """

    def __init__(
        self,
        base_url: str = CAMUNDA_BASE_URL,
        timeout: float = HTTP_REQUEST_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http_client

    async def _get(self, path: str, params: Dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        try:
            if self._http is not None:
                resp = await self._http.get(url, params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error("Camunda request to %s failed: %s", path, e)
            raise WorkflowEngineError(f"Camunda request failed: {e}") from e

        if resp.status_code != 200:
            logger.error("Camunda API error: %d - %s", resp.status_code, resp.text[:300])
            raise WorkflowEngineError(
                f"Camunda API error: {resp.status_code}",
                status_code=resp.status_code,
                details={"path": path, "body": resp.text[:300]}
            )
        return resp.json()

    # =========================================================================
    # EXECUTIONS
    # =========================================================================

    async def list_waiting_cases(self, process_key: str, activity_id: str) -> List[WaitingCase]:
        logger.info("Fetching waiting cases for %s / %s", process_key, activity_id)
        payload = await self._get("/execution", {
            "processDefinitionKey": process_key,
            "activityId": activity_id,
            "active": "true",
        })
        cases = [WaitingCase.from_dict(item) for item in payload or [] if item.get("processInstanceId")]
        logger.info("Retrieved %d waiting cases from Camunda", len(cases))
        return cases

    # =========================================================================
    # VARIABLES
    # =========================================================================

    async def get_variable(self, process_instance_id: str, name: str) -> Optional[str]:
        logger.debug("Fetching Camunda variable '%s' for process instance: %s", name, process_instance_id)
        payload = await self._get("/history/variable-instance", {
            "processInstanceId": process_instance_id,
            "variableName": name,
        })
        if not payload or payload[0].get("value") is None:
            logger.warning("Variable '%s' not found for process instance: %s", name, process_instance_id)
            return None
        return str(payload[0]["value"])

    # =========================================================================
    # PROCESS INSTANCES
    # =========================================================================

    async def find_process_instances_by_business_key(
        self,
        business_key: str,
        process_key_filter: str = ""
    ) -> List[ProcessInstance]:
        logger.info("Fetching process instances for business key: %s", business_key)
        params = {"processInstanceBusinessKey": business_key}
        if process_key_filter:
            params["processDefinitionKey"] = process_key_filter

        payload = await self._get("/history/process-instance", params)
        instances = [
            ProcessInstance(
                id=item.get("id"),
                state=item.get("state"),
                process_definition_key=process_definition_key_of(item),
                start_time=item.get("startTime"),
            )
            for item in payload or []
        ]
        logger.info("Found %d process instances for business key: %s", len(instances), business_key)
        return instances


# =============================================================================
# SINGLETON ACCESS
# =============================================================================

_camunda_client: Optional[CamundaClient] = None

def get_camunda_client() -> CamundaClient:
    """Get the shared Camunda client built from configuration."""
    global _camunda_client
    if _camunda_client is None:
        _camunda_client = CamundaClient()
    return _camunda_client
