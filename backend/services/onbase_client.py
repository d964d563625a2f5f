"""
Withdrawal Support - OnBase Document Case Client

Access to the OnBase case service:
- GET  /GetCaseDetails   case status, document number and tasks
- POST /ManageTask       move a task to a queue
- POST /ManageCase       move a case to a queue

Every request carries the configured Authorization header. Failures raise
DocumentCaseError.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from services.disposition.collaborators import DocumentCaseClient, DocumentCaseError
from services.disposition.models import CaseDetails
from services.withdrawal_config import ONBASE_AUTHORIZATION, ONBASE_BASE_URL, HTTP_REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


class OnBaseClient(DocumentCaseClient):
    """
    OnBase REST client.

    Usage:
        client = OnBaseClient()
        details = await client.get_case_details("ACME", "12345")
    """

    def __init__(
        self,
        base_url: str = ONBASE_BASE_URL,
        authorization: str = ONBASE_AUTHORIZATION,
        timeout: float = HTTP_REQUEST_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.authorization = authorization
        self.timeout = timeout
        self._http = http_client

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.authorization:
            headers["Authorization"] = self.authorization
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            if self._http is not None:
                resp = await self._http.request(method, url, params=params, json=json_data, headers=self._headers())
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.request(method, url, params=params, json=json_data, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("OnBase request to %s failed: %s", path, e)
            raise DocumentCaseError(f"OnBase request failed: {e}") from e

        if resp.status_code not in (200, 201, 204):
            logger.error("OnBase API error: %d - %s", resp.status_code, resp.text[:300])
            raise DocumentCaseError(
                f"OnBase API error: {resp.status_code}",
                status_code=resp.status_code,
                details={"path": path, "body": resp.text[:300]}
            )

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    async def get_case_details(self, client_code: str, case_id: str) -> Optional[CaseDetails]:
        if not client_code or not case_id:
            raise DocumentCaseError(
                "Client code and case id are required",
                status_code=400,
                details={"client_code": client_code, "case_id": case_id}
            )

        logger.info("Fetching OnBase case details for case %s (client %s)", case_id, client_code)
        payload = await self._request("GET", "/GetCaseDetails", params={
            "request.lob": client_code,
            "request.caseId": case_id,
        })
        if not payload:
            return None
        return CaseDetails.from_dict(payload)

    async def move_task(self, task_id: str, client_code: str, queue_name: str) -> Dict[str, Any]:
        logger.info("Moving OnBase task %s to queue %s", task_id, queue_name)
        payload = await self._request("POST", "/ManageTask", json_data={
            "lob": client_code,
            "taskID": task_id,
            "queueName": queue_name,
        })
        return payload or {}

    async def move_case(self, case_id: str, client_code: str, queue_name: str) -> Dict[str, Any]:
        logger.info("Moving OnBase case %s to queue %s", case_id, queue_name)
        payload = await self._request("POST", "/ManageCase", json_data={
            "lob": client_code,
            "caseID": case_id,
            "queueName": queue_name,
        })
        return payload or {}


# =============================================================================
# SINGLETON ACCESS
# =============================================================================

_onbase_client: Optional[OnBaseClient] = None

def get_onbase_client() -> OnBaseClient:
    """Get the shared OnBase client built from configuration."""
    global _onbase_client
    if _onbase_client is None:
        _onbase_client = OnBaseClient()
    return _onbase_client
