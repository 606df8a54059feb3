"""Async HTTP client for the studio API.

Used by ``EditSessionAgent`` to drive the edit session protocol from the
client side. Every failure, whether transport or non-2xx status, surfaces as
``StudioApiError`` so callers can decide what is best-effort and what must
be reported to the user.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..models.edit_session import CheckResponse, RegisterResponse
from ..models.project import Project

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:3000"
DEFAULT_TIMEOUT_SECONDS = 10.0


class StudioApiError(Exception):
    """Raised when a studio API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response


def _error_message(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict):
        detail = payload.get("detail", payload.get("error"))
        if isinstance(detail, dict):
            return str(detail.get("message") or detail.get("error") or fallback)
        if detail:
            return str(detail)
    return fallback


class StudioApiClient:
    """
    Thin wrapper over the studio's JSON endpoints.

    Usage:
        client = StudioApiClient("http://127.0.0.1:3000")
        result = await client.register(1, "sess_1", "Alice")
        await client.close()
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Server root, without the ``/api`` suffix
            timeout: Per-request timeout in seconds
            transport: Optional transport override (tests use ``httpx.MockTransport``)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()
            self._http_client = None

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise StudioApiError(f"{method} {path} failed: {e}") from e

        logger.debug(f"{method} {path} -> HTTP {response.status_code}")

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = _error_message(payload, f"{method} {path} returned HTTP {response.status_code}")
            raise StudioApiError(message, status_code=response.status_code, response=payload)

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    @staticmethod
    def _session_body(project_id: int, session_id: str, editor_name: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"projectId": project_id, "sessionId": session_id}
        if editor_name is not None:
            body["editorName"] = editor_name
        return body

    # -- Edit sessions -----------------------------------------------------

    async def register(self, project_id: int, session_id: str, editor_name: Optional[str]) -> RegisterResponse:
        data = await self._request(
            "POST", "/api/session/register", json=self._session_body(project_id, session_id, editor_name)
        )
        return RegisterResponse.model_validate(data)

    async def heartbeat(self, project_id: int, session_id: str) -> None:
        await self._request("POST", "/api/session/heartbeat", json=self._session_body(project_id, session_id))

    async def check(self, project_id: int, session_id: str) -> CheckResponse:
        data = await self._request(
            "GET", "/api/session/check", params={"projectId": project_id, "sessionId": session_id}
        )
        return CheckResponse.model_validate(data)

    async def release(self, project_id: int, session_id: str) -> None:
        await self._request("POST", "/api/session/release", json=self._session_body(project_id, session_id))

    async def force_acquire(self, project_id: int, session_id: str, editor_name: Optional[str]) -> RegisterResponse:
        data = await self._request(
            "POST", "/api/session/force-acquire", json=self._session_body(project_id, session_id, editor_name)
        )
        return RegisterResponse.model_validate(data)

    # -- Projects and pages ------------------------------------------------

    async def list_projects(self) -> List[Project]:
        data = await self._request("GET", "/api/projects")
        return [Project.model_validate(item) for item in data.get("projects", [])]

    async def get_pages(self, project_id: int) -> Dict[str, Any]:
        return await self._request("GET", "/api/pages", params={"projectId": project_id})

    async def save_pages(self, project_id: int, pages_config: Dict[str, Any]) -> None:
        await self._request("POST", "/api/pages", params={"projectId": project_id}, json=pages_config)


__all__ = ["StudioApiClient", "StudioApiError", "DEFAULT_BASE_URL"]
