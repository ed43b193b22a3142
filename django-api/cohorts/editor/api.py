"""Async HTTP client for the cohort admin API.

The editor talks to the API only through this module. Failed calls raise
ApiError carrying the HTTP status and the server's ``error`` message.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditorConfig:
    """Connection and timing settings for the editor."""

    base_url: str
    token: str = ""
    timeout: float = 10.0
    autosave_delay: float = 1.5


class ApiError(Exception):
    """A failed API call.

    ``message`` is the server-supplied ``error`` text, or None when the
    response carried none.
    """

    def __init__(self, status: int, message: str | None = None, code: str | None = None):
        self.status = status
        self.message = message
        self.code = code
        super().__init__(message or f"Request failed with status {status}")


def _error_from_response(response: httpx.Response) -> ApiError:
    try:
        body = response.json()
    except ValueError:
        return ApiError(response.status_code)
    if not isinstance(body, dict):
        return ApiError(response.status_code)
    return ApiError(response.status_code, body.get("error") or None, body.get("code"))


class CohortApiClient:
    """Typed wrapper over the cohort REST endpoints."""

    def __init__(self, config: EditorConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        headers = {"Accept": "application/json"}
        if config.token:
            headers["Authorization"] = f"Bearer {config.token}"
        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/") + "/api",
            headers=headers,
            timeout=config.timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "CohortApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as exc:
            logger.warning("Cohort API unreachable: %s %s: %s", method, path, exc)
            raise ApiError(0, None) from exc

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as exc:
                logger.warning(
                    "Cohort API returned a non-JSON body",
                    extra={"method": method, "path": path, "status": response.status_code},
                )
                raise ApiError(response.status_code) from exc

        error = _error_from_response(response)
        logger.warning(
            "Cohort API call failed",
            extra={"method": method, "path": path, "status": error.status, "error_code": error.code},
        )
        raise error

    # Workshops

    async def list_workshops(self) -> list[dict]:
        return await self._request("GET", "/workshops")

    # Cohorts

    async def get_cohort(self, cohort_id: str) -> dict:
        return await self._request("GET", f"/cohorts/{cohort_id}")

    async def create_cohort(self, payload: dict) -> dict:
        return await self._request("POST", "/cohorts", json=payload)

    async def update_cohort(self, cohort_id: str, payload: dict) -> dict:
        return await self._request("PUT", f"/cohorts/{cohort_id}", json=payload)

    async def delete_cohort(self, cohort_id: str) -> None:
        await self._request("DELETE", f"/cohorts/{cohort_id}")

    async def change_status(self, cohort_id: str, status: str, reason: str | None = None) -> dict:
        body = {"status": status}
        if reason is not None:
            body["reason"] = reason
        return await self._request("PUT", f"/cohorts/{cohort_id}/status", json=body)

    async def duplicate_cohort(self, cohort_id: str) -> dict:
        return await self._request("POST", f"/cohorts/{cohort_id}/duplicate")

    async def get_stats(self, cohort_id: str) -> dict:
        return await self._request("GET", f"/cohorts/{cohort_id}/stats")

    # Sessions

    async def list_sessions(self, cohort_id: str) -> list[dict]:
        return await self._request("GET", f"/cohorts/{cohort_id}/sessions")

    async def create_session(self, cohort_id: str, payload: dict) -> dict:
        return await self._request("POST", f"/cohorts/{cohort_id}/sessions", json=payload)

    async def update_session(self, cohort_id: str, session_id: str, payload: dict) -> dict:
        return await self._request(
            "PUT", f"/cohorts/{cohort_id}/sessions/{session_id}", json=payload
        )

    async def delete_session(self, cohort_id: str, session_id: str) -> None:
        await self._request("DELETE", f"/cohorts/{cohort_id}/sessions/{session_id}")

    async def bulk_create_sessions(self, cohort_id: str, payload: dict) -> list[dict]:
        return await self._request("POST", f"/cohorts/{cohort_id}/sessions/bulk", json=payload)

    # Enrollments

    async def list_enrollments(self, cohort_id: str) -> list[dict]:
        return await self._request("GET", f"/cohorts/{cohort_id}/enrollments")

    async def create_enrollment(self, cohort_id: str, payload: dict) -> dict:
        return await self._request("POST", f"/cohorts/{cohort_id}/enrollments", json=payload)

    async def cancel_enrollment(
        self, cohort_id: str, enrollment_id: str, reason: str | None = None
    ) -> dict:
        return await self._request(
            "POST",
            f"/cohorts/{cohort_id}/enrollments/{enrollment_id}/cancel",
            json={"reason": reason},
        )

    # Attendance

    async def get_attendance(self, cohort_id: str, session_id: str) -> list[dict]:
        return await self._request("GET", f"/cohorts/{cohort_id}/sessions/{session_id}/attendance")

    async def save_attendance(self, cohort_id: str, session_id: str, records: list[dict]) -> list[dict]:
        return await self._request(
            "POST",
            f"/cohorts/{cohort_id}/sessions/{session_id}/attendance",
            json={"records": records},
        )
