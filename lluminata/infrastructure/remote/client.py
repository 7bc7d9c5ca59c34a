# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Remote authority client for the platform sync endpoint.

The remote authority is the platform's system of record. This module
defines the RemoteAuthority protocol the reconciliation client depends on
and an httpx implementation talking to the platform's ``/sync`` endpoint:

- POST /sync uploads mutations as ``{"studentId", "items": [{"type", "data"}]}``
- GET /sync?studentId=... downloads the student and offline lesson set

Responses are classified into acknowledged, rejected (4xx or an explicit
``success: false``) and unreachable (transport errors, timeouts, 5xx).

Example:
    authority = HTTPRemoteAuthority(settings.remote)
    try:
        await authority.submit(SyncKind.PROGRESS, {"student_id": "s-1"})
    finally:
        await authority.close()
"""

import logging
from typing import TYPE_CHECKING, Any, Protocol

import httpx
from pydantic.alias_generators import to_camel

from lluminata.infrastructure.database.models.offline import SyncKind
from lluminata.infrastructure.remote.exceptions import (
    RemoteRejectedError,
    RemoteUnreachableError,
)

if TYPE_CHECKING:
    from lluminata.core.config.settings import RemoteAuthoritySettings

logger = logging.getLogger(__name__)

# Item types understood by the platform's /sync endpoint
WIRE_TYPES: dict[SyncKind, str] = {
    SyncKind.LESSON_COMPLETION: "lesson_completion",
    SyncKind.ASSESSMENT: "assessment",
    SyncKind.PROGRESS: "progress_update",
}


class RemoteAuthority(Protocol):
    """Remote system of record for queued mutations."""

    async def submit(self, kind: SyncKind, payload: dict[str, Any]) -> None:
        """Submit one mutation.

        Raises:
            RemoteRejectedError: If the mutation was refused.
            RemoteUnreachableError: If the authority could not be reached.
        """
        ...

    async def fetch_offline_bundle(self, student_uuid: str) -> dict[str, Any]:
        """Fetch the student record and offline lessons for a student.

        Raises:
            RemoteRejectedError: If the request was refused.
            RemoteUnreachableError: If the authority could not be reached.
        """
        ...


def to_wire_item(kind: SyncKind, payload: dict[str, Any]) -> dict[str, Any]:
    """Translate a queued mutation into a /sync upload item.

    Args:
        kind: Mutation kind.
        payload: Stored payload with snake_case keys.

    Returns:
        Item with the platform's type name and camelCase data keys.
    """
    return {
        "type": WIRE_TYPES[kind],
        "data": {to_camel(key): value for key, value in payload.items()},
    }


class HTTPRemoteAuthority:
    """httpx client for the platform's /sync endpoint.

    Attributes:
        base_url: Base URL of the platform API.
    """

    def __init__(
        self,
        settings: "RemoteAuthoritySettings",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Remote authority configuration.
            transport: Optional transport override (used by tests).
        """
        self.base_url = settings.base_url
        self._client = httpx.AsyncClient(
            base_url=settings.base_url,
            headers=settings.auth_headers,
            timeout=settings.timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def submit(self, kind: SyncKind, payload: dict[str, Any]) -> None:
        """Upload one mutation to POST /sync.

        Args:
            kind: Mutation kind.
            payload: Stored payload.

        Raises:
            RemoteRejectedError: On 4xx or a ``success: false`` body.
            RemoteUnreachableError: On transport errors, timeouts or 5xx.
        """
        body = {
            "studentId": payload.get("student_id"),
            "items": [to_wire_item(kind, payload)],
        }
        response = await self._request("POST", "/sync", json=body)
        self._ensure_success(response)
        logger.debug("Remote acknowledged %s mutation", kind.value)

    async def fetch_offline_bundle(self, student_uuid: str) -> dict[str, Any]:
        """Download the offline bundle from GET /sync.

        Args:
            student_uuid: Platform student UUID.

        Returns:
            Dictionary with ``student`` and ``lessons`` keys.

        Raises:
            RemoteRejectedError: On 4xx or a ``success: false`` body.
            RemoteUnreachableError: On transport errors, timeouts or 5xx.
        """
        response = await self._request("GET", "/sync", params={"studentId": student_uuid})
        data = self._ensure_success(response)
        return {
            "student": data.get("student") or {},
            "lessons": data.get("lessons") or [],
        }

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, mapping transport failures to RemoteUnreachableError."""
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("Remote authority timed out: %s %s", method, url)
            raise RemoteUnreachableError(
                f"Timed out calling {method} {url}",
                details={"error_type": type(e).__name__},
            ) from e
        except httpx.TransportError as e:
            logger.warning("Remote authority unreachable: %s", str(e))
            raise RemoteUnreachableError(
                f"Failed to connect to remote authority: {str(e)}",
                details={"error_type": type(e).__name__},
            ) from e

    def _ensure_success(self, response: httpx.Response) -> dict[str, Any]:
        """Classify a response and return its JSON body.

        Raises:
            RemoteRejectedError: On 4xx or a ``success: false`` body.
            RemoteUnreachableError: On 5xx or a non-JSON success body.
        """
        if response.status_code >= 500:
            raise RemoteUnreachableError(
                f"Remote authority error {response.status_code}",
                details={"status_code": response.status_code},
            )

        if response.status_code >= 400:
            raise RemoteRejectedError(
                _error_message(response, "Request rejected"),
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteUnreachableError(
                "Remote authority returned a non-JSON response",
                details={"status_code": response.status_code},
            ) from e

        if isinstance(data, dict) and data.get("success") is False:
            raise RemoteRejectedError(
                data.get("error") or "Request rejected",
                status_code=response.status_code,
                response_body=response.text,
            )

        return data if isinstance(data, dict) else {}


def _error_message(response: httpx.Response, default: str) -> str:
    """Extract an error message from a JSON error body."""
    try:
        data = response.json()
    except ValueError:
        return default
    if isinstance(data, dict):
        return data.get("error") or data.get("message") or default
    return default
