"""HTTP client for the identity/profile service, as used by the onboarding flow.

Every call asks the token provider for a fresh bearer credential; nothing
is cached here. Error responses are unwrapped from the service's standard
envelope into ProfileBackendError so callers only ever see one exception
type with a human-readable message.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from candidate_onboarding.config import settings
from candidate_onboarding.schemas.onboarding import ResumeFile

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str | None]]


class ProfileBackendError(Exception):
    """A backend call failed (HTTP error status or transport failure)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class ProfileNotFound(ProfileBackendError):
    """The caller has no candidate profile yet."""


@dataclass
class CreateResult:
    success: bool
    profile: dict | None = None
    account: dict | None = None
    error: str | None = None


class ProfileBackend(Protocol):
    """Operations the onboarding flow consumes."""

    async def fetch_own_profile(self) -> dict: ...

    async def create_account_and_profile(self, seed: dict) -> CreateResult: ...

    async def fetch_account_record(self) -> dict: ...

    async def update_profile(self, candidate_id: str, fields: dict) -> dict | None: ...

    async def update_account_record(self, patch: dict) -> dict: ...

    async def upload_document(self, file: ResumeFile, metadata: dict) -> dict: ...

    async def delete_document(self, document_id: str) -> None: ...


def _error_from_response(response: httpx.Response) -> ProfileBackendError:
    message = f"Request failed with status {response.status_code}"
    error_code = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message") or message
        error_code = body["error"].get("code")

    cls = ProfileNotFound if response.status_code == 404 else ProfileBackendError
    return cls(message, status_code=response.status_code, error_code=error_code)


class ProfileBackendClient:
    """httpx implementation of ProfileBackend.

    Usage:
        async with ProfileBackendClient(get_token) as backend:
            profile = await backend.fetch_own_profile()
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.http_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "ProfileBackendClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        token = await self._token_provider()
        if not token:
            raise ProfileBackendError("No authentication token", status_code=401)

        try:
            response = await self._client.request(
                method,
                path,
                headers={"Authorization": f"Bearer {token}"},
                **kwargs,
            )
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ProfileBackendError(f"Network error: {e}") from e

        if response.is_error:
            raise _error_from_response(response)
        if response.status_code == 204 or not response.content:
            return None

        body = response.json()
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    # ── Profile ──────────────────────────────────────────────

    async def fetch_own_profile(self) -> dict:
        return await self._request("GET", "/api/v2/candidates/me")

    async def update_profile(self, candidate_id: str, fields: dict) -> dict | None:
        if not fields:
            return None
        return await self._request("PATCH", f"/api/v2/candidates/{candidate_id}", json=fields)

    # ── Account ──────────────────────────────────────────────

    async def create_account_and_profile(self, seed: dict) -> CreateResult:
        """Idempotent init; reports failure in the result instead of raising."""
        try:
            data = await self._request(
                "POST",
                "/api/v2/onboarding/init",
                json={"source_app": "candidate", **seed},
            )
        except ProfileBackendError as e:
            return CreateResult(success=False, error=e.message)

        data = data or {}
        return CreateResult(
            success=True,
            profile=data.get("candidate"),
            account=data.get("user"),
        )

    async def fetch_account_record(self) -> dict:
        return await self._request("GET", "/api/v2/users/me")

    async def update_account_record(self, patch: dict) -> dict:
        return await self._request("PATCH", "/api/v2/users/me", json=patch)

    # ── Documents ────────────────────────────────────────────

    async def upload_document(self, file: ResumeFile, metadata: dict) -> dict:
        return await self._request(
            "POST",
            "/api/v2/documents",
            files={"file": (file.filename, file.content, file.content_type)},
            data=metadata,
        )

    async def delete_document(self, document_id: str) -> None:
        await self._request("DELETE", f"/api/v2/documents/{document_id}")
