"""HTTP client for the account service (register / login / profile)."""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from mentor_match.application.exceptions import (
    InvalidCredentialsError,
    ProfileServiceError,
    ProfileServiceUnavailableError,
    UserExistsError,
    UserNotFoundError,
)
from mentor_match.application.session_context import SessionContext
from mentor_match.domain.models import AuthResult, User

# Server messages that map onto a specific error class
_KNOWN_MESSAGES: dict[str, type[ProfileServiceError]] = {
    "user already exists": UserExistsError,
    "user not found": UserNotFoundError,
    "invalid credentials": InvalidCredentialsError,
}


def _error_for(response: httpx.Response, fallback: str) -> ProfileServiceError:
    try:
        body = response.json()
    except ValueError:
        body = None
    message = (body.get("message") if isinstance(body, dict) else None) or fallback

    if response.status_code >= 500:
        return ProfileServiceUnavailableError(fallback, status_code=response.status_code)

    error_cls = _KNOWN_MESSAGES.get(message.strip().lower())
    if error_cls is None and response.status_code == 404:
        error_cls = UserNotFoundError
    return (error_cls or ProfileServiceError)(message, status_code=response.status_code)


class ProfileClient:
    """Async client for the account service.

    The bearer token of the session context is attached to every request.

    Parameters
    ----------
    base_url:
        Root of the API, e.g. ``http://localhost:5000/api``.
    context:
        The session whose token authorises requests.
    timeout_seconds:
        Per-request timeout used when no client is injected.
    client:
        Optional pre-built ``httpx.AsyncClient`` (tests inject one with a
        mock or ASGI transport).
    """

    def __init__(
        self,
        base_url: str,
        context: SessionContext,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.context = context
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._owns_client = client is None
        self._base_url = base_url.rstrip("/")

    @property
    def http(self) -> httpx.AsyncClient:
        """The underlying ``httpx`` client."""
        return self._client

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        data = await self._request(
            "POST",
            "/users/register",
            "Registration failed",
            json={"name": name, "email": email, "password": password},
        )
        return self._auth_result(data, "Registration failed")

    async def login(self, email: str, password: str) -> AuthResult:
        data = await self._request(
            "POST",
            "/users/login",
            "Login failed",
            json={"email": email, "password": password},
        )
        return self._auth_result(data, "Login failed")

    async def get_profile(self, user_id: str) -> User:
        data = await self._request("GET", f"/users/profile/{user_id}", "Failed to get user profile")
        return self._user(data, "Failed to get user profile")

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> User:
        data = await self._request(
            "PUT",
            "/users/profile",
            "Profile update failed",
            json={"userId": user_id, **fields},
        )
        return self._user(data.get("user"), "Profile update failed")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, failure: str, **kwargs: Any) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.context.token:
            headers["Authorization"] = f"Bearer {self.context.token}"

        try:
            response = await self._client.request(
                method, f"{self._base_url}{path}", headers=headers, **kwargs
            )
        except httpx.HTTPError as exc:
            logger.warning("{} {} failed | {}: {}", method, path, type(exc).__name__, exc)
            raise ProfileServiceUnavailableError(failure) from exc

        if response.is_error:
            error = _error_for(response, failure)
            logger.warning("{} {} -> {} | {}", method, path, response.status_code, error.message)
            raise error

        try:
            return response.json()
        except ValueError as exc:
            raise ProfileServiceError(failure, status_code=response.status_code) from exc

    @staticmethod
    def _user(data: Any, failure: str) -> User:
        try:
            return User.model_validate(data)
        except ValidationError as exc:
            raise ProfileServiceError(failure) from exc

    def _auth_result(self, data: dict, failure: str) -> AuthResult:
        token = data.get("token")
        if not token:
            raise ProfileServiceError(failure)
        return AuthResult(user=self._user(data.get("user"), failure), token=token)
