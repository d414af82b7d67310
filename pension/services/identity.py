"""Client for the Firebase Identity Toolkit REST API.

Account creation, password sign-in, password reset and ID-token lookup
are delegated to the identity provider; this service never sees or
stores password hashes.

API reference: https://firebase.google.com/docs/reference/rest/auth

Errors
------
The provider answers failed calls with HTTP 400 and a body like
``{"error": {"message": "EMAIL_EXISTS"}}``.  Those surface as
:class:`IdentityError` carrying the provider code.  Network failures
are retried with tenacity and then raised as
:class:`IdentityUnavailableError`.
"""

from __future__ import annotations

from typing import Any, Final

import httpx
import structlog
from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL: Final[str] = "https://identitytoolkit.googleapis.com/v1"

# Provider codes that mean "the caller got their credentials wrong".
CREDENTIAL_ERRORS: Final[frozenset[str]] = frozenset({
    "EMAIL_NOT_FOUND",
    "INVALID_PASSWORD",
    "INVALID_LOGIN_CREDENTIALS",
    "USER_DISABLED",
    "INVALID_ID_TOKEN",
    "TOKEN_EXPIRED",
    "USER_NOT_FOUND",
})
CONFLICT_ERRORS: Final[frozenset[str]] = frozenset({"EMAIL_EXISTS"})


class IdentityError(Exception):
    """The identity provider rejected a request."""

    def __init__(self, code: str, detail: str | None = None) -> None:
        self.code = code
        self.detail = detail
        super().__init__(f"{code}: {detail}" if detail else code)

    @property
    def is_credential_error(self) -> bool:
        return self.code in CREDENTIAL_ERRORS

    @property
    def is_conflict(self) -> bool:
        return self.code in CONFLICT_ERRORS


class IdentityUnavailableError(Exception):
    """The identity provider could not be reached."""


class AuthSession(BaseModel):
    user_id: str
    email: str | None = None
    display_name: str | None = None
    id_token: str
    refresh_token: str | None = None
    expires_in: int = 3600


class IdentityUser(BaseModel):
    user_id: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    email_verified: bool = False


class IdentityClient:
    """Async client for the identity provider's account endpoints.

    Parameters
    ----------
    api_key:
        Web API key of the identity project.
    base_url:
        Identity Toolkit base URL; override for the local emulator.
    transport:
        Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        max_attempts: int = 3,
        retry_wait: wait_base | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait or wait_exponential(multiplier=0.5, min=0.5, max=4)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(httpx.TransportError),
                stop=stop_after_attempt(self._max_attempts),
                wait=self._retry_wait,
                reraise=True,
            ):
                with attempt:
                    response = await self._client.post(
                        f"{self._base_url}/{endpoint}",
                        params={"key": self._api_key},
                        json=payload,
                    )
        except httpx.TransportError as exc:
            logger.error("identity.unreachable", endpoint=endpoint, error=str(exc))
            raise IdentityUnavailableError(str(exc)) from exc

        if response.is_success:
            return response.json()

        code, detail = _parse_error(response)
        logger.info("identity.request_rejected", endpoint=endpoint, code=code, status=response.status_code)
        raise IdentityError(code, detail)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def sign_up(self, email: str, password: str) -> AuthSession:
        data = await self._post(
            "accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return _session_from(data)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        data = await self._post(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return _session_from(data)

    async def update_profile(self, id_token: str, *, display_name: str) -> None:
        await self._post(
            "accounts:update",
            {"idToken": id_token, "displayName": display_name, "returnSecureToken": False},
        )

    async def send_password_reset(self, email: str) -> None:
        await self._post("accounts:sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})

    async def lookup(self, id_token: str) -> IdentityUser:
        """Resolve an ID token to the account it belongs to."""
        data = await self._post("accounts:lookup", {"idToken": id_token})
        users = data.get("users") or []
        if not users:
            raise IdentityError("USER_NOT_FOUND")
        user = users[0]
        return IdentityUser(
            user_id=user["localId"],
            email=user.get("email"),
            display_name=user.get("displayName"),
            photo_url=user.get("photoUrl"),
            email_verified=bool(user.get("emailVerified", False)),
        )


# ---------------------------------------------------------------------------
# Module-level utilities
# ---------------------------------------------------------------------------


def _session_from(data: dict[str, Any]) -> AuthSession:
    return AuthSession(
        user_id=data["localId"],
        email=data.get("email"),
        display_name=data.get("displayName") or None,
        id_token=data["idToken"],
        refresh_token=data.get("refreshToken"),
        expires_in=int(data.get("expiresIn", 3600)),
    )


def _parse_error(response: httpx.Response) -> tuple[str, str | None]:
    """Extract ``("WEAK_PASSWORD", "Password should be ...")`` from an error body."""
    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP_{response.status_code}", None

    code, _, detail = str(message).partition(" : ")
    return code.strip(), detail.strip() or None
