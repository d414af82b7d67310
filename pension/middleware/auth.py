"""Bearer ID-token authentication for user endpoints.

Provides a FastAPI dependency that resolves the ``Authorization:
Bearer <id token>`` header to an identity-provider account.  Tokens
are checked against the provider on every call; nothing is cached.
"""

from __future__ import annotations

import structlog
from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pension.services.identity import (
    IdentityClient,
    IdentityError,
    IdentityUnavailableError,
    IdentityUser,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_identity(request: Request) -> IdentityClient:
    """Return the app's identity client or fail with 503 if it is not configured."""
    identity: IdentityClient | None = getattr(request.app.state, "identity", None)
    if identity is None:
        raise HTTPException(
            status_code=503,
            detail="Authentication is not configured.",
        )
    return identity


async def require_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> IdentityUser:
    """FastAPI dependency returning the account behind the bearer token.

    Raises 401 when the header is missing or the token is rejected,
    502 when the identity provider cannot be reached.

    Usage::

        @router.get("/users/me")
        async def me(user: IdentityUser = Depends(require_user)): ...
    """
    identity = get_identity(request)

    if credentials is None or not credentials.credentials:
        logger.warning("auth.missing_token", path=request.url.path)
        raise HTTPException(
            status_code=401,
            detail="Missing bearer token.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return await identity.lookup(credentials.credentials)
    except IdentityError as exc:
        logger.warning("auth.invalid_token", path=request.url.path, code=exc.code)
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token.",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    except IdentityUnavailableError as exc:
        raise HTTPException(
            status_code=502,
            detail="Identity provider is unavailable.",
        ) from exc
