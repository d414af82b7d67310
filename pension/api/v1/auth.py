"""Account endpoints backed by the identity provider.

Passwords go straight to the provider; this service only keeps the
profile document in the user store.  Store failures during sign-up or
sign-in are logged and do not fail the request, since the account
itself already exists at the provider.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, EmailStr, Field

from pension.middleware.auth import get_identity
from pension.models.user import UserRecord
from pension.services.identity import (
    AuthSession,
    IdentityClient,
    IdentityError,
    IdentityUnavailableError,
)
from pension.services.user_store import UserStore, UserStoreError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    display_name: str | None = Field(default=None, max_length=200)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetResponse(BaseModel):
    success: bool = True
    message: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _http_error(exc: IdentityError | IdentityUnavailableError) -> HTTPException:
    """Translate an identity-provider failure into an HTTP error."""
    if isinstance(exc, IdentityUnavailableError):
        return HTTPException(status_code=502, detail="Identity provider is unavailable.")
    if exc.is_conflict:
        return HTTPException(status_code=409, detail="An account with this email already exists.")
    if exc.is_credential_error:
        return HTTPException(status_code=401, detail="Invalid email or password.")
    return HTTPException(status_code=400, detail={"code": exc.code, "message": exc.detail or exc.code})


async def _record_user(request: Request, record: UserRecord) -> None:
    store: UserStore | None = getattr(request.app.state, "user_store", None)
    if store is None:
        return
    try:
        await store.save(record)
    except UserStoreError:
        logger.warning("auth.user_record_not_saved", user_id=record.user_id, exc_info=True)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/signup", response_model=AuthSession, status_code=201)
async def sign_up(
    body: SignUpRequest,
    request: Request,
    identity: IdentityClient = Depends(get_identity),
) -> AuthSession:
    """Create an account, set its display name and store the user record."""
    try:
        session = await identity.sign_up(body.email, body.password)
        if body.display_name:
            await identity.update_profile(session.id_token, display_name=body.display_name)
            session = session.model_copy(update={"display_name": body.display_name})
    except (IdentityError, IdentityUnavailableError) as exc:
        raise _http_error(exc) from exc

    await _record_user(
        request,
        UserRecord.from_identity(
            session.user_id,
            session.email or body.email,
            session.display_name,
            new_account=True,
        ),
    )
    logger.info("auth.signed_up", user_id=session.user_id)
    return session


@router.post("/signin", response_model=AuthSession)
async def sign_in(
    body: SignInRequest,
    request: Request,
    identity: IdentityClient = Depends(get_identity),
) -> AuthSession:
    """Exchange email and password for an ID token."""
    try:
        session = await identity.sign_in(body.email, body.password)
    except (IdentityError, IdentityUnavailableError) as exc:
        raise _http_error(exc) from exc

    await _record_user(
        request,
        UserRecord.from_identity(session.user_id, session.email or body.email, session.display_name),
    )
    logger.info("auth.signed_in", user_id=session.user_id)
    return session


@router.post("/password-reset", response_model=PasswordResetResponse)
async def password_reset(
    body: PasswordResetRequest,
    identity: IdentityClient = Depends(get_identity),
) -> PasswordResetResponse:
    """Ask the provider to email a password-reset link."""
    try:
        await identity.send_password_reset(body.email)
    except IdentityError as exc:
        # Unknown addresses get the same answer as known ones.
        if exc.code != "EMAIL_NOT_FOUND":
            raise _http_error(exc) from exc
        logger.info("auth.password_reset_unknown_email")
    except IdentityUnavailableError as exc:
        raise _http_error(exc) from exc

    return PasswordResetResponse(message="If the address is registered, a reset email has been sent.")
