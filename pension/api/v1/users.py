"""User record endpoints for API v1.

Both endpoints require a bearer ID token; a caller may only read or
write their own record.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, EmailStr, Field

from pension.middleware.auth import require_user
from pension.models.user import UserRecord
from pension.services.identity import IdentityUser
from pension.services.user_store import UserStore, UserStoreError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


class UpsertUserRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128)
    email: EmailStr | None = None
    display_name: str | None = Field(default=None, max_length=200)
    photo_url: str | None = Field(default=None, max_length=2048)


def _get_store(request: Request) -> UserStore:
    store: UserStore | None = getattr(request.app.state, "user_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="User store not initialised.")
    return store


@router.post("", response_model=UserRecord)
async def upsert_user(
    body: UpsertUserRequest,
    user: IdentityUser = Depends(require_user),
    store: UserStore = Depends(_get_store),
) -> UserRecord:
    """Create or update the caller's user record.

    Fields left out of the body keep their stored values; a new record
    gets ``created_at`` set.
    """
    if body.user_id != user.user_id:
        logger.warning("users.uid_mismatch", token_uid=user.user_id, body_uid=body.user_id)
        raise HTTPException(status_code=403, detail="Cannot write another user's record.")

    record = UserRecord.from_identity(
        body.user_id,
        body.email or user.email,
        body.display_name or user.display_name,
        photo_url=body.photo_url or user.photo_url,
    )
    try:
        existing = await store.get(body.user_id)
        if existing is None:
            record = record.model_copy(update={"created_at": record.last_login_at})
        return await store.save(record)
    except UserStoreError as exc:
        raise HTTPException(status_code=503, detail="User store unavailable.") from exc


@router.get("/me", response_model=UserRecord)
async def get_current_user(
    user: IdentityUser = Depends(require_user),
    store: UserStore = Depends(_get_store),
) -> UserRecord:
    """Return the caller's stored record."""
    try:
        record = await store.get(user.user_id)
    except UserStoreError as exc:
        raise HTTPException(status_code=503, detail="User store unavailable.") from exc
    if record is None:
        raise HTTPException(status_code=404, detail="User record not found.")
    return record
