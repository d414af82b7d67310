"""User account records kept in the document store.

Authentication itself is delegated to the identity provider; these
records hold the profile fields the application shows back to the
user (display name, split first/last name, login timestamps).
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, EmailStr, Field


def split_display_name(display_name: str | None) -> tuple[str, str]:
    """Split ``"Asha Devi Rao"`` into ``("Asha", "Devi Rao")``."""
    if not display_name:
        return "", ""
    parts = display_name.split(" ")
    return parts[0], " ".join(parts[1:])


class UserRecord(BaseModel):
    user_id: str
    email: EmailStr | None = None
    display_name: str | None = None
    first_name: str = ""
    last_name: str = ""
    photo_url: str | None = None
    created_at: datetime | None = None
    last_login_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_identity(
        cls,
        user_id: str,
        email: str | None,
        display_name: str | None,
        *,
        photo_url: str | None = None,
        new_account: bool = False,
    ) -> UserRecord:
        first, last = split_display_name(display_name)
        now = datetime.now(UTC)
        return cls(
            user_id=user_id,
            email=email,
            display_name=display_name,
            first_name=first,
            last_name=last,
            photo_url=photo_url,
            created_at=now if new_account else None,
            last_login_at=now,
        )

    def merged_into(self, existing: UserRecord | None) -> UserRecord:
        """Return this record with fields the caller omitted taken from *existing*."""
        if existing is None:
            return self
        update = {
            field: getattr(existing, field)
            for field in ("email", "display_name", "photo_url", "created_at")
            if getattr(self, field) is None
        }
        if not self.first_name and not self.last_name:
            update["first_name"] = existing.first_name
            update["last_name"] = existing.last_name
        return self.model_copy(update=update)
