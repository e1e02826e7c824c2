# app/schemas/profile.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from app.core.profile_utils import is_valid_avatar_url


class ProfileRead(SQLModel):
    """
    Response schema returned to clients.

    `initials` is derived (name initials, or the email's first letter)
    so clients can render an avatar fallback.
    """

    id: uuid.UUID
    email: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None
    created_at: datetime
    updated_at: datetime
    initials: str = ""


class ProfileUpdate(SQLModel):
    """
    Partial profile update for the owning user.

    Only `full_name` and `avatar_url` are editable. Anything else in the
    body (id, email, created_at, updated_at, ...) is ignored, not rejected:
    those columns are server-controlled.
    """

    model_config = ConfigDict(extra="ignore")

    full_name: str | None = Field(default=None, max_length=200)
    avatar_url: str | None = Field(default=None, max_length=2048)

    @field_validator("avatar_url")
    @classmethod
    def check_avatar_url(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not is_valid_avatar_url(v):
            raise ValueError("avatar_url must be an http(s) URL")
        return v
