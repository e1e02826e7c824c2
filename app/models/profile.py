# app/models/profile.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


class Profile(SQLModel, table=True):
    """
    Application-owned profile, one row per identity.

    Identity:
      - id: equals the owning identity id (auth.users.id / identities.id).
        Never generated here and never changed.

    Lifecycle:
      - created only by the provisioning hook when the identity is created
      - updated_at is stamped by the server on every update

    Every ORM query on this table is scoped to the caller's own row
    (app/core/policies.py).
    """

    __tablename__ = "profiles"

    id: uuid.UUID = Field(
        primary_key=True,
        foreign_key="identities.id",
        ondelete="CASCADE",
        description="Matches the owning identity id",
    )

    email: str | None = Field(
        default=None,
        description="Copied from the identity at provisioning time",
    )

    full_name: str | None = Field(
        default="",
        description="User-editable display name",
    )

    avatar_url: str | None = Field(
        default=None,
        description="User-editable avatar image URL",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        nullable=False,
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
