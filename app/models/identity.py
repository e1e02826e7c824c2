# app/models/identity.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import SQLModel, Field


class Identity(SQLModel, table=True):
    """
    Local mirror of the authentication identity record.

    In Supabase mode this role is played by auth.users and the row is
    created by Supabase Auth. Locally (SQLite / plain Postgres) the backend
    owns this table; inserting a row fires the profile provisioning hook
    (see app/core/lifecycle.py).
    """

    __tablename__ = "identities"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Sign-in email",
    )

    # Same shape as auth.users.raw_user_meta_data, e.g. {"full_name": "Ann"}
    raw_user_meta_data: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
