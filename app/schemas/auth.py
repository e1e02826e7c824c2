# app/schemas/auth.py
import uuid

from pydantic import ConfigDict, EmailStr
from sqlmodel import SQLModel


class AuthIdentity(SQLModel):
    """Authenticated caller, resolved from a Supabase access token."""

    id: uuid.UUID
    email: str | None = None


class MagicLinkRequest(SQLModel):
    """Payload for requesting a sign-in link by email."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr


class MagicLinkVerify(SQLModel):
    """
    Payload for exchanging the `token_hash` from a magic link for a session.
    """

    model_config = ConfigDict(extra="forbid")

    token_hash: str
    type: str = "email"


class MagicLinkSent(SQLModel):
    email: EmailStr
    message: str


class SessionRead(SQLModel):
    """Supabase session returned after a successful magic link verification."""

    access_token: str
    refresh_token: str
    expires_in: int | None = None
    token_type: str = "bearer"
    user_id: uuid.UUID
    email: str | None = None
