# app/repositories/identity_repo.py
import uuid
from typing import Any

from sqlmodel import Session, select

from app.models.identity import Identity


class IdentityRepository:
    """
    Data access layer for the local identity table.

    Creating an identity also creates its profile (provisioning hook),
    inside the same commit.
    """

    def get_by_id(self, session: Session, identity_id: uuid.UUID) -> Identity | None:
        return session.get(Identity, identity_id)

    def get_by_email(self, session: Session, email: str) -> Identity | None:
        stmt = select(Identity).where(Identity.email == email)
        return session.exec(stmt).first()

    def create(
        self,
        session: Session,
        *,
        email: str,
        user_metadata: dict[str, Any] | None = None,
        identity_id: uuid.UUID | None = None,
    ) -> Identity:
        """
        Insert a new Identity and return the persisted row.

        Raises:
            sqlalchemy.exc.IntegrityError: duplicate id/email, or the
                profile could not be provisioned. Nothing is persisted.
        """
        identity = Identity(email=email, raw_user_meta_data=dict(user_metadata or {}))
        if identity_id is not None:
            identity.id = identity_id
        session.add(identity)
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(identity)
        return identity
