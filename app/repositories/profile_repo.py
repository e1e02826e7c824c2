# app/repositories/profile_repo.py
import uuid

from sqlalchemy.orm.attributes import flag_modified
from sqlmodel import Session, select

from app.models.profile import Profile


class ProfileRepository:
    """
    Data access layer for Profile.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic

    Every statement runs through the session's row policies
    (app/core/policies.py), so rows the caller does not own are simply
    not there: reads come back empty and writes raise PolicyViolation.
    """

    # ----- Reads -----

    def get_by_id(self, session: Session, profile_id: uuid.UUID) -> Profile | None:
        """
        Return the Profile with this id, or None if it is absent or not
        visible to the caller.

        Uses a SELECT rather than session.get() so that the identity map
        can never serve a row without the ownership criteria.
        """
        stmt = select(Profile).where(Profile.id == profile_id)
        return session.exec(stmt).first()

    def list(self, session: Session, skip: int = 0, limit: int = 50) -> list[Profile]:
        """Visible profiles, oldest first (at most the caller's own row)."""
        stmt = select(Profile).order_by(Profile.created_at).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    # ----- Writes -----

    @staticmethod
    def _commit(session: Session) -> None:
        """Commit, leaving the session usable if a policy or constraint rejects it."""
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise

    def insert(self, session: Session, profile: Profile) -> Profile:
        """
        Insert a Profile directly.

        Application code never needs this (rows are provisioned with the
        identity); it exists so the insert policy has a write path.
        """
        session.add(profile)
        self._commit(session)
        session.refresh(profile)
        return profile

    def update(self, session: Session, profile: Profile) -> Profile:
        """
        Persist changes to an existing Profile.

        Always emits an UPDATE, so updated_at is re-stamped even when no
        column actually changed.
        """
        flag_modified(profile, "updated_at")
        session.add(profile)
        self._commit(session)
        session.refresh(profile)
        return profile

    def delete(self, session: Session, profile: Profile) -> None:
        """Delete a Profile."""
        session.delete(profile)
        self._commit(session)
