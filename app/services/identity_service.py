# app/services/identity_service.py
import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.models.identity import Identity
from app.repositories.identity_repo import IdentityRepository

logger = logging.getLogger(__name__)


class IdentityService:
    """
    Local sign-up (non-Supabase deployments, seeding, tests).

    With Supabase, identities are created by Supabase Auth when a magic
    link is first used, and the database trigger provisions the profile.
    """

    def __init__(self, repo: IdentityRepository):
        self.repo = repo

    def create_identity(
        self,
        session: Session,
        email: str,
        full_name: str | None = None,
    ) -> Identity:
        """
        Create an identity; its profile is provisioned in the same commit.

        Raises:
            HTTPException(409): email already registered, or provisioning failed.
        """
        email = email.strip().lower()
        metadata = {"full_name": full_name} if full_name is not None else {}
        try:
            identity = self.repo.create(session, email=email, user_metadata=metadata)
        except IntegrityError as exc:
            logger.error("Error creating identity %s: %s", email, exc.orig)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Identity could not be created",
            )
        logger.info("Created identity %s (%s)", identity.id, email)
        return identity
