# app/services/profile_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.core.policies import PolicyViolation, current_uid
from app.core.profile_utils import (
    generate_initials,
    generate_random_avatar_url,
    sanitize_profile_data,
)
from app.models.profile import Profile
from app.repositories.profile_repo import ProfileRepository
from app.schemas.profile import ProfileRead, ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileService:
    """
    Business logic for Profile.

    Responsibilities:
      - fetch/update a profile as the session's caller
      - only full_name / avatar_url are ever written
      - map policy and constraint errors to HTTP errors

    A profile that does not exist and one the caller may not see are the
    same thing here: both are "not found".
    """

    def __init__(self, repo: ProfileRepository):
        self.repo = repo

    # ----- Helpers -----

    @staticmethod
    def parse_id(raw: uuid.UUID | str) -> uuid.UUID:
        """
        Coerce a profile id to UUID.

        Raises:
            HTTPException(400): malformed identifier.
        """
        if isinstance(raw, uuid.UUID):
            return raw
        try:
            return uuid.UUID(str(raw))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid profile id",
            )

    @staticmethod
    def _require_caller(session: Session) -> uuid.UUID:
        uid = current_uid(session)
        if uid is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not authenticated",
            )
        return uid

    @staticmethod
    def to_read(profile: Profile) -> ProfileRead:
        """Response model with derived initials."""
        return ProfileRead(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            avatar_url=profile.avatar_url,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
            initials=generate_initials(profile.full_name, profile.email or ""),
        )

    # ----- Operations -----

    def fetch_profile(self, session: Session, profile_id: uuid.UUID | str) -> Profile | None:
        """
        Profile for `profile_id` as seen by the session's caller.

        Returns None when the row is absent or belongs to someone else.
        """
        pid = self.parse_id(profile_id)
        profile = self.repo.get_by_id(session, pid)
        if profile is None:
            logger.info("Profile %s not found for caller %s", pid, current_uid(session))
        return profile

    def get_profile(self, session: Session, profile_id: uuid.UUID | str) -> Profile:
        """
        Like fetch_profile, but for routes.

        Raises:
            HTTPException(404): absent or not visible.
        """
        profile = self.fetch_profile(session, profile_id)
        if profile is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Profile not found",
            )
        return profile

    def get_me(self, session: Session) -> Profile:
        """Profile of the authenticated caller."""
        return self.get_profile(session, self._require_caller(session))

    def update_profile(
        self,
        session: Session,
        profile_id: uuid.UUID | str,
        payload: ProfileUpdate,
    ) -> Profile:
        """
        Partial update of full_name / avatar_url.

        Rules:
          - caller must be authenticated (401)
          - the row must be visible to the caller, i.e. owned (404)
          - values are trimmed; a blank avatar_url clears the avatar
          - updated_at is stamped by the server, never taken from the payload

        Raises:
            HTTPException(401/403/404/409)
        """
        self._require_caller(session)
        profile = self.get_profile(session, profile_id)

        fields = sanitize_profile_data(payload.model_dump(exclude_unset=True))
        if "full_name" in fields and fields["full_name"] is None:
            fields.pop("full_name")
        if fields.get("avatar_url") == "":
            fields["avatar_url"] = None

        for key, value in fields.items():
            setattr(profile, key, value)

        return self._save(session, profile)

    def update_me(self, session: Session, payload: ProfileUpdate) -> Profile:
        return self.update_profile(session, self._require_caller(session), payload)

    def randomize_avatar(self, session: Session) -> Profile:
        """Give the caller a fresh DiceBear avatar."""
        payload = ProfileUpdate(avatar_url=generate_random_avatar_url())
        return self.update_me(session, payload)

    def _save(self, session: Session, profile: Profile) -> Profile:
        try:
            return self.repo.update(session, profile)
        except PolicyViolation as exc:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=str(exc),
            )
        except IntegrityError as exc:
            logger.error("Error updating profile %s: %s", profile.id, exc.orig)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Profile update violates a constraint",
            )
