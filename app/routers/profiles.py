# app/routers/profiles.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import get_caller_session, require_auth
from app.repositories.profile_repo import ProfileRepository
from app.schemas.profile import ProfileRead, ProfileUpdate
from app.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["Profiles"])

repo = ProfileRepository()
service = ProfileService(repo)


@router.get("/me", response_model=ProfileRead, dependencies=[Depends(require_auth)])
def read_me(session: Session = Depends(get_caller_session)):
    """
    Return the authenticated user's profile.

    Auth:
      - Requires valid Supabase JWT.
    """
    return service.to_read(service.get_me(session))


@router.patch("/me", response_model=ProfileRead, dependencies=[Depends(require_auth)])
def update_me(
    payload: ProfileUpdate,
    session: Session = Depends(get_caller_session),
):
    """
    Update the authenticated user's profile (partial update).

    Editable: full_name, avatar_url. Other body fields are ignored.
    """
    return service.to_read(service.update_me(session, payload))


@router.post(
    "/me/avatar/random",
    response_model=ProfileRead,
    dependencies=[Depends(require_auth)],
)
def randomize_avatar(session: Session = Depends(get_caller_session)):
    """Replace the avatar with a random DiceBear fun-emoji image."""
    return service.to_read(service.randomize_avatar(session))


@router.get("/{profile_id}", response_model=ProfileRead)
def read_profile(
    profile_id: uuid.UUID,
    session: Session = Depends(get_caller_session),
):
    """
    Fetch a profile by id.

    Only the owner can see it; everyone else (anonymous included) gets 404,
    exactly as if the row did not exist.
    """
    return service.to_read(service.get_profile(session, profile_id))
