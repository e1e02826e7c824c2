# app/routers/auth.py
from fastapi import APIRouter, Depends
from supabase import Client

from app.core.supabase_client import supabase_public
from app.schemas.auth import MagicLinkRequest, MagicLinkSent, MagicLinkVerify, SessionRead
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

service = AuthService()


@router.post("/magic-link", response_model=MagicLinkSent)
def request_magic_link(
    payload: MagicLinkRequest,
    client: Client = Depends(supabase_public),
):
    """
    Email a passwordless sign-in link.

    New emails are signed up on first use.
    """
    return service.send_magic_link(client, payload.email)


@router.post("/verify", response_model=SessionRead)
def verify_magic_link(
    payload: MagicLinkVerify,
    client: Client = Depends(supabase_public),
):
    """
    Exchange the `token_hash` from a magic link for access/refresh tokens.
    """
    return service.verify_magic_link(client, payload.token_hash, payload.type)
