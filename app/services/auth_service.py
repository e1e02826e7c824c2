# app/services/auth_service.py
import logging

from fastapi import HTTPException, status
from supabase import Client

from app.core.config import get_settings
from app.schemas.auth import MagicLinkSent, SessionRead

settings = get_settings()
logger = logging.getLogger(__name__)


class AuthService:
    """
    Passwordless sign-in through Supabase Auth.

    Sessions and tokens are owned by Supabase; this service only starts
    the magic link flow and exchanges the link's token hash for a session.
    First-time sign-in creates the auth user, whose profile is provisioned
    by the database trigger.
    """

    def send_magic_link(self, client: Client, email: str) -> MagicLinkSent:
        """
        Ask Supabase to email a magic link that redirects back to SITE_URL.

        Raises:
            HTTPException(400): if Supabase refuses the request.
        """
        try:
            client.auth.sign_in_with_otp(
                {
                    "email": email,
                    "options": {
                        "email_redirect_to": settings.magic_link_redirect_url,
                        "should_create_user": True,
                    },
                }
            )
        except Exception as exc:
            logger.error("Error sending magic link to %s: %s", email, exc)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Could not send magic link",
            )
        return MagicLinkSent(email=email, message="Check your email for the login link")

    def verify_magic_link(self, client: Client, token_hash: str, otp_type: str = "email") -> SessionRead:
        """
        Exchange a magic link token hash for a Supabase session.

        Raises:
            HTTPException(400): invalid/expired link or no session returned.
        """
        try:
            response = client.auth.verify_otp({"token_hash": token_hash, "type": otp_type})
        except Exception as exc:
            logger.error("Error verifying magic link: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or expired magic link",
            )

        session = response.session
        user = response.user
        if session is None or user is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid or expired magic link",
            )

        return SessionRead(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_in=session.expires_in,
            token_type=session.token_type or "bearer",
            user_id=user.id,
            email=user.email,
        )
