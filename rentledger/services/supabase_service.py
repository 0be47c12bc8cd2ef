"""
Supabase Integration Service
Wraps Supabase Auth for sign-up, sign-in, password reset and admin password
updates. Sessions are never kept on a shared client: every end-user call
runs on a throwaway client so one request cannot see another's session.
"""
import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from supabase import create_client, Client

from rentledger.core.config import settings

logger = logging.getLogger(__name__)


class SupabaseAuthError(Exception):
    """Supabase rejected an auth call (bad credentials, duplicate email, ...)"""


class SupabaseService:
    """Service for Supabase authentication"""

    def __init__(self, url: str = None, anon_key: str = None, service_key: str = None):
        self.url = url or settings.SUPABASE_URL
        self.anon_key = anon_key or settings.SUPABASE_KEY
        self.service_key = service_key or settings.SUPABASE_SERVICE_ROLE_KEY
        self._admin: Optional[Client] = None

    def _anon_client(self) -> Client:
        return create_client(self.url, self.anon_key)

    @property
    def admin(self) -> Client:
        """Service-role client for admin and storage APIs"""
        if self._admin is None:
            self._admin = create_client(self.url, self.service_key or self.anon_key)
            logger.info("Supabase admin client initialized")
        return self._admin

    def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None,
        redirect_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a new Supabase user

        Returns:
            {"id": ..., "email": ...}

        Raises:
            SupabaseAuthError: if Supabase refuses the sign-up
        """
        options: Dict[str, Any] = {"data": metadata or {}}
        if redirect_to:
            options["email_redirect_to"] = redirect_to
        try:
            response = self._anon_client().auth.sign_up({
                "email": email,
                "password": password,
                "options": options,
            })
        except Exception as e:
            logger.warning(f"Supabase sign-up failed for {email}: {e}")
            raise SupabaseAuthError(str(e)) from e

        if not response.user:
            raise SupabaseAuthError("Failed to create user")
        return {"id": response.user.id, "email": response.user.email}

    def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """
        Sign in with email + password

        Returns:
            user, access_token, refresh_token and expires_in
        """
        try:
            response = self._anon_client().auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except Exception as e:
            logger.info(f"Supabase sign-in failed for {email}: {e}")
            raise SupabaseAuthError("Invalid email or password") from e

        if not response.user or not response.session:
            raise SupabaseAuthError("Invalid email or password")

        return {
            "user": {
                "id": response.user.id,
                "email": response.user.email,
                "user_metadata": response.user.user_metadata or {},
            },
            "access_token": response.session.access_token,
            "refresh_token": response.session.refresh_token,
            "expires_in": response.session.expires_in,
        }

    def verify_password(self, email: str, password: str) -> bool:
        try:
            self.sign_in(email, password)
            return True
        except SupabaseAuthError:
            return False

    def sign_out(self, access_token: str) -> None:
        """Revoke the session behind access_token"""
        try:
            self.admin.auth.admin.sign_out(access_token)
        except Exception as e:
            logger.warning(f"Supabase sign-out failed: {e}")

    def reset_password(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Send password reset email"""
        options = {"redirect_to": redirect_to} if redirect_to else {}
        try:
            self._anon_client().auth.reset_password_for_email(email, options)
        except Exception as e:
            logger.warning(f"Supabase password reset failed for {email}: {e}")
            raise SupabaseAuthError(str(e)) from e

    def update_password(self, user_id: str, new_password: str) -> None:
        try:
            self.admin.auth.admin.update_user_by_id(str(user_id), {"password": new_password})
        except Exception as e:
            logger.error(f"Supabase password update failed for {user_id}: {e}")
            raise SupabaseAuthError(str(e)) from e


@lru_cache()
def get_supabase_service() -> SupabaseService:
    """Dependency returning the process-wide Supabase service"""
    return SupabaseService()
