import hashlib
import logging
import time
from supabase import Client
from copyforge.modules.auth.schemas import LoginRequest, TokenResponse
from fastapi import HTTPException
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# token hash -> (user dict, expiry); parallel requests from one session share a lookup
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Password sign-in through Supabase Auth; returns the session tokens"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid email or password")

            logger.info(f"User {auth_response.user.id} signed in")
            return TokenResponse(
                access_token=auth_response.session.access_token,
                refresh_token=getattr(auth_response.session, "refresh_token", None),
                user_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e).lower()
            if "invalid" in error_message or "credentials" in error_message or "confirmed" in error_message:
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail="Login failed")

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a session JWT (header or cookie) to the Supabase user. Any failure is a 401."""
        cache_key = _token_key(token)
        now = time.monotonic()
        cached = _AUTH_USER_CACHE.get(cache_key)
        if cached:
            user_data, expiry = cached
            if now < expiry:
                return user_data
            _AUTH_USER_CACHE.pop(cache_key, None)

        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.info(f"Rejected session token: {e}")
            raise HTTPException(status_code=401, detail="Unauthorized")
        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Unauthorized")

        user = user_response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
        }
        if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
            _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
        return user_data

    def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """profiles row for the user (full_name, avatar); None if the signup trigger has not created it yet"""
        try:
            result = self.supabase.table("profiles")\
                .select("user_id, email, full_name, avatar_url")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            return result.data[0] if result.data else None
        except Exception as e:
            logger.warning(f"Could not load profile for {user_id}: {e}")
            return None

    def logout(self, token: str) -> bool:
        """Revoke the refresh token and forget the cached user; the access JWT itself expires on its own"""
        _AUTH_USER_CACHE.pop(_token_key(token), None)
        try:
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Supabase sign_out failed: {e}")
            return False
