import hashlib
import logging
import time
from datetime import datetime, timezone
from supabase import Client
from app.database.supabase_client import create_session_client, get_service_supabase
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    ProfileResponse, ProfileUpdate
)
from fastapi import HTTPException
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class TokenCache:
    """Users resolved from bearer tokens, keyed by token hash and kept for ttl seconds"""

    def __init__(self, ttl: float = 60, max_size: int = 500):
        self.ttl = ttl
        self.max_size = max_size
        self._entries: Dict[str, Tuple[Dict[str, Any], float]] = {}

    @staticmethod
    def _key(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        key = self._key(token)
        entry = self._entries.get(key)
        if entry is None:
            return None
        user, expires_at = entry
        if time.monotonic() >= expires_at:
            self._entries.pop(key, None)
            return None
        return user

    def put(self, token: str, user: Dict[str, Any]):
        now = time.monotonic()
        if len(self._entries) >= self.max_size:
            self._entries = {k: v for k, v in self._entries.items() if v[1] > now}
        if len(self._entries) < self.max_size:
            self._entries[self._key(token)] = (user, now + self.ttl)

    def drop(self, token: str):
        self._entries.pop(self._key(token), None)

    def clear(self):
        self._entries.clear()


# The dashboard fires many parallel requests with the same token
_token_cache = TokenCache()


def clear_auth_cache():
    _token_cache.clear()


def _auth_failure(action: str, error: Exception, client_errors: Tuple[str, ...], status: int, detail: str):
    message = str(error)
    if any(marker in message.lower() for marker in client_errors):
        return HTTPException(status_code=status, detail=detail)
    logger.error(f"{action} failed: {message}")
    return HTTPException(status_code=500, detail=f"{action} failed: {message}")


class AuthService:
    """
    Supabase Auth for farmers and admins.
    Sign-up and sign-in run on a throwaway client from session_client_factory, so the
    shared anon client never holds a user session.
    """

    def __init__(
        self,
        supabase: Client,
        session_client_factory: Optional[Callable[[], Client]] = None,
        admin_supabase: Optional[Client] = None
    ):
        self.supabase = supabase
        self.session_client_factory = session_client_factory or create_session_client
        self._admin_supabase = admin_supabase

    @property
    def admin_supabase(self) -> Client:
        if self._admin_supabase is None:
            self._admin_supabase = get_service_supabase()
        return self._admin_supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        metadata = register_data.model_dump(include={"display_name", "phone_number"}, exclude_none=True)
        try:
            response = self.session_client_factory().auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {"data": metadata}
            })
        except Exception as e:
            raise _auth_failure("Registration", e, ("already registered", "already exists"), 400, "User already exists")

        if not response.user:
            raise HTTPException(status_code=400, detail="Failed to register user")
        logger.info(f"Registered user {response.user.id}")
        return RegisterResponse(
            user_id=response.user.id,
            email=response.user.email or register_data.email,
            message="User registered successfully"
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        try:
            response = self.session_client_factory().auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
        except Exception as e:
            raise _auth_failure("Login", e, ("invalid", "credentials"), 401, "Invalid email or password")

        if not response.user or not response.session:
            raise HTTPException(status_code=401, detail="Invalid credentials")
        return TokenResponse(
            access_token=response.session.access_token,
            token_type="bearer",
            user_id=response.user.id,
            email=response.user.email or login_data.email
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a bearer token to the Supabase user, cached briefly per token"""
        cached = _token_cache.get(token)
        if cached is not None:
            return cached
        try:
            response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.debug(f"Token rejected: {e}")
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        if not response or not response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        user = response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
        }
        _token_cache.put(token, user_data)
        return user_data

    def logout(self, token: str) -> bool:
        """Forget the cached user and revoke the token's session"""
        _token_cache.drop(token)
        try:
            self.admin_supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update the caller's profile row and return the refreshed profile"""
        try:
            update_data = profile_data.model_dump(exclude_none=True)
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("user_profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User profile not found")

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating profile: {e}")
            raise HTTPException(status_code=500, detail=str(e))
