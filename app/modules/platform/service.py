import json
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from supabase import Client
from app.modules.platform.schemas import (
    PlatformConfigUpsert, PlatformConfigResponse, UserSettings, ApiKeyResponse,
    PlatformPageCreate, PlatformPageUpdate, PlatformPageResponse
)
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

USER_SETTINGS_PREFIX = "user_settings_"
API_KEY_NAME = "Primary API Key"
_KEY_ALPHABET = string.ascii_lowercase + string.digits


def user_settings_key(user_id: str) -> str:
    return f"{USER_SETTINGS_PREFIX}{user_id}"


def generate_api_key() -> str:
    """ak_<epoch ms>_<13 random base36 chars>"""
    suffix = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(13))
    return f"ak_{int(time.time() * 1000)}_{suffix}"


class PlatformConfigService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_config(self) -> List[PlatformConfigResponse]:
        """Platform-wide keys; per-user settings rows are left out"""
        try:
            result = self.supabase.table("platform_config")\
                .select("*")\
                .order("key")\
                .execute()
            return [
                PlatformConfigResponse(**row) for row in result.data
                if not row["key"].startswith(USER_SETTINGS_PREFIX)
            ]
        except Exception as e:
            logger.error(f"Error fetching platform configuration: {e}")
            raise HTTPException(status_code=500, detail="Failed to load platform configuration")

    def _get_row(self, key: str) -> Optional[dict]:
        result = self.supabase.table("platform_config")\
            .select("*")\
            .eq("key", key)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def get_config(self, key: str) -> PlatformConfigResponse:
        try:
            row = self._get_row(key)
        except Exception as e:
            logger.error(f"Error fetching platform config {key}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load platform configuration")
        if not row:
            raise HTTPException(status_code=404, detail="Configuration key not found")
        return PlatformConfigResponse(**row)

    def upsert_config(self, key: str, data: PlatformConfigUpsert, updated_by: Optional[str]) -> PlatformConfigResponse:
        try:
            result = self.supabase.table("platform_config").upsert({
                "key": key,
                "value": data.value,
                "description": data.description,
                "updated_by": updated_by,
                "updated_at": datetime.now(timezone.utc).isoformat()
            }, on_conflict="key").execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to save configuration")

            logger.info(f"Platform config {key} updated by {updated_by}")
            return PlatformConfigResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving platform config {key}: {e}")
            raise HTTPException(status_code=500, detail="Failed to save configuration")

    def delete_config(self, key: str) -> bool:
        try:
            result = self.supabase.table("platform_config")\
                .delete()\
                .eq("key", key)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            logger.error(f"Error deleting platform config {key}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete configuration")

    # Per-user settings

    def get_user_settings(self, user_id: str) -> UserSettings:
        """Saved settings, or defaults when absent or unreadable"""
        try:
            row = self._get_row(user_settings_key(user_id))
        except Exception as e:
            logger.error(f"Error fetching user settings: {e}")
            return UserSettings()
        if not row:
            return UserSettings()
        try:
            return UserSettings.model_validate(json.loads(row["value"]))
        except ValueError as e:
            logger.warning(f"Stored settings for {user_id} are invalid, using defaults: {e}")
            return UserSettings()

    def save_user_settings(self, user_id: str, user_settings: UserSettings) -> UserSettings:
        try:
            self.supabase.table("platform_config").upsert({
                "key": user_settings_key(user_id),
                "value": user_settings.model_dump_json(by_alias=True),
                "description": "User settings and preferences",
                "updated_by": user_id,
                "updated_at": datetime.now(timezone.utc).isoformat()
            }, on_conflict="key").execute()
            return user_settings
        except Exception as e:
            logger.error(f"Error saving user settings: {e}")
            raise HTTPException(status_code=500, detail="Failed to save settings")

    # Device API keys

    def get_api_key(self, user_id: str) -> ApiKeyResponse:
        try:
            result = self.supabase.table("device_api_keys")\
                .select("key, name")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if not result.data:
                return ApiKeyResponse()
            return ApiKeyResponse(**result.data[0])
        except Exception as e:
            logger.error(f"Error fetching API key: {e}")
            raise HTTPException(status_code=500, detail="Failed to load API key")

    def regenerate_api_key(self, user_id: str) -> ApiKeyResponse:
        """Replace the user's device API key with a fresh one"""
        new_key = generate_api_key()
        try:
            self.supabase.table("device_api_keys").upsert({
                "user_id": user_id,
                "name": API_KEY_NAME,
                "key": new_key
            }, on_conflict="user_id").execute()
            logger.info(f"Device API key regenerated for user {user_id}")
            return ApiKeyResponse(key=new_key, name=API_KEY_NAME)
        except Exception as e:
            logger.error(f"Error generating API key: {e}")
            raise HTTPException(status_code=500, detail="Failed to generate API key")


class PlatformPageService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_pages(self, include_drafts: bool = False) -> List[PlatformPageResponse]:
        try:
            query = self.supabase.table("platform_pages").select("*")
            if not include_drafts:
                query = query.eq("is_published", True)
            result = query.order("created_at", desc=True).execute()
            return [PlatformPageResponse(**page) for page in result.data]
        except Exception as e:
            logger.error(f"Error fetching platform pages: {e}")
            raise HTTPException(status_code=500, detail="Failed to load pages")

    def _find(self, column: str, value: str) -> Optional[dict]:
        result = self.supabase.table("platform_pages")\
            .select("*")\
            .eq(column, value)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def get_page_by_slug(self, slug: str, include_drafts: bool = False) -> PlatformPageResponse:
        try:
            page = self._find("slug", slug)
        except Exception as e:
            logger.error(f"Error fetching platform page {slug}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load page")
        if not page or (not page.get("is_published") and not include_drafts):
            raise HTTPException(status_code=404, detail="Page not found")
        return PlatformPageResponse(**page)

    def create_page(self, page_data: PlatformPageCreate, user_id: str) -> PlatformPageResponse:
        try:
            if self._find("slug", page_data.slug):
                raise HTTPException(status_code=409, detail=f"A page with slug '{page_data.slug}' already exists")
            result = self.supabase.table("platform_pages").insert({
                **page_data.model_dump(mode="json"),
                "created_by": user_id,
                "updated_by": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create page")

            return PlatformPageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating platform page: {e}")
            raise HTTPException(status_code=500, detail="Failed to create page")

    def update_page(self, page_id: str, page_data: PlatformPageUpdate, user_id: str) -> PlatformPageResponse:
        try:
            update_data = page_data.model_dump(mode="json", exclude_unset=True)
            if update_data.get("slug"):
                existing = self._find("slug", update_data["slug"])
                if existing and existing["id"] != page_id:
                    raise HTTPException(status_code=409, detail=f"A page with slug '{update_data['slug']}' already exists")
            update_data["updated_by"] = user_id
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("platform_pages")\
                .update(update_data)\
                .eq("id", page_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Page not found")

            return PlatformPageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating platform page: {e}")
            raise HTTPException(status_code=500, detail="Failed to update page")

    def delete_page(self, page_id: str) -> bool:
        try:
            result = self.supabase.table("platform_pages")\
                .delete()\
                .eq("id", page_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            logger.error(f"Error deleting platform page: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete page")
