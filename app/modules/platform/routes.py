from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.platform.schemas import (
    PlatformConfigUpsert, PlatformConfigResponse, UserSettings, ApiKeyResponse,
    PlatformPageCreate, PlatformPageUpdate, PlatformPageResponse
)
from app.modules.platform.service import PlatformConfigService, PlatformPageService
from app.core.dependencies import require_permission, is_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/platform", tags=["platform"])


def get_config_service(supabase: Client = Depends(get_supabase)) -> PlatformConfigService:
    return PlatformConfigService(supabase)


def get_page_service(supabase: Client = Depends(get_supabase)) -> PlatformPageService:
    return PlatformPageService(supabase)


# Platform configuration (admins)

@router.get("/config", response_model=List[PlatformConfigResponse])
async def list_config(
    user_data: Dict = Depends(require_permission("platform:manage")),
    service: PlatformConfigService = Depends(get_config_service)
):
    return service.list_config()


@router.get("/config/{key}", response_model=PlatformConfigResponse)
async def get_config(
    key: str,
    user_data: Dict = Depends(require_permission("platform:manage")),
    service: PlatformConfigService = Depends(get_config_service)
):
    return service.get_config(key)


@router.put("/config/{key}", response_model=PlatformConfigResponse)
async def upsert_config(
    key: str,
    data: PlatformConfigUpsert,
    user_data: Dict = Depends(require_permission("platform:manage")),
    service: PlatformConfigService = Depends(get_config_service)
):
    return service.upsert_config(key, data, user_data["id"])


@router.delete("/config/{key}", status_code=204)
async def delete_config(
    key: str,
    user_data: Dict = Depends(require_permission("platform:manage")),
    service: PlatformConfigService = Depends(get_config_service)
):
    if not service.delete_config(key):
        raise HTTPException(status_code=404, detail="Configuration key not found")
    return None


# Current user's settings and device API key

@router.get("/settings", response_model=UserSettings)
async def get_user_settings(
    user_data: Dict = Depends(require_permission("platform:read")),
    service: PlatformConfigService = Depends(get_config_service)
):
    return service.get_user_settings(user_data["id"])


@router.put("/settings", response_model=UserSettings)
async def save_user_settings(
    user_settings: UserSettings,
    user_data: Dict = Depends(require_permission("platform:read")),
    service: PlatformConfigService = Depends(get_config_service)
):
    return service.save_user_settings(user_data["id"], user_settings)


@router.get("/api-key", response_model=ApiKeyResponse)
async def get_api_key(
    user_data: Dict = Depends(require_permission("devices:read")),
    service: PlatformConfigService = Depends(get_config_service)
):
    return service.get_api_key(user_data["id"])


@router.post("/api-key", response_model=ApiKeyResponse, status_code=201)
async def regenerate_api_key(
    user_data: Dict = Depends(require_permission("devices:update")),
    service: PlatformConfigService = Depends(get_config_service)
):
    """Generate a new device API key, replacing the previous one"""
    return service.regenerate_api_key(user_data["id"])


# Platform pages

@router.get("/pages", response_model=List[PlatformPageResponse])
async def list_pages(
    user_data: Dict = Depends(require_permission("platform:read")),
    service: PlatformPageService = Depends(get_page_service)
):
    """Published pages; admins also see drafts"""
    return service.list_pages(include_drafts=is_admin(user_data["profile"]))


@router.get("/pages/{slug}", response_model=PlatformPageResponse)
async def get_page(
    slug: str,
    user_data: Dict = Depends(require_permission("platform:read")),
    service: PlatformPageService = Depends(get_page_service)
):
    return service.get_page_by_slug(slug, include_drafts=is_admin(user_data["profile"]))


@router.post("/pages", response_model=PlatformPageResponse, status_code=201)
async def create_page(
    page_data: PlatformPageCreate,
    user_data: Dict = Depends(require_permission("platform:manage")),
    service: PlatformPageService = Depends(get_page_service)
):
    return service.create_page(page_data, user_data["id"])


@router.put("/pages/{page_id}", response_model=PlatformPageResponse)
async def update_page(
    page_id: str,
    page_data: PlatformPageUpdate,
    user_data: Dict = Depends(require_permission("platform:manage")),
    service: PlatformPageService = Depends(get_page_service)
):
    return service.update_page(page_id, page_data, user_data["id"])


@router.delete("/pages/{page_id}", status_code=204)
async def delete_page(
    page_id: str,
    user_data: Dict = Depends(require_permission("platform:manage")),
    service: PlatformPageService = Depends(get_page_service)
):
    if not service.delete_page(page_id):
        raise HTTPException(status_code=404, detail="Page not found")
    return None
