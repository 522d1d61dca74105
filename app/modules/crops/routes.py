from fastapi import APIRouter, Depends, UploadFile, File, Form, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.crops.schemas import (
    CropCreate, CropUpdate, CropFilter, CropResponse, CropImageResponse, GrowthStage
)
from app.modules.crops.service import CropService
from app.modules.subscriptions.limits import SubscriptionLimits
from app.core.dependencies import (
    require_permission, require_active_subscription, get_subscription_limits, check_resource_owner
)
from supabase import Client
from typing import List, Optional, Dict
from datetime import date

router = APIRouter(
    prefix="/crops",
    tags=["crops"],
    dependencies=[Depends(require_active_subscription)],
)


def get_crop_service(supabase: Client = Depends(get_supabase)) -> CropService:
    return CropService(supabase)


@router.get("", response_model=List[CropResponse])
async def list_crops(
    growth_stage: Optional[GrowthStage] = None,
    zone_id: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    user_data: Dict = Depends(require_permission("crops:read")),
    service: CropService = Depends(get_crop_service)
):
    """List crops. Filters: growth stage, zone, name/variety search, planting date range."""
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=422, detail="start_date must not be after end_date")
    filters = CropFilter(
        growth_stage=growth_stage,
        zone_id=zone_id,
        search=search,
        start_date=start_date,
        end_date=end_date
    )
    return service.list_crops(user_data["id"], filters)


@router.post("", response_model=CropResponse, status_code=201)
async def create_crop(
    crop_data: CropCreate,
    user_data: Dict = Depends(require_permission("crops:create")),
    limits: SubscriptionLimits = Depends(get_subscription_limits),
    service: CropService = Depends(get_crop_service)
):
    return service.create_crop(crop_data, user_data["id"], limits)


@router.get("/{crop_id}", response_model=CropResponse)
async def get_crop(
    crop_id: str,
    user_data: Dict = Depends(require_permission("crops:read")),
    service: CropService = Depends(get_crop_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("crops", crop_id, user_data, supabase, "Crop")
    return service.get_crop(crop_id)


@router.put("/{crop_id}", response_model=CropResponse)
async def update_crop(
    crop_id: str,
    crop_data: CropUpdate,
    user_data: Dict = Depends(require_permission("crops:update")),
    service: CropService = Depends(get_crop_service),
    supabase: Client = Depends(get_supabase)
):
    crop = check_resource_owner("crops", crop_id, user_data, supabase, "Crop")
    return service.update_crop(crop, crop_data)


@router.delete("/{crop_id}", status_code=204)
async def delete_crop(
    crop_id: str,
    user_data: Dict = Depends(require_permission("crops:delete")),
    service: CropService = Depends(get_crop_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("crops", crop_id, user_data, supabase, "Crop")
    service.delete_crop(crop_id)
    return None


@router.get("/{crop_id}/images", response_model=List[CropImageResponse])
async def list_crop_images(
    crop_id: str,
    user_data: Dict = Depends(require_permission("crops:read")),
    service: CropService = Depends(get_crop_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("crops", crop_id, user_data, supabase, "Crop")
    return service.list_crop_images(crop_id)


@router.post("/{crop_id}/images", response_model=CropImageResponse, status_code=201)
async def upload_crop_image(
    crop_id: str,
    file: UploadFile = File(...),
    capture_date: Optional[date] = Form(None),
    notes: Optional[str] = Form(None),
    user_data: Dict = Depends(require_permission("crops:update")),
    service: CropService = Depends(get_crop_service),
    supabase: Client = Depends(get_supabase)
):
    """Upload a growth-timeline image. Only image files are accepted."""
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are accepted")
    crop = check_resource_owner("crops", crop_id, user_data, supabase, "Crop")
    return await service.add_crop_image(crop, file, user_data["id"], capture_date, notes)


@router.delete("/{crop_id}/images/{image_id}", status_code=204)
async def delete_crop_image(
    crop_id: str,
    image_id: str,
    user_data: Dict = Depends(require_permission("crops:update")),
    service: CropService = Depends(get_crop_service),
    supabase: Client = Depends(get_supabase)
):
    check_resource_owner("crops", crop_id, user_data, supabase, "Crop")
    service.delete_crop_image(crop_id, image_id)
    return None
