import logging
import re
from datetime import datetime, timezone, date
from supabase import Client
from app.modules.crops.schemas import (
    CropCreate, CropUpdate, CropFilter, CropResponse, CropImageResponse
)
from app.modules.crops.storage import CropImageStorage
from app.modules.subscriptions.limits import SubscriptionLimits, LimitExceeded
from typing import List, Optional
from fastapi import HTTPException, UploadFile

logger = logging.getLogger(__name__)

CROP_SELECT = "*, zones:zones(id, name)"

# Characters with meaning in a PostgREST or=() filter
SEARCH_RESERVED = re.compile(r"[,()*\\:]")


def search_term(text: str) -> str:
    return " ".join(SEARCH_RESERVED.sub(" ", text).split())


def crop_from_row(row: dict) -> CropResponse:
    """Flatten the joined zone into zone_name"""
    data = dict(row)
    zone = data.pop("zones", None)
    if zone and not data.get("zone_name"):
        data["zone_name"] = zone.get("name")
    return CropResponse(**data)


class CropService:
    def __init__(self, supabase: Client, storage: Optional[CropImageStorage] = None):
        self.supabase = supabase
        self.storage = storage or CropImageStorage(supabase)

    def count_crops(self, user_id: str) -> int:
        result = self.supabase.table("crops")\
            .select("id")\
            .eq("user_id", user_id)\
            .execute()
        return len(result.data or [])

    def _verify_zone(self, zone_id: str, user_id: str):
        zone_result = self.supabase.table("zones")\
            .select("id, user_id")\
            .eq("id", zone_id)\
            .limit(1)\
            .execute()
        if not zone_result.data:
            raise HTTPException(status_code=404, detail="Zone not found")
        if zone_result.data[0].get("user_id") != user_id:
            raise HTTPException(status_code=403, detail="Zone belongs to another user")

    def list_crops(self, user_id: str, filters: Optional[CropFilter] = None) -> List[CropResponse]:
        """List crops with optional stage/zone/search/planting-date filters, newest first"""
        try:
            query = self.supabase.table("crops")\
                .select(CROP_SELECT)\
                .eq("user_id", user_id)

            if filters:
                if filters.growth_stage:
                    query = query.eq("growth_stage", filters.growth_stage.value)
                if filters.zone_id:
                    query = query.eq("zone_id", filters.zone_id)
                term = search_term(filters.search) if filters.search else ""
                if term:
                    query = query.or_(f"name.ilike.%{term}%,variety.ilike.%{term}%")
                if filters.start_date:
                    query = query.gte("planting_date", filters.start_date.isoformat())
                if filters.end_date:
                    query = query.lte("planting_date", filters.end_date.isoformat())

            result = query.order("created_at", desc=True).execute()
            return [crop_from_row(row) for row in result.data]
        except Exception as e:
            logger.error(f"Error fetching crops: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to load crops: {e}")

    def get_crop(self, crop_id: str) -> CropResponse:
        try:
            result = self.supabase.table("crops")\
                .select(CROP_SELECT)\
                .eq("id", crop_id)\
                .limit(1)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Crop not found")
            return crop_from_row(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching crop by ID: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to load crop details: {e}")

    def create_crop(self, crop_data: CropCreate, user_id: str, limits: SubscriptionLimits) -> CropResponse:
        try:
            limits.enforce("crops", self.count_crops(user_id))
            self._verify_zone(crop_data.zone_id, user_id)

            result = self.supabase.table("crops").insert({
                **crop_data.model_dump(mode="json"),
                "user_id": user_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create crop")

            return self.get_crop(result.data[0]["id"])
        except LimitExceeded as e:
            raise HTTPException(status_code=403, detail=str(e))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating crop: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to create crop: {e}")

    def update_crop(self, crop: dict, crop_data: CropUpdate) -> CropResponse:
        try:
            update_data = crop_data.model_dump(mode="json", exclude_unset=True)
            if update_data.get("zone_id"):
                self._verify_zone(update_data["zone_id"], crop["user_id"])

            planting = update_data.get("planting_date") or crop.get("planting_date")
            harvest = update_data.get("harvest_date", crop.get("harvest_date"))
            if planting and harvest and date.fromisoformat(str(harvest)[:10]) < date.fromisoformat(str(planting)[:10]):
                raise HTTPException(status_code=422, detail="harvest_date must not be before planting_date")

            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("crops")\
                .update(update_data)\
                .eq("id", crop["id"])\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Crop not found")

            return self.get_crop(crop["id"])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating crop: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to update crop: {e}")

    def delete_crop(self, crop_id: str) -> bool:
        try:
            result = self.supabase.table("crops")\
                .delete()\
                .eq("id", crop_id)\
                .execute()
            return len(result.data) > 0
        except Exception as e:
            logger.error(f"Error deleting crop: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to delete crop: {e}")

    def list_crop_images(self, crop_id: str) -> List[CropImageResponse]:
        """Growth timeline images, oldest capture first"""
        try:
            result = self.supabase.table("crop_images")\
                .select("*")\
                .eq("crop_id", crop_id)\
                .order("capture_date")\
                .execute()
            return [CropImageResponse(**image) for image in result.data]
        except Exception as e:
            logger.error(f"Error fetching crop images: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    async def add_crop_image(
        self,
        crop: dict,
        file: UploadFile,
        user_id: str,
        capture_date: Optional[date] = None,
        notes: Optional[str] = None
    ) -> CropImageResponse:
        """Store the image in the crop-images bucket and record it on the timeline"""
        image_url = None
        try:
            content = await file.read()
            if not content:
                raise HTTPException(status_code=400, detail="Please select an image to upload")
            path = self.storage.build_path(f"{user_id}/{crop['id']}", file.filename)
            image_url = self.storage.upload_file(content, path, file.content_type or "image/jpeg")

            result = self.supabase.table("crop_images").insert({
                "crop_id": crop["id"],
                "user_id": user_id,
                "image_url": image_url,
                "capture_date": (capture_date or date.today()).isoformat(),
                "notes": notes
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to upload image")

            return CropImageResponse(**result.data[0])
        except HTTPException:
            if image_url:
                self.storage.delete_file(image_url)
            raise
        except Exception as e:
            logger.error(f"Error uploading crop image: {e}")
            if image_url:
                self.storage.delete_file(image_url)
            raise HTTPException(status_code=500, detail=f"Failed to upload image: {e}")

    def delete_crop_image(self, crop_id: str, image_id: str) -> bool:
        try:
            image_result = self.supabase.table("crop_images")\
                .select("*")\
                .eq("id", image_id)\
                .eq("crop_id", crop_id)\
                .limit(1)\
                .execute()
            if not image_result.data:
                raise HTTPException(status_code=404, detail="Crop image not found")

            self.storage.delete_file(image_result.data[0]["image_url"])
            result = self.supabase.table("crop_images")\
                .delete()\
                .eq("id", image_id)\
                .execute()
            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting crop image: {e}")
            raise HTTPException(status_code=500, detail=f"Failed to delete image: {e}")
