import uuid
from supabase import Client
from typing import Optional
import logging

logger = logging.getLogger(__name__)

CROP_IMAGES_BUCKET = "crop-images"


class CropImageStorage:
    def __init__(self, supabase: Client, bucket_name: str = CROP_IMAGES_BUCKET):
        self.supabase = supabase
        self.bucket_name = bucket_name

    @staticmethod
    def build_path(folder: str, filename: Optional[str]) -> str:
        """Unique object path inside folder, keeping the original extension"""
        ext = ""
        if filename and "." in filename:
            ext = "." + filename.rsplit(".", 1)[-1].lower()
        name = f"{uuid.uuid4()}{ext}"
        return f"{folder}/{name}" if folder else name

    def upload_file(self, file_content: bytes, path: str, content_type: str = "image/jpeg") -> str:
        """Upload file to the bucket and return its public URL"""
        try:
            bucket = self.supabase.storage.from_(self.bucket_name)
            bucket.upload(path, file_content, {"content-type": content_type})
            return bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"Failed to upload file to storage: {str(e)}")
            raise

    def delete_file(self, file_url: str) -> bool:
        """Delete a file given its public URL"""
        marker = f"/{self.bucket_name}/"
        if marker not in file_url:
            return False
        path = file_url.split(marker, 1)[1].split("?", 1)[0]
        try:
            self.supabase.storage.from_(self.bucket_name).remove([path])
            return True
        except Exception as e:
            logger.error(f"Failed to delete file from storage: {str(e)}")
            return False
