import logging
import re
import uuid
from typing import Optional

from loan_scoring.core.config import settings
from loan_scoring.core.exceptions import ObjectStorageError, ValidationError
from loan_scoring.core.supabase_client import get_supabase_client
from loan_scoring.schemas.upload_schema import UploadDescriptor, UploadTarget

logger = logging.getLogger(__name__)

ALLOWED_TYPES = {"image/jpeg", "image/png", "image/jpg", "image/webp", "application/pdf"}


def _safe_file_name(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", name.strip()).strip("._")
    return cleaned or "document"


class UploadService:
    """Issues signed upload URLs; the service never sees the file bytes."""

    def __init__(self, client, bucket: str, max_size: int):
        self.client = client
        self.bucket = bucket
        self.max_size = max_size

    def validate(self, descriptor: UploadDescriptor) -> None:
        if descriptor.size > self.max_size:
            raise ValidationError(f"File exceeds the {self.max_size} byte limit", field="size")
        if descriptor.content_type.lower() not in ALLOWED_TYPES:
            raise ValidationError(f"Unsupported file type {descriptor.content_type}", field="contentType")

    def request_upload_url(self, descriptor: UploadDescriptor) -> UploadTarget:
        self.validate(descriptor)
        object_path = f"uploads/{uuid.uuid4()}/{_safe_file_name(descriptor.name)}"

        try:
            result = self.client.storage.from_(self.bucket).create_signed_upload_url(object_path)
        except Exception as e:
            logger.error(f"Failed to create signed upload URL for {object_path}: {e}")
            raise ObjectStorageError(f"Failed to create upload URL: {e}") from e

        upload_url = result.get("signed_url") or result.get("signedUrl")
        if not upload_url:
            logger.error(f"Storage returned no signed URL for {object_path}")
            raise ObjectStorageError("Storage returned no upload URL")

        logger.info(f"Issued upload URL for {object_path} ({descriptor.content_type}, {descriptor.size} bytes)")
        return UploadTarget(upload_url=upload_url, object_path=object_path)


_upload_service: Optional[UploadService] = None


def get_upload_service() -> UploadService:
    global _upload_service
    if _upload_service is None:
        _upload_service = UploadService(
            client=get_supabase_client(),
            bucket=settings.SUPABASE_BUCKET,
            max_size=settings.MAX_UPLOAD_SIZE,
        )
    return _upload_service
