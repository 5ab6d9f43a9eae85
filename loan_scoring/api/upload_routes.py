from fastapi import APIRouter, HTTPException, Depends
from fastapi import status
from typing import Dict
import logging

from loan_scoring.core.auth_dependencies import get_current_user
from loan_scoring.core.exceptions import ServiceError
from loan_scoring.schemas.upload_schema import UploadDescriptor, UploadTarget
from loan_scoring.services.upload_service import UploadService, get_upload_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/uploads", tags=["Uploads"])


# Returns the upload service or raises an error if object storage is not configured
def get_upload_service_dependency() -> UploadService:
    try:
        return get_upload_service()
    except RuntimeError as e:
        logger.error(f"Object storage is not configured: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Object storage is not configured. Please contact system administrator."
        )


# Issues a signed URL the client uploads a document to
@router.post("/request-url", response_model=UploadTarget)
async def request_upload_url(
    descriptor: UploadDescriptor,
    current_user: Dict = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service_dependency)
):
    try:
        target = service.request_upload_url(descriptor)
        logger.info(f"Upload URL issued to {current_user['id']}")
        return target
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Error issuing upload URL: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create upload URL"
        )
