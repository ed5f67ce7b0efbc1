"""
Image Upload Endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, status
import logging

from app.routers.auth import get_current_user
from app.models.user import User
from app.schemas.billing import UploadParametersResponse
from app.services.uploads import UploadService, UploadNotConfiguredError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/upload", response_model=UploadParametersResponse)
async def get_upload_parameters(current_user: User = Depends(get_current_user)):
    """
    Signed parameters for uploading one image directly to Cloudinary
    """
    try:
        params = UploadService.get_upload_signature()
    except UploadNotConfiguredError as e:
        logger.warning(f"Upload requested by {current_user.id} but uploads are disabled: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Image uploads are not configured",
        )

    return UploadParametersResponse(**params)
