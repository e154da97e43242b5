"""
Image upload router.

Endpoints:
- POST /api/uploads - Store an image and return its locator
"""

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from api.dependencies import get_ingress
from api.schemas.storage import UploadResponse
from core.config import Settings, get_settings
from core.exceptions import PayloadTooLargeError, ValidationError
from services.storage import UploadedBlob, UploadIngress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("", response_model=UploadResponse, status_code=201)
async def upload_image(
    image: UploadFile | None = File(default=None),
    ingress: UploadIngress = Depends(get_ingress),
    settings: Settings = Depends(get_settings),
):
    """
    Upload an image.

    The image goes to the next remote storage account, or to local disk
    when remote storage is not configured or unavailable. The returned
    locator is opaque; pass it back to read the image.
    """
    if image is None or not image.filename:
        raise ValidationError(message="No file uploaded")

    max_bytes = settings.max_upload_bytes

    # Read one byte past the limit so oversized files are detected without buffering them whole
    data = await image.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise PayloadTooLargeError(
            message=f"File exceeds the {settings.max_upload_mb} MB limit",
            details={"limit": max_bytes},
        )

    logger.info(
        f"Image upload: filename={image.filename}, size={len(data)}, "
        f"remote_enabled={ingress.remote_enabled}"
    )

    result = await ingress.ingest(
        UploadedBlob(
            data=data,
            filename=image.filename,
            content_type=image.content_type or "",
        )
    )

    return UploadResponse(
        locator=result.locator,
        backend=result.backend,
        account=result.account,
    )
