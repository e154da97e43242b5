"""
Remote object proxy router.

Serves images stored on remote accounts through a stable path, so callers
never depend on provider share links.

Endpoints:
- GET /api/objects/{account_index}/{item_id} - Stream an image
- DELETE /api/objects/{account_index}/{item_id} - Remove an image
"""

import logging

from fastapi import APIRouter, Depends, Response

from api.dependencies import get_ingress
from core.exceptions import ObjectNotFoundError
from services.storage import ObjectReference, UploadIngress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/objects", tags=["objects"])


@router.get("/{account_index}/{item_id}")
async def get_object(
    account_index: int,
    item_id: str,
    ingress: UploadIngress = Depends(get_ingress),
):
    """
    Serve an image from the account it was uploaded to.

    Returns 404 when the account or object no longer exists, 502 when the
    account cannot authenticate and 503 on transient provider errors.
    """
    locator = ObjectReference(account_index=account_index, item_id=item_id).to_locator()
    resolved = await ingress.resolve(locator)

    return Response(
        content=resolved.data,
        media_type=resolved.content_type,
        headers={"Cache-Control": "public, max-age=3600"},  # 1 hour cache
    )


@router.delete("/{account_index}/{item_id}", status_code=204)
async def delete_object(
    account_index: int,
    item_id: str,
    ingress: UploadIngress = Depends(get_ingress),
):
    """Delete an image whose owning record has been removed."""
    locator = ObjectReference(account_index=account_index, item_id=item_id).to_locator()
    if not await ingress.discard(locator):
        raise ObjectNotFoundError(details={"locator": locator})

    logger.info(f"Discarded {locator}")
    return Response(status_code=204)
