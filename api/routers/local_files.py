"""
Local upload serving.

Serves images written by the local fallback at /uploads/{filename}.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from api.dependencies import get_ingress
from services.storage import LOCAL_LOCATOR_PREFIX, UploadIngress

router = APIRouter(prefix=LOCAL_LOCATOR_PREFIX.rstrip("/"), tags=["uploads"])


@router.get("/{filename}")
async def serve_local_file(
    filename: str,
    ingress: UploadIngress = Depends(get_ingress),
):
    """Serve a locally stored image."""
    resolved = await ingress.resolve(f"{LOCAL_LOCATOR_PREFIX}{filename}")

    return Response(
        content=resolved.data,
        media_type=resolved.content_type,
        headers={
            "Cache-Control": "public, max-age=86400",  # 1 day cache
            "Content-Disposition": f'inline; filename="{filename}"',
        },
    )
