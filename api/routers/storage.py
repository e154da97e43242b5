"""
Storage status router.

Endpoints:
- GET /api/storage/status - Per-account space usage
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_gateway
from api.schemas.storage import AccountUsageResponse, StorageStatusResponse
from services.storage import ObjectGateway

router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("/status", response_model=StorageStatusResponse)
async def storage_status(
    gateway: ObjectGateway | None = Depends(get_gateway),
):
    """
    Report space usage for every remote storage account.

    When no account is configured the response says so explicitly instead
    of returning an empty list. An account whose quota query fails is
    reported with an error marker.
    """
    if gateway is None or not gateway.is_configured:
        return StorageStatusResponse(
            enabled=False,
            message="OneDrive storage not configured",
            setup=(
                "Add ONEDRIVE_CLIENT_ID, ONEDRIVE_CLIENT_SECRET and "
                "ONEDRIVE_REFRESH_TOKENS environment variables"
            ),
        )

    usage = await gateway.report_all()
    return StorageStatusResponse(
        enabled=True,
        accounts=[AccountUsageResponse(**u.to_dict()) for u in usage],
        total_accounts=len(usage),
    )
