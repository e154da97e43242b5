"""
Storage API schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class UploadResponse(BaseModel):
    """Result of an image upload."""

    locator: str = Field(..., description="Opaque locator to store with the task")
    backend: str = Field(..., description="Where the image was stored: onedrive or local")
    account: Optional[str] = Field(default=None, description="Remote account that received it")


class AccountUsageResponse(BaseModel):
    """Space usage of one storage account."""

    account: str
    used: str = Field(..., description="Human-readable used space, or 'Error'")
    total: str = Field(..., description="Human-readable total space, or 'Error'")
    used_bytes: Optional[int] = None
    total_bytes: Optional[int] = None
    error: Optional[str] = Field(default=None, description="Error code if the quota query failed")


class StorageStatusResponse(BaseModel):
    """Remote storage status."""

    enabled: bool
    message: Optional[str] = None
    setup: Optional[str] = None
    accounts: Optional[List[AccountUsageResponse]] = None
    total_accounts: int = 0
