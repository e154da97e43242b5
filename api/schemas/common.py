"""
Error envelope shared by every API error response.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Machine-readable code plus a message safe to show to clients."""

    code: str = Field(..., description="Machine-readable error code, e.g. storage_unavailable")
    message: str
    details: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    success: bool = False
    error: ErrorDetail
