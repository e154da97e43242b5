"""
API routers for different endpoints.
"""

from .health import router as health_router
from .local_files import router as local_files_router
from .objects import router as objects_router
from .storage import router as storage_router
from .uploads import router as uploads_router

__all__ = [
    "health_router",
    "local_files_router",
    "objects_router",
    "storage_router",
    "uploads_router",
]
