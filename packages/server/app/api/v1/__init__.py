"""
API v1 Router

Hub portal endpoints are prefixed with /hubs/{hubSlug}; administrative
endpoints live under /admin and require a platform admin.
"""

from fastapi import APIRouter
from . import admin, hubs

router = APIRouter()

router.include_router(hubs.router, prefix="/hubs/{hubSlug}", tags=["Hub"])
router.include_router(admin.router, prefix="/admin", tags=["Admin"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/hubs/{hubSlug}/me",
            "/hubs/{hubSlug}/projects",
            "/hubs/{hubSlug}/issues",
            "/hubs/{hubSlug}/metadata",
            "/hubs/{hubSlug}/comments",
            "/admin/hubs",
            "/admin/workspace/token",
        ],
    }
