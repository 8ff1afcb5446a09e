"""
Status router.

This module contains endpoints for API status and health checks.
"""

from fastapi import APIRouter, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from observatory.config import settings
from observatory.utils.cache import cache

router = APIRouter(
    prefix="/status",
    tags=["status"],
)

limiter = Limiter(key_func=get_remote_address)


@router.get("", response_model=dict)
@limiter.limit("60/minute")
async def get_status(request: Request):
    """
    Get API status.

    Rate limit: 60 requests per minute

    Returns:
        dict: Status information, station defaults and cache health
    """
    return {
        "status": "ok",
        "default_latitude": settings.DEFAULT_LATITUDE,
        "station_timezone": settings.STATION_TIMEZONE,
        "cache": cache.health_check(),
    }
