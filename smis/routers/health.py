"""Health check endpoints."""
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
import logging

from ..core.config import settings
from ..core.database import health_check_db, get_pool_status
from ..core.performance_monitor import performance_metrics
from ..utils.cache_metrics import metrics, get_cache_info

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check():
    """Basic health check"""
    return {
        "success": True,
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/db")
async def database_health():
    healthy = await health_check_db()
    body = {
        "success": healthy,
        "status": "healthy" if healthy else "unhealthy",
        "pool": await get_pool_status(),
    }
    return JSONResponse(status_code=200 if healthy else 503, content=body)


@router.get("/metrics")
async def performance_report():
    """Request timings per route and cache statistics"""
    return {
        "success": True,
        "data": {
            "performance": performance_metrics.get_metrics(),
            "cache": {**metrics.get_stats(), **await get_cache_info()},
        },
    }
