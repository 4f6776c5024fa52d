"""Health check and metrics endpoints"""

from fastapi import APIRouter, Depends, Response, status
from datetime import datetime, timezone
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import async_sessionmaker
from taskhub.config import settings
from taskhub.database import get_session_factory
from taskhub.services.redis_service import RedisService

router = APIRouter(tags=["Health"])

VERSION = "1.0.0"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/health", status_code=status.HTTP_200_OK)
async def basic_health_check():
    """
    Basic health check endpoint (no authentication required)

    Returns simple health status and timestamp
    """
    return {
        "status": "healthy",
        "timestamp": _timestamp()
    }


@router.get("/api/v1/health", status_code=status.HTTP_200_OK)
async def detailed_health_check(
    session_factory: async_sessionmaker = Depends(get_session_factory),
):
    """
    Detailed health check with dependency status (no authentication required)

    Checks connectivity to:
    - Database
    - Redis

    Returns overall status and individual service statuses
    """
    services = {}
    overall_status = "healthy"

    try:
        async with session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar_one()
        services["database"] = "connected"
    except Exception as e:
        services["database"] = f"disconnected: {str(e)}"
        overall_status = "degraded"

    try:
        await RedisService().ping()
        services["redis"] = "connected"
    except Exception as e:
        services["redis"] = f"disconnected: {str(e)}"
        overall_status = "degraded"

    return {
        "status": overall_status,
        "app": settings.app_name,
        "version": VERSION,
        "timestamp": _timestamp(),
        "services": services
    }


@router.get("/metrics")
async def metrics():
    """Prometheus metrics"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
