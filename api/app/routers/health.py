"""
Health Check Endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
import redis.asyncio as redis

from app.utils.database import get_db
from app.utils.redis import get_redis

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "tripfolio-api"}


@router.get("/health/ready")
async def readiness_check(
    db: AsyncSession = Depends(get_db),
    cache: redis.Redis = Depends(get_redis),
):
    """
    Readiness check - Postgres must answer; Redis is optional and only
    reported, since the API falls back to running without a cache.
    """
    checks = {
        "postgres": False,
        "redis": False,
    }

    try:
        await db.execute(text("SELECT 1"))
        checks["postgres"] = True
    except Exception as e:
        checks["postgres_error"] = str(e)

    try:
        checks["redis"] = bool(await cache.ping())
    except Exception as e:
        checks["redis_error"] = str(e)

    return {
        "status": "ready" if checks["postgres"] else "degraded",
        "checks": checks,
    }


@router.get("/health/live")
async def liveness_check():
    """Liveness check - is the service running"""
    return {"status": "alive"}
