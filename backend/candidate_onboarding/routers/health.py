"""Liveness and readiness checks.

Readiness depends on the database only. Redis is a cache: its state is
reported, but an outage never takes the service out of rotation.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from candidate_onboarding.config import settings
from candidate_onboarding.database import engine
from candidate_onboarding.utils.cache import get_redis

router = APIRouter(tags=["health"])

SERVICE_NAME = "candidate-onboarding"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _describe(exc: Exception) -> str:
    return f"error: {str(exc)[:100]}"


async def _database_state() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        return _describe(e)
    return "ok"


async def _redis_state() -> str:
    if not settings.cache_enabled:
        return "disabled"
    try:
        await (await get_redis()).ping()
    except Exception as e:
        return _describe(e)
    return "ok"


@router.get("/health")
async def health_check():
    """Process is up. Touches no dependencies."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "environment": settings.environment,
        "timestamp": _now(),
    }


@router.get("/health/ready")
async def readiness_check():
    checks = {
        "database": await _database_state(),
        "redis": await _redis_state(),
    }
    ready = checks["database"] == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if ready else "unhealthy",
            "service": SERVICE_NAME,
            "checks": checks,
            "timestamp": _now(),
        },
    )
