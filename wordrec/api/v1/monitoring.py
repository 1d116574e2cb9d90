import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Response, status
from sqlalchemy import text

from wordrec.core.config import settings
from wordrec.infrastructure.database import async_engine
from wordrec.infrastructure.redis import is_redis_healthy

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness probe"""
    return {"status": "healthy", "service": "wordrec", "version": settings.version}


@router.get("/ready")
async def readiness_check(response: Response) -> dict[str, Any]:
    """Readiness probe. The database is required, Redis only degrades caching."""
    checks: dict[str, str] = {}

    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.warning(f"Database readiness check failed: {e}")
        checks["database"] = "unavailable"

    redis_ok = await asyncio.to_thread(is_redis_healthy)
    checks["redis"] = "ok" if redis_ok else "unavailable"

    if checks["database"] != "ok":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not_ready", "checks": checks}

    return {"status": "ready" if redis_ok else "degraded", "checks": checks}
