"""Health check endpoints for liveness and readiness probes."""
import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from styloren import __version__
from styloren.cache import RedisCache, cache
from styloren.database import engine
from styloren.utils.time import utcnow

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    """
    Liveness probe.

    Returns basic health status if the service is alive (process running).
    Does not check external dependencies.
    """
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "version": __version__,
    }


@router.get("/health/ready", tags=["Health"])
async def readiness_check() -> JSONResponse:
    """
    Readiness probe.

    Verifies row storage is reachable and, when the Redis cache backend is
    configured, that Redis answers. Returns 200 only if all are healthy.
    """
    checks = {"database": "unknown", "cache": "memory"}
    ready = True

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "connected"
    except (SQLAlchemyError, OSError) as exc:
        logger.error("database_health_check_failed", error=str(exc))
        checks["database"] = "disconnected"
        ready = False

    if isinstance(cache, RedisCache):
        try:
            client = await cache._ensure_connection()
            await client.ping()
            checks["cache"] = "connected"
        except Exception as exc:
            logger.error("redis_health_check_failed", error=str(exc))
            checks["cache"] = "disconnected"
            ready = False

    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "checks": checks,
            "timestamp": utcnow().isoformat(),
        },
    )
