"""GET /health"""

import logging
import time

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ... import __version__
from ..deps import get_db
from ..schemas import HealthResponse

logger = logging.getLogger("authwatch.api.health")

router = APIRouter()

_start_time = time.monotonic()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, db: AsyncSession = Depends(get_db)):
    """Health check: DB and (when configured) Redis connectivity, event publisher counters."""
    db_ok = False
    redis_ok = None

    try:
        await db.execute(text("SELECT 1"))
        db_ok = True
    except Exception:
        logger.warning("Health check: database unreachable", exc_info=True)

    redis = request.app.state.redis
    if redis is not None:
        redis_ok = False
        try:
            await redis.ping()
            redis_ok = True
        except Exception:
            logger.warning("Health check: redis unreachable", exc_info=True)

    publisher = request.app.state.publisher

    status = "ok" if db_ok and redis_ok is not False else "degraded"
    return HealthResponse(
        status=status,
        version=__version__,
        db_connected=db_ok,
        redis_connected=redis_ok,
        events=publisher.stats if publisher is not None else None,
        uptime_seconds=round(time.monotonic() - _start_time, 1),
    )
