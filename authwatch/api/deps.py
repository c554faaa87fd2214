"""
authwatch API: Shared Dependencies

FastAPI dependency injection for DB sessions, the alert service, pagination
and caller identity.
"""

from datetime import datetime, timezone

from fastapi import Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..alert_engine.service import AlertService


async def get_db(request: Request) -> AsyncSession:
    """Yield a database session from the pool."""
    async with request.app.state.db_session() as session:
        yield session


async def get_alert_service(request: Request) -> AlertService:
    return request.app.state.alert_service


def get_now() -> datetime:
    """Request clock. Overridden in tests to pin 'now'."""
    return datetime.now(timezone.utc)


class Pagination:
    """Standard pagination parameters."""
    def __init__(
        self,
        offset: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(50, ge=1, le=500, description="Max records to return"),
    ):
        self.offset = offset
        self.limit = limit


# ── Auth stub ────────────────────────────────────────────────────────────
# Session handling lives in the fronting gateway, which forwards identity.

async def get_current_user(request: Request) -> dict:
    """
    Resolve the caller's tenant and user from gateway-forwarded headers.
    Every query downstream is scoped by the returned tenant_id.
    """
    tenant_id = request.headers.get("X-Tenant-ID", "").strip()
    if not tenant_id:
        raise HTTPException(401, "Unauthorized")
    return {
        "user_id": request.headers.get("X-User-ID", "").strip() or None,
        "tenant_id": tenant_id,
    }


async def require_user(user: dict = Depends(get_current_user)) -> dict:
    """Require an identified user (acknowledgements are attributed)."""
    if user["user_id"] is None:
        raise HTTPException(401, "Unauthorized")
    return user
