"""
GET /authorizations: list authorizations with usage statistics
GET /authorizations/{authorization_id}: one authorization with stats and recent alerts
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...alert_engine.config import AuthorizationStatus
from ...alert_engine.errors import AlertError
from ...alert_engine.models import Authorization, UsageStats
from ...alert_engine.service import AlertService
from ..deps import Pagination, get_alert_service, get_current_user, get_now
from ..schemas import (
    AuthorizationDetailResponse, AuthorizationListResponse,
    AuthorizationResponse, AuthorizationStatsResponse, SavedAlertResponse,
)

router = APIRouter()


def _with_stats(auth: Authorization, stats: UsageStats) -> AuthorizationStatsResponse:
    base = AuthorizationResponse.model_validate(auth).model_dump()
    base.update(
        used_units=stats.used_units,
        authorized_units=stats.authorized_units,
        usage_percentage=stats.usage_percentage,
        remaining_units=stats.remaining_units,
        days_remaining=stats.days_remaining,
        is_expiring_soon=stats.is_expiring_soon,
        is_expired=stats.is_expired,
        is_nearing_limit=stats.is_nearing_limit,
    )
    return AuthorizationStatsResponse(**base)


@router.get("/authorizations", response_model=AuthorizationListResponse)
async def list_authorizations(
    client_id: Optional[str] = Query(None, alias="clientId"),
    status: Optional[AuthorizationStatus] = Query(None),
    expiring_soon: bool = Query(False, alias="expiringSoon", description="ACTIVE, ending within 30 days"),
    pagination: Pagination = Depends(),
    user: dict = Depends(get_current_user),
    service: AlertService = Depends(get_alert_service),
    now: datetime = Depends(get_now),
):
    """List authorizations, soonest end date first."""
    views, total = await service.list_authorizations(
        user["tenant_id"], now,
        client_id=client_id,
        status=status,
        expiring_soon=expiring_soon,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return AuthorizationListResponse(
        total=total,
        authorizations=[_with_stats(v.authorization, v.stats) for v in views],
    )


@router.get("/authorizations/{authorization_id}", response_model=AuthorizationDetailResponse)
async def get_authorization(
    authorization_id: str,
    user: dict = Depends(get_current_user),
    service: AlertService = Depends(get_alert_service),
    now: datetime = Depends(get_now),
):
    try:
        detail = await service.get_authorization_detail(user["tenant_id"], authorization_id, now)
    except AlertError as e:
        raise HTTPException(e.status_code, str(e)) from e

    return AuthorizationDetailResponse(
        authorization=_with_stats(detail.authorization, detail.stats),
        alerts=[SavedAlertResponse.model_validate(r) for r in detail.alerts],
    )
