"""
GET  /authorizations/alerts: real-time alerts, saved alerts and summary
POST /authorizations/alerts: acknowledge a real-time or saved alert
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...alert_engine.errors import AlertError
from ...alert_engine.service import AlertService
from ..deps import get_alert_service, get_current_user, get_now, require_user
from ..schemas import (
    AlertAckRequest, AlertAckResponse, AlertFeedResponse,
    AlertResponse, AlertSummaryResponse, SavedAlertResponse,
)

router = APIRouter()


@router.get("/authorizations/alerts", response_model=AlertFeedResponse)
async def list_alerts(
    acknowledged: Optional[bool] = Query(None, description="false: only unacknowledged saved alerts"),
    user: dict = Depends(get_current_user),
    service: AlertService = Depends(get_alert_service),
    now: datetime = Depends(get_now),
):
    """
    Alerts for the caller's ACTIVE authorizations, recomputed on every call,
    plus saved alert records (newest first).
    """
    feed = await service.get_alert_feed(user["tenant_id"], now, acknowledged=acknowledged)

    return AlertFeedResponse(
        alerts=[AlertResponse.model_validate(a) for a in feed.alerts],
        saved_alerts=[SavedAlertResponse.model_validate(r) for r in feed.saved_alerts],
        summary=AlertSummaryResponse.model_validate(feed.summary),
    )


@router.post("/authorizations/alerts", response_model=AlertAckResponse)
async def acknowledge_alert(
    body: AlertAckRequest,
    user: dict = Depends(require_user),
    service: AlertService = Depends(get_alert_service),
    now: datetime = Depends(get_now),
):
    """
    Acknowledge an alert. Real-time alerts get a new acknowledged record;
    saved alerts are marked acknowledged in place.
    """
    try:
        await service.acknowledge(user["tenant_id"], body.alert_id, user["user_id"], now)
    except AlertError as e:
        raise HTTPException(e.status_code, str(e)) from e

    return AlertAckResponse(success=True)
