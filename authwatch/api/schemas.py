"""
authwatch API: Response Schemas

Pydantic models for all API responses. Fields are snake_case in Python and
camelCase on the wire (savedAlerts, lowUnits, daysRemaining, ...), which is
the contract the dashboard widgets develop against.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from ..alert_engine.config import AlertSeverity, AlertType, AuthorizationStatus

_MODEL_CONFIG = {"from_attributes": True, "alias_generator": to_camel, "populate_by_name": True}


# ── Authorizations ───────────────────────────────────────────────────────

class ClientResponse(BaseModel):
    id: str
    first_name: str = ""
    last_name: str = ""
    medicaid_id: Optional[str] = None

    model_config = _MODEL_CONFIG


class AuthorizationResponse(BaseModel):
    id: str
    client_id: Optional[str] = None
    auth_number: str = ""
    service_type: str = ""
    unit_type: str = "HOURLY"
    authorized_units: Optional[float] = None
    used_units: Optional[float] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: AuthorizationStatus
    client: Optional[ClientResponse] = None

    model_config = _MODEL_CONFIG


class AuthorizationStatsResponse(AuthorizationResponse):
    """Authorization with computed usage statistics (effective units)."""
    usage_percentage: float
    remaining_units: float
    days_remaining: Optional[int] = None
    is_expiring_soon: bool
    is_expired: bool
    is_nearing_limit: bool


class AuthorizationListResponse(BaseModel):
    total: int
    authorizations: list[AuthorizationStatsResponse]

    model_config = _MODEL_CONFIG


# ── Alerts ───────────────────────────────────────────────────────────────

class AlertResponse(BaseModel):
    id: str
    type: AlertType
    severity: AlertSeverity
    message: str
    authorization: AuthorizationResponse
    created_at: datetime

    model_config = _MODEL_CONFIG


class SavedAlertResponse(BaseModel):
    id: str
    authorization_id: str
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    is_read: bool
    read_at: Optional[datetime] = None
    action_taken: Optional[str] = None
    action_taken_at: Optional[datetime] = None
    action_taken_by_id: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = _MODEL_CONFIG


class AlertSummaryResponse(BaseModel):
    total: int
    critical: int
    high: int
    warning: int
    expiring: int
    low_units: int

    model_config = _MODEL_CONFIG


class AlertFeedResponse(BaseModel):
    alerts: list[AlertResponse]
    saved_alerts: list[SavedAlertResponse]
    summary: AlertSummaryResponse

    model_config = _MODEL_CONFIG


class AuthorizationDetailResponse(BaseModel):
    authorization: AuthorizationStatsResponse
    alerts: list[SavedAlertResponse]

    model_config = _MODEL_CONFIG


class AlertAckRequest(BaseModel):
    # Optional so a missing id reaches the service and comes back as a 400
    alert_id: Optional[str] = Field(default=None, description="Real-time alert id or saved alert record id")

    model_config = _MODEL_CONFIG


class AlertAckResponse(BaseModel):
    success: bool = True


# ── Health ───────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    version: str
    db_connected: bool
    redis_connected: Optional[bool] = None
    events: Optional[dict] = Field(default=None, description="Alert event publisher counters")
    uptime_seconds: float

    model_config = _MODEL_CONFIG
