"""
authwatch: Alert Engine Domain Models

Authorization snapshots (read-only input), computed alerts, summary counts,
and the per-authorization usage statistics shown on list/detail views.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Union

from .alert_ids import RealtimeAlertKey
from .config import AlertSeverity, AlertType, AuthorizationStatus


@dataclass(frozen=True)
class ClientRef:
    """Client the authorization was granted for. Display only."""
    id: str
    first_name: str = ""
    last_name: str = ""
    medicaid_id: Optional[str] = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class Authorization:
    """
    Snapshot of a payer authorization as read from the store.

    Units are numeric but may be None (or 0 for authorized units) on
    partially-entered records; dates may be calendar dates or datetimes.
    """
    id: str
    tenant_id: str = ""
    client_id: Optional[str] = None
    auth_number: str = ""
    service_type: str = ""
    unit_type: str = "HOURLY"
    authorized_units: Optional[float] = None
    used_units: Optional[float] = None
    start_date: Optional[Union[date, datetime]] = None
    end_date: Optional[Union[date, datetime]] = None
    status: AuthorizationStatus = AuthorizationStatus.ACTIVE
    notes: Optional[str] = None
    client: Optional[ClientRef] = None


@dataclass(frozen=True)
class Alert:
    """A classified real-time alert. Recomputed on every request."""
    key: RealtimeAlertKey
    type: AlertType
    severity: AlertSeverity
    message: str
    authorization: Authorization = field(compare=False)
    created_at: datetime

    @property
    def id(self) -> str:
        return self.key.alert_id

    def to_dict(self) -> dict:
        """Serialise for event publishing and CLI output."""
        client = self.authorization.client
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "authorization_id": self.authorization.id,
            "auth_number": self.authorization.auth_number,
            "client_name": client.name if client else None,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AlertSummary:
    total: int = 0
    critical: int = 0
    high: int = 0
    warning: int = 0
    expiring: int = 0
    low_units: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "critical": self.critical,
            "high": self.high,
            "warning": self.warning,
            "expiring": self.expiring,
            "low_units": self.low_units,
        }


@dataclass(frozen=True)
class AlertEvaluation:
    alerts: list[Alert]
    summary: AlertSummary


@dataclass(frozen=True)
class UsageStats:
    """Single-authorization statistics for list and detail views."""
    used_units: float
    authorized_units: float
    usage_percentage: float        # clamped to [0, 100]
    remaining_units: float         # clamped to >= 0
    days_remaining: Optional[int]  # clamped to >= 0, None without an end date
    is_expiring_soon: bool
    is_expired: bool
    is_nearing_limit: bool
