"""
authwatch: Alert Engine Configuration

Authorization statuses, alert types and severities, the expiry and usage
tier tables, and tuning parameters.
"""

from dataclasses import dataclass
from enum import Enum


class AuthorizationStatus(str, Enum):
    """
    Lifecycle of a payer authorization (owned by billing workflows).

    Only ACTIVE authorizations are eligible for real-time alerting.
    """
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    EXHAUSTED = "EXHAUSTED"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"
    CANCELLED = "CANCELLED"


class AlertType(str, Enum):
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRING_CRITICAL = "EXPIRING_CRITICAL"
    EXPIRED = "EXPIRED"
    UNITS_LOW = "UNITS_LOW"
    UNITS_EXHAUSTED = "UNITS_EXHAUSTED"

    @property
    def is_expiry(self) -> bool:
        return "EXPIR" in self.value

    @property
    def is_usage(self) -> bool:
        return "UNITS" in self.value


class AlertSeverity(str, Enum):
    """
    Alert severities, most urgent first.

    CRITICAL: expired, expiring within a week, or no units left
    HIGH:     reauthorization needed within two weeks, or under 10% units left
    WARNING:  expiring within 30 days, or under 20% units left
    """
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    WARNING = "WARNING"


ACTION_ACKNOWLEDGED = "ACKNOWLEDGED"


# ── Tier tables ─────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ExpiryTier:
    """
    One expiry band. Fires when days_remaining <= max_days and no more
    urgent tier (smaller max_days) matched.
    """
    label: str                  # alert id prefix, e.g. "expiring-14"
    max_days: int               # inclusive upper bound on days remaining
    alert_type: AlertType
    severity: AlertSeverity
    message: str                # str.format template, {days} available


@dataclass(frozen=True)
class UsageTier:
    """
    One usage band. Fires when usage_percentage >= min_percent and no more
    urgent tier (larger min_percent) matched.
    """
    label: str
    min_percent: float
    alert_type: AlertType
    severity: AlertSeverity
    message: str                # {remaining} = 100 - usage percentage


DEFAULT_EXPIRY_TIERS = (
    ExpiryTier(
        label="expired",
        max_days=0,
        alert_type=AlertType.EXPIRED,
        severity=AlertSeverity.CRITICAL,
        message="Authorization has expired",
    ),
    ExpiryTier(
        label="expiring-7",
        max_days=7,
        alert_type=AlertType.EXPIRING_CRITICAL,
        severity=AlertSeverity.CRITICAL,
        message="URGENT: Authorization expires in {days} days",
    ),
    ExpiryTier(
        label="expiring-14",
        max_days=14,
        alert_type=AlertType.EXPIRING_SOON,
        severity=AlertSeverity.HIGH,
        message="Authorization expires in {days} days - reauthorization needed",
    ),
    ExpiryTier(
        label="expiring-30",
        max_days=30,
        alert_type=AlertType.EXPIRING_SOON,
        severity=AlertSeverity.WARNING,
        message="Authorization expires in {days} days",
    ),
)

DEFAULT_USAGE_TIERS = (
    UsageTier(
        label="exhausted",
        min_percent=100.0,
        alert_type=AlertType.UNITS_EXHAUSTED,
        severity=AlertSeverity.CRITICAL,
        message="All authorized units have been used",
    ),
    UsageTier(
        label="usage-90",
        min_percent=90.0,
        alert_type=AlertType.UNITS_LOW,
        severity=AlertSeverity.HIGH,
        message="{remaining:.1f}% of units remaining",
    ),
    UsageTier(
        label="usage-80",
        min_percent=80.0,
        alert_type=AlertType.UNITS_LOW,
        severity=AlertSeverity.WARNING,
        message="{remaining:.1f}% of units remaining",
    ),
)


# ── Engine tuning ───────────────────────────────────────────────────────
@dataclass
class AlertEngineConfig:
    """Tuning parameters for the alert engine."""

    expiry_tiers: tuple[ExpiryTier, ...] = DEFAULT_EXPIRY_TIERS
    usage_tiers: tuple[UsageTier, ...] = DEFAULT_USAGE_TIERS

    # Divide-by-zero guard: zero/None authorized units count as this many
    default_authorized_units: float = 1.0

    # Acknowledging the same real-time alert twice inserts two records
    # unless this is set, in which case the latest record is updated.
    upsert_acknowledgements: bool = False

    # Saved alerts returned alongside the real-time feed
    saved_alert_limit: int = 50

    # Saved alerts returned on the authorization detail view
    detail_alert_limit: int = 10

    @property
    def ordered_expiry_tiers(self) -> list[ExpiryTier]:
        """Most urgent first: ascending max_days."""
        return sorted(self.expiry_tiers, key=lambda t: t.max_days)

    @property
    def ordered_usage_tiers(self) -> list[UsageTier]:
        """Most urgent first: descending min_percent."""
        return sorted(self.usage_tiers, key=lambda t: t.min_percent, reverse=True)

    @property
    def expiring_soon_days(self) -> int:
        """Widest expiry window (30 days by default)."""
        return max(t.max_days for t in self.expiry_tiers)

    @property
    def nearing_limit_percent(self) -> float:
        """Lowest usage threshold that raises an alert (80% by default)."""
        return min(t.min_percent for t in self.usage_tiers)

    def tier_for_label(self, label: str):
        for tier in (*self.expiry_tiers, *self.usage_tiers):
            if tier.label == label:
                return tier
        return None

    @property
    def labels(self) -> list[str]:
        return [t.label for t in (*self.expiry_tiers, *self.usage_tiers)]
