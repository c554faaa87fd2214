"""
authwatch: Authorization Alert Engine

Pure transformation from a tenant's ACTIVE authorizations (plus an explicit
"now") to classified alerts and summary counts. No I/O and no ambient clock:
the same input and the same `now` always produce the same alerts, ids and
order, which is what lets clients deduplicate and acknowledge them.

    authorizations ──▶ expiry tier ──┐
                   └─▶ usage tier ───┴──▶ alerts ──▶ summary

One bad record never blocks the rest of the batch: a record that cannot be
classified on a branch is logged and skipped on that branch only.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from .alert_ids import RealtimeAlertKey
from .config import AlertEngineConfig, AlertSeverity, AuthorizationStatus
from .errors import ComputationSkipped
from .models import Alert, AlertEvaluation, AlertSummary, Authorization, UsageStats
from .thresholds import (
    as_utc, days_remaining, effective_units,
    evaluate_expiry, evaluate_usage, usage_percentage,
)

logger = logging.getLogger("authwatch.alerts.engine")

_DEFAULT_CONFIG = AlertEngineConfig()


def evaluate(
    authorizations: Iterable[Authorization],
    now: datetime,
    config: Optional[AlertEngineConfig] = None,
) -> AlertEvaluation:
    """
    Compute real-time alerts for a batch of authorizations.

    Each authorization contributes at most one expiry-tier alert followed by
    at most one usage-tier alert, in input order.
    """
    if now is None:
        raise TypeError("evaluate() requires an explicit 'now'")
    config = config or _DEFAULT_CONFIG
    created_at = as_utc(now)

    alerts: list[Alert] = []
    for auth in authorizations:
        if auth.status != AuthorizationStatus.ACTIVE:
            logger.debug("Skipping authorization %s in status %s", auth.id, auth.status)
            continue
        alerts.extend(_alerts_for(auth, created_at, config))

    return AlertEvaluation(alerts=alerts, summary=summarize(alerts))


def _alerts_for(auth: Authorization, now: datetime, config: AlertEngineConfig) -> list[Alert]:
    alerts = []

    try:
        tier, days = evaluate_expiry(auth, now, config)
        if tier is not None:
            alerts.append(Alert(
                key=RealtimeAlertKey(tier.label, auth.id),
                type=tier.alert_type,
                severity=tier.severity,
                message=tier.message.format(days=days),
                authorization=auth,
                created_at=now,
            ))
    except ComputationSkipped as e:
        logger.warning("Expiry classification skipped: %s", e)

    try:
        tier, percentage = evaluate_usage(auth, config)
        if tier is not None:
            alerts.append(Alert(
                key=RealtimeAlertKey(tier.label, auth.id),
                type=tier.alert_type,
                severity=tier.severity,
                message=tier.message.format(remaining=100 - percentage),
                authorization=auth,
                created_at=now,
            ))
    except ComputationSkipped as e:
        logger.warning("Usage classification skipped: %s", e)

    return alerts


def summarize(alerts: list[Alert]) -> AlertSummary:
    """Counts by severity (which partition the total) and by alert family."""
    return AlertSummary(
        total=len(alerts),
        critical=sum(1 for a in alerts if a.severity == AlertSeverity.CRITICAL),
        high=sum(1 for a in alerts if a.severity == AlertSeverity.HIGH),
        warning=sum(1 for a in alerts if a.severity == AlertSeverity.WARNING),
        expiring=sum(1 for a in alerts if a.type.is_expiry),
        low_units=sum(1 for a in alerts if a.type.is_usage),
    )


def usage_stats(
    auth: Authorization,
    now: datetime,
    config: Optional[AlertEngineConfig] = None,
) -> UsageStats:
    """
    Display statistics for one authorization.

    Consistent with the tier tables: is_nearing_limit is true exactly when
    a usage-tier alert would fire, is_expiring_soon / is_expired exactly
    when an expiry-tier alert would.
    """
    config = config or _DEFAULT_CONFIG

    try:
        used, authorized = effective_units(auth, config)
    except ComputationSkipped as e:
        logger.warning("Usage stats degraded: %s", e)
        used, authorized = 0.0, config.default_authorized_units
    percentage = usage_percentage(used, authorized)

    days: Optional[int] = None
    if auth.end_date is not None:
        try:
            days = days_remaining(auth.end_date, now)
        except (TypeError, ValueError):
            logger.warning("Unusable end date on authorization %s: %r", auth.id, auth.end_date)

    return UsageStats(
        used_units=used,
        authorized_units=authorized,
        usage_percentage=min(max(percentage, 0.0), 100.0),
        remaining_units=max(authorized - used, 0.0),
        days_remaining=max(days, 0) if days is not None else None,
        is_expiring_soon=days is not None and 0 < days <= config.expiring_soon_days,
        is_expired=days is not None and days <= 0,
        is_nearing_limit=percentage >= config.nearing_limit_percent,
    )
