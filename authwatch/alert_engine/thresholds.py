"""
authwatch: Tier Evaluator

Usage and expiry arithmetic for a single authorization, and classification
of the results against the expiry and usage tier tables.

Each classifier walks its tiers most-urgent-first and returns the first
match, so an authorization lands in at most one expiry tier and at most one
usage tier.
"""

import math
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from .config import AlertEngineConfig, ExpiryTier, UsageTier
from .errors import ComputationSkipped
from .models import Authorization

SECONDS_PER_DAY = 24 * 60 * 60


def as_utc(value) -> Optional[datetime]:
    """
    Normalise a date or datetime to an aware UTC datetime.

    Calendar dates are read as midnight UTC; naive datetimes are taken to be UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def as_number(value) -> Optional[float]:
    """Coerce a unit quantity (int, float, Decimal, numeric string) to float."""
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    try:
        return float(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError):
        return None


def days_remaining(end_date, now: datetime) -> int:
    """Whole days until end_date, rounded up. Negative once expired."""
    end = as_utc(end_date)
    if end is None:
        raise ValueError(f"Unusable end date: {end_date!r}")
    seconds = (end - as_utc(now)).total_seconds()
    return math.ceil(seconds / SECONDS_PER_DAY)


def effective_units(auth: Authorization, config: AlertEngineConfig) -> tuple[float, float]:
    """
    (used, authorized) after defaults: missing used units count as 0,
    zero/missing authorized units fall back to config.default_authorized_units.

    Raises ComputationSkipped when the record carries no usable unit data.
    """
    if auth.used_units is None and auth.authorized_units is None:
        raise ComputationSkipped(auth.id, "usage", "no unit data")

    used = as_number(auth.used_units) if auth.used_units is not None else 0.0
    authorized = as_number(auth.authorized_units) if auth.authorized_units is not None else 0.0
    if used is None or authorized is None:
        raise ComputationSkipped(auth.id, "usage", "non-numeric units")

    return used, (authorized or config.default_authorized_units)


def usage_percentage(used: float, authorized: float) -> float:
    return (used / authorized) * 100


def classify_expiry(days: int, config: AlertEngineConfig) -> Optional[ExpiryTier]:
    for tier in config.ordered_expiry_tiers:
        if days <= tier.max_days:
            return tier
    return None


def classify_usage(percentage: float, config: AlertEngineConfig) -> Optional[UsageTier]:
    for tier in config.ordered_usage_tiers:
        if percentage >= tier.min_percent:
            return tier
    return None


def evaluate_expiry(auth: Authorization, now: datetime, config: AlertEngineConfig):
    """
    Returns (tier or None, days_remaining).
    Raises ComputationSkipped when the end date is missing or unparseable.
    """
    if auth.end_date is None:
        raise ComputationSkipped(auth.id, "expiry", "no end date")
    try:
        days = days_remaining(auth.end_date, now)
    except (TypeError, ValueError) as e:
        raise ComputationSkipped(auth.id, "expiry", str(e)) from e
    return classify_expiry(days, config), days


def evaluate_usage(auth: Authorization, config: AlertEngineConfig):
    """Returns (tier or None, usage_percentage). May raise ComputationSkipped."""
    used, authorized = effective_units(auth, config)
    percentage = usage_percentage(used, authorized)
    return classify_usage(percentage, config), percentage
