"""Authorization usage and expiry alert engine."""

from .config import AlertEngineConfig, AlertSeverity, AlertType, AuthorizationStatus
from .engine import evaluate, summarize, usage_stats
from .errors import AlertError, NotFoundError, ValidationError
from .models import Alert, AlertEvaluation, AlertSummary, Authorization, ClientRef, UsageStats

__all__ = [
    "AlertEngineConfig", "AlertSeverity", "AlertType", "AuthorizationStatus",
    "evaluate", "summarize", "usage_stats",
    "AlertError", "NotFoundError", "ValidationError",
    "Alert", "AlertEvaluation", "AlertSummary", "Authorization", "ClientRef", "UsageStats",
]
