"""authwatch: Alert Engine Errors"""


class AlertError(Exception):
    """Base class for alerting errors surfaced to callers."""

    status_code = 500


class ValidationError(AlertError):
    """Malformed request, e.g. an acknowledge call without an alert id."""

    status_code = 400


class NotFoundError(AlertError):
    """Referenced authorization or alert record is missing or belongs to another tenant."""

    status_code = 404


class ComputationSkipped(Exception):
    """
    A single record cannot be classified on one branch (expiry or usage).

    Internal only: the engine catches it, logs a warning and moves on.
    """

    def __init__(self, authorization_id: str, branch: str, reason: str) -> None:
        super().__init__(f"{branch} skipped for authorization {authorization_id}: {reason}")
        self.authorization_id = authorization_id
        self.branch = branch
        self.reason = reason
