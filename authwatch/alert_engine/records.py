"""
authwatch: Acknowledged Alert Records

Real-time alerts are recomputed on every request and never stored. A record
only comes into existence when a user acknowledges an alert (or when another
producer saves one for later review), and has a two-state lifecycle:

    UNREAD ──(acknowledge)──▶ ACKNOWLEDGED

Acknowledging an already-acknowledged record is a no-op; the first
acknowledger and timestamp are kept.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from .config import ACTION_ACKNOWLEDGED, AlertSeverity, AlertType

logger = logging.getLogger("authwatch.alerts.records")


class TransitionResult(str, Enum):
    OK = "OK"
    NO_CHANGE = "NO_CHANGE"


@dataclass
class AcknowledgedAlertRecord:
    """A persisted alert and its acknowledgement state."""
    tenant_id: str
    authorization_id: str
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    id: str = field(default_factory=lambda: str(uuid4()))

    is_read: bool = False
    read_at: Optional[datetime] = None
    action_taken: Optional[str] = None
    action_taken_at: Optional[datetime] = None
    action_taken_by_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_acknowledged(self) -> bool:
        return self.action_taken_at is not None

    def acknowledge(self, user_id: str, timestamp: datetime) -> TransitionResult:
        """User acknowledges the alert."""
        if self.is_acknowledged:
            logger.debug("ACK ignored: record %s already acknowledged by %s", self.id, self.action_taken_by_id)
            return TransitionResult.NO_CHANGE

        self.is_read = True
        self.read_at = self.read_at or timestamp
        self.action_taken = ACTION_ACKNOWLEDGED
        self.action_taken_at = timestamp
        self.action_taken_by_id = user_id

        logger.info(
            "ACK %s [%s] authorization=%s by %s",
            self.alert_type.value, self.severity.value, self.authorization_id, user_id,
        )
        return TransitionResult.OK

    @classmethod
    def acknowledged(
        cls,
        tenant_id: str,
        authorization_id: str,
        alert_type: AlertType,
        severity: AlertSeverity,
        message: str,
        user_id: str,
        timestamp: datetime,
    ) -> "AcknowledgedAlertRecord":
        """New record for a real-time alert, acknowledged on creation."""
        record = cls(
            tenant_id=tenant_id,
            authorization_id=authorization_id,
            alert_type=alert_type,
            severity=severity,
            message=message,
            created_at=timestamp,
        )
        record.acknowledge(user_id, timestamp)
        return record

    def to_dict(self) -> dict:
        """Serialise for event publishing."""
        return {
            "id": self.id,
            "authorization_id": self.authorization_id,
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "message": self.message,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "action_taken": self.action_taken,
            "action_taken_at": self.action_taken_at.isoformat() if self.action_taken_at else None,
            "action_taken_by_id": self.action_taken_by_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
