"""
authwatch: Alert Identity

Real-time alerts are never stored, so their identity has to be derivable
from the data: "{tier label}-{authorization id}", e.g. "usage-90-<id>".
Saved (persisted) alerts are identified by their record id.

Authorization ids are UUIDs and contain hyphens, so ids are parsed by
matching the known tier labels as prefixes rather than by splitting.
"""

from dataclasses import dataclass
from typing import Iterable, Union

from .errors import ValidationError


@dataclass(frozen=True)
class RealtimeAlertKey:
    label: str
    authorization_id: str

    kind = "realtime"

    @property
    def alert_id(self) -> str:
        return f"{self.label}-{self.authorization_id}"


@dataclass(frozen=True)
class SavedAlertKey:
    record_id: str

    kind = "saved"

    @property
    def alert_id(self) -> str:
        return self.record_id


AlertKey = Union[RealtimeAlertKey, SavedAlertKey]


def parse_alert_id(alert_id: str, labels: Iterable[str]) -> AlertKey:
    """
    Recover the structured key from an alert id string.

    Longest label wins so that a label which is a prefix of another
    ("usage-9" vs "usage-90") cannot shadow it.
    """
    alert_id = (alert_id or "").strip()
    if not alert_id:
        raise ValidationError("Alert ID is required")

    for label in sorted(labels, key=len, reverse=True):
        prefix = f"{label}-"
        if alert_id.startswith(prefix) and len(alert_id) > len(prefix):
            return RealtimeAlertKey(label=label, authorization_id=alert_id[len(prefix):])

    return SavedAlertKey(record_id=alert_id)
