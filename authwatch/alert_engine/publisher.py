"""
authwatch: Alert Event Publisher

Publishes alert events to a Redis pub/sub channel for notification and
dashboard consumers. Publishing is best effort: the database write has
already succeeded, so a Redis failure is logged and not raised.

Message format:
{
    "event": "alert_acknowledged",
    "tenant_id": "tenant-1",
    "record": {...},
    "timestamp": "2026-02-21T10:30:00+00:00"
}
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger("authwatch.alerts.publisher")


class AlertEventPublisher:

    def __init__(self, redis, channel: str) -> None:
        self._redis = redis
        self._channel = channel
        self._published = 0
        self._failed = 0

    async def publish(
        self,
        event_type: str,
        tenant_id: str,
        payload: dict,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """Returns True when the message was handed to Redis."""
        msg = json.dumps({
            "event": event_type,
            "tenant_id": tenant_id,
            **payload,
            "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
        })
        try:
            await self._redis.publish(self._channel, msg)
        except Exception:
            self._failed += 1
            logger.exception("Failed to publish %s event for tenant %s", event_type, tenant_id)
            return False

        self._published += 1
        return True

    @property
    def stats(self) -> dict:
        return {"channel": self._channel, "published": self._published, "failed": self._failed}
