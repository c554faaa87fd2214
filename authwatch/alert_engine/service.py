"""
authwatch: Alert Service (orchestrator)

Ties the pure engine to its collaborators:

    AuthorizationStore ──▶ engine.evaluate ──▶ alert feed
                                               │
    AlertRecordStore ◀── acknowledge ◀─────────┘
           │
           └──▶ AlertEventPublisher (Redis, optional)

All entry points take the tenant and an explicit `now`; callers (routes,
CLI) read the clock, the service never does.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .alert_ids import RealtimeAlertKey, SavedAlertKey, parse_alert_id
from .config import AlertEngineConfig, AuthorizationStatus
from .engine import evaluate, usage_stats
from .errors import NotFoundError
from .models import Alert, AlertSummary, Authorization, UsageStats
from .persistence import AlertRecordStore, AuthorizationStore
from .publisher import AlertEventPublisher
from .records import AcknowledgedAlertRecord, TransitionResult
from .thresholds import as_utc

logger = logging.getLogger("authwatch.alerts.service")

FALLBACK_ACK_MESSAGE = "Alert acknowledged"


@dataclass(frozen=True)
class AlertFeed:
    alerts: list[Alert]
    saved_alerts: list[AcknowledgedAlertRecord]
    summary: AlertSummary


@dataclass(frozen=True)
class AuthorizationView:
    authorization: Authorization
    stats: UsageStats


@dataclass(frozen=True)
class AuthorizationDetail:
    authorization: Authorization
    stats: UsageStats
    alerts: list[AcknowledgedAlertRecord]


class AlertService:

    def __init__(
        self,
        authorizations: AuthorizationStore,
        records: AlertRecordStore,
        config: Optional[AlertEngineConfig] = None,
        publisher: Optional[AlertEventPublisher] = None,
    ) -> None:
        self.authorizations = authorizations
        self.records = records
        self.config = config or AlertEngineConfig()
        self.publisher = publisher

    # ── Feed ─────────────────────────────────────────────────────────────

    async def get_alert_feed(
        self,
        tenant_id: str,
        now: datetime,
        acknowledged: Optional[bool] = None,
    ) -> AlertFeed:
        """
        Real-time alerts for the tenant's ACTIVE authorizations, plus saved
        alert records (unacknowledged only when acknowledged=False).
        """
        active = await self.authorizations.list_active(tenant_id)
        evaluation = evaluate(active, now, self.config)

        saved = await self.records.list_records(
            tenant_id,
            acknowledged=acknowledged,
            limit=self.config.saved_alert_limit,
        )

        logger.info(
            "Alert feed tenant=%s: %d authorizations, %d alerts (%d critical), %d saved",
            tenant_id, len(active), evaluation.summary.total,
            evaluation.summary.critical, len(saved),
        )
        return AlertFeed(alerts=evaluation.alerts, saved_alerts=saved, summary=evaluation.summary)

    # ── Acknowledge ──────────────────────────────────────────────────────

    async def acknowledge(
        self,
        tenant_id: str,
        alert_id: Optional[str],
        user_id: str,
        now: datetime,
    ) -> AcknowledgedAlertRecord:
        """
        Acknowledge a real-time alert (by its derived id) or a saved alert
        record (by record id). Never touches the authorization itself.
        """
        key = parse_alert_id(alert_id, self.config.labels)
        now = as_utc(now)

        if isinstance(key, RealtimeAlertKey):
            record = await self._acknowledge_realtime(tenant_id, key, user_id, now)
        else:
            record = await self._acknowledge_saved(tenant_id, key, user_id, now)

        if self.publisher is not None:
            await self.publisher.publish("alert_acknowledged", tenant_id, {
                "alert_id": key.alert_id,
                "record": record.to_dict(),
            }, timestamp=now)
        return record

    async def _acknowledge_realtime(
        self,
        tenant_id: str,
        key: RealtimeAlertKey,
        user_id: str,
        now: datetime,
    ) -> AcknowledgedAlertRecord:
        # parse_alert_id only yields labels from this config
        tier = self.config.tier_for_label(key.label)

        auth = await self.authorizations.get_by_id(tenant_id, key.authorization_id)
        if auth is None:
            logger.warning("ACK rejected: authorization %s not found for tenant %s", key.authorization_id, tenant_id)
            raise NotFoundError("Authorization not found")

        if self.config.upsert_acknowledgements:
            existing = await self.records.find_latest(tenant_id, auth.id, tier.alert_type)
            if existing is not None:
                if existing.acknowledge(user_id, now) == TransitionResult.OK:
                    await self.records.update(existing)
                return existing

        record = AcknowledgedAlertRecord.acknowledged(
            tenant_id=tenant_id,
            authorization_id=auth.id,
            alert_type=tier.alert_type,
            severity=tier.severity,
            message=self._current_message(auth, key, now),
            user_id=user_id,
            timestamp=now,
        )
        return await self.records.create(record)

    def _current_message(self, auth: Authorization, key: RealtimeAlertKey, now: datetime) -> str:
        """The alert's message as it stands now, if the alert still fires."""
        for alert in evaluate([auth], now, self.config).alerts:
            if alert.key == key:
                return alert.message
        return FALLBACK_ACK_MESSAGE

    async def _acknowledge_saved(
        self,
        tenant_id: str,
        key: SavedAlertKey,
        user_id: str,
        now: datetime,
    ) -> AcknowledgedAlertRecord:
        record = await self.records.get_by_id(tenant_id, key.record_id)
        if record is None:
            logger.warning("ACK rejected: alert %s not found for tenant %s", key.record_id, tenant_id)
            raise NotFoundError("Alert not found")

        if record.acknowledge(user_id, now) == TransitionResult.OK:
            await self.records.update(record)
        return record

    # ── Authorization views ──────────────────────────────────────────────

    async def get_authorization_detail(
        self,
        tenant_id: str,
        authorization_id: str,
        now: datetime,
    ) -> AuthorizationDetail:
        auth = await self.authorizations.get_by_id(tenant_id, authorization_id)
        if auth is None:
            raise NotFoundError("Authorization not found")

        alerts = await self.records.list_for_authorization(
            tenant_id, auth.id, limit=self.config.detail_alert_limit,
        )
        return AuthorizationDetail(
            authorization=auth,
            stats=usage_stats(auth, now, self.config),
            alerts=alerts,
        )

    async def list_authorizations(
        self,
        tenant_id: str,
        now: datetime,
        client_id: Optional[str] = None,
        status: Optional[AuthorizationStatus] = None,
        expiring_soon: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[AuthorizationView], int]:
        """
        Page of authorizations with usage statistics, soonest end date first.
        expiring_soon restricts to ACTIVE authorizations ending within the
        widest expiry window and not yet expired.
        """
        ending_between = None
        if expiring_soon:
            # an end date of today means midnight today, already past
            today = as_utc(now).date()
            ending_between = (
                today + timedelta(days=1),
                today + timedelta(days=self.config.expiring_soon_days),
            )
            status = AuthorizationStatus.ACTIVE

        rows, total = await self.authorizations.search(
            tenant_id,
            client_id=client_id,
            status=status,
            ending_between=ending_between,
            limit=limit,
            offset=offset,
        )
        views = [AuthorizationView(authorization=a, stats=usage_stats(a, now, self.config)) for a in rows]
        return views, total
