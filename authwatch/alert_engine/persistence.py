"""
authwatch: Alert Persistence

Handles all database operations for the alerting service:
  - Reading tenant-scoped authorization snapshots (with client display data)
  - Writing and updating acknowledged-alert records
  - Querying saved alerts for the feed and detail views
  - Creating the schema for local/dev runs

Every query is scoped by tenant_id. Authorizations are never modified here
except through add() / add_client(), which exist for seeding.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Index, MetaData,
    String, Table, Text, func, select, update,
)
from sqlalchemy.ext.asyncio import AsyncEngine

from .config import AlertSeverity, AlertType, AuthorizationStatus
from .models import Authorization, ClientRef
from .records import AcknowledgedAlertRecord

logger = logging.getLogger("authwatch.alerts.db")

metadata = MetaData()

clients = Table(
    "clients", metadata,
    Column("id", String(64), primary_key=True),
    Column("tenant_id", String(64), nullable=False, index=True),
    Column("first_name", String(128), nullable=False, default=""),
    Column("last_name", String(128), nullable=False, default=""),
    Column("medicaid_id", String(64), nullable=True),
)

authorizations = Table(
    "authorizations", metadata,
    Column("id", String(64), primary_key=True),
    Column("tenant_id", String(64), nullable=False, index=True),
    Column("client_id", String(64), ForeignKey("clients.id"), nullable=True),
    Column("auth_number", String(64), nullable=False, default=""),
    Column("service_type", String(64), nullable=False, default=""),
    Column("unit_type", String(32), nullable=False, default="HOURLY"),
    Column("authorized_units", Float, nullable=True),
    Column("used_units", Float, nullable=True),
    Column("start_date", Date, nullable=True),
    Column("end_date", Date, nullable=True),
    Column("status", String(16), nullable=False, default=AuthorizationStatus.ACTIVE.value),
    Column("notes", Text, nullable=True),
)

authorization_alerts = Table(
    "authorization_alerts", metadata,
    Column("id", String(64), primary_key=True),
    Column("tenant_id", String(64), nullable=False),
    Column("authorization_id", String(64), ForeignKey("authorizations.id"), nullable=False),
    Column("alert_type", String(32), nullable=False),
    Column("severity", String(16), nullable=False),
    Column("message", Text, nullable=False),
    Column("is_read", Boolean, nullable=False, default=False),
    Column("read_at", DateTime(timezone=True), nullable=True),
    Column("action_taken", String(32), nullable=True),
    Column("action_taken_at", DateTime(timezone=True), nullable=True),
    Column("action_taken_by_id", String(64), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_authorization_alerts_tenant_created", "tenant_id", "created_at"),
    Index("ix_authorization_alerts_lookup", "tenant_id", "authorization_id", "alert_type"),
)


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("Schema ready: %s", ", ".join(sorted(metadata.tables)))


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite drops tzinfo on the way back; stored values are always UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class AuthorizationStore:
    """Read access to tenant-scoped authorization snapshots."""

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _base_query():
        return (
            select(
                authorizations,
                clients.c.first_name.label("client_first_name"),
                clients.c.last_name.label("client_last_name"),
                clients.c.medicaid_id.label("client_medicaid_id"),
            )
            .select_from(authorizations.outerjoin(clients, clients.c.id == authorizations.c.client_id))
        )

    @staticmethod
    def _to_authorization(row) -> Authorization:
        m = row._mapping
        client = None
        if m["client_id"] is not None:
            client = ClientRef(
                id=m["client_id"],
                first_name=m["client_first_name"] or "",
                last_name=m["client_last_name"] or "",
                medicaid_id=m["client_medicaid_id"],
            )
        return Authorization(
            id=m["id"],
            tenant_id=m["tenant_id"],
            client_id=m["client_id"],
            auth_number=m["auth_number"],
            service_type=m["service_type"],
            unit_type=m["unit_type"],
            authorized_units=m["authorized_units"],
            used_units=m["used_units"],
            start_date=m["start_date"],
            end_date=m["end_date"],
            status=AuthorizationStatus(m["status"]),
            notes=m["notes"],
            client=client,
        )

    # ── Load ─────────────────────────────────────────────────────────────

    async def list_active(self, tenant_id: str) -> list[Authorization]:
        """All ACTIVE authorizations for a tenant, ordered by end date then id."""
        query = (
            self._base_query()
            .where(authorizations.c.tenant_id == tenant_id)
            .where(authorizations.c.status == AuthorizationStatus.ACTIVE.value)
            .order_by(authorizations.c.end_date, authorizations.c.id)
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            rows = result.fetchall()

        logger.debug("Loaded %d active authorizations for tenant %s", len(rows), tenant_id)
        return [self._to_authorization(r) for r in rows]

    async def get_by_id(self, tenant_id: str, authorization_id: str) -> Optional[Authorization]:
        query = (
            self._base_query()
            .where(authorizations.c.tenant_id == tenant_id)
            .where(authorizations.c.id == authorization_id)
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            row = result.fetchone()
        return self._to_authorization(row) if row else None

    async def search(
        self,
        tenant_id: str,
        client_id: Optional[str] = None,
        status: Optional[AuthorizationStatus] = None,
        ending_between: Optional[tuple] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Authorization], int]:
        """
        Filtered page of authorizations plus the unpaged total.
        ending_between is an inclusive (first_date, last_date) window on end_date.
        """
        conditions = [authorizations.c.tenant_id == tenant_id]
        if client_id:
            conditions.append(authorizations.c.client_id == client_id)
        if status:
            conditions.append(authorizations.c.status == AuthorizationStatus(status).value)
        if ending_between:
            first, last = ending_between
            conditions.append(authorizations.c.end_date >= first)
            conditions.append(authorizations.c.end_date <= last)

        query = (
            self._base_query()
            .where(*conditions)
            .order_by(authorizations.c.end_date, authorizations.c.id)
            .offset(offset)
            .limit(limit)
        )
        count_query = select(func.count()).select_from(authorizations).where(*conditions)

        async with self._session_factory() as session:
            rows = (await session.execute(query)).fetchall()
            total = (await session.execute(count_query)).scalar_one()

        return [self._to_authorization(r) for r in rows], total

    # ── Write (seeding only) ─────────────────────────────────────────────

    async def add_client(self, tenant_id: str, client: ClientRef) -> None:
        async with self._session_factory() as session:
            await session.execute(clients.insert().values(
                id=client.id,
                tenant_id=tenant_id,
                first_name=client.first_name,
                last_name=client.last_name,
                medicaid_id=client.medicaid_id,
            ))
            await session.commit()

    async def add(self, auth: Authorization) -> Authorization:
        async with self._session_factory() as session:
            await session.execute(authorizations.insert().values(
                id=auth.id,
                tenant_id=auth.tenant_id,
                client_id=auth.client_id or (auth.client.id if auth.client else None),
                auth_number=auth.auth_number,
                service_type=auth.service_type,
                unit_type=auth.unit_type,
                authorized_units=auth.authorized_units,
                used_units=auth.used_units,
                start_date=auth.start_date,
                end_date=auth.end_date,
                status=AuthorizationStatus(auth.status).value,
                notes=auth.notes,
            ))
            await session.commit()
        return auth


class AlertRecordStore:
    """Acknowledged-alert records."""

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_record(row) -> AcknowledgedAlertRecord:
        m = row._mapping
        return AcknowledgedAlertRecord(
            id=m["id"],
            tenant_id=m["tenant_id"],
            authorization_id=m["authorization_id"],
            alert_type=AlertType(m["alert_type"]),
            severity=AlertSeverity(m["severity"]),
            message=m["message"],
            is_read=bool(m["is_read"]),
            read_at=_utc(m["read_at"]),
            action_taken=m["action_taken"],
            action_taken_at=_utc(m["action_taken_at"]),
            action_taken_by_id=m["action_taken_by_id"],
            created_at=_utc(m["created_at"]),
        )

    @staticmethod
    def _values(record: AcknowledgedAlertRecord) -> dict:
        return {
            "tenant_id": record.tenant_id,
            "authorization_id": record.authorization_id,
            "alert_type": record.alert_type.value,
            "severity": record.severity.value,
            "message": record.message,
            "is_read": record.is_read,
            "read_at": record.read_at,
            "action_taken": record.action_taken,
            "action_taken_at": record.action_taken_at,
            "action_taken_by_id": record.action_taken_by_id,
        }

    # ── Write ────────────────────────────────────────────────────────────

    async def create(self, record: AcknowledgedAlertRecord) -> AcknowledgedAlertRecord:
        """Insert a new record. created_at defaults to the time of insert."""
        if record.created_at is None:
            record.created_at = datetime.now(timezone.utc)
        async with self._session_factory() as session:
            await session.execute(authorization_alerts.insert().values(
                id=record.id,
                created_at=record.created_at,
                **self._values(record),
            ))
            await session.commit()

        logger.info(
            "Saved alert record %s (%s, authorization=%s)",
            record.id, record.alert_type.value, record.authorization_id,
        )
        return record

    async def update(self, record: AcknowledgedAlertRecord) -> None:
        """Write back the record's current acknowledgement state."""
        async with self._session_factory() as session:
            await session.execute(
                update(authorization_alerts)
                .where(authorization_alerts.c.id == record.id)
                .where(authorization_alerts.c.tenant_id == record.tenant_id)
                .values(**self._values(record))
            )
            await session.commit()

    # ── Queries ──────────────────────────────────────────────────────────

    async def get_by_id(self, tenant_id: str, record_id: str) -> Optional[AcknowledgedAlertRecord]:
        query = (
            select(authorization_alerts)
            .where(authorization_alerts.c.tenant_id == tenant_id)
            .where(authorization_alerts.c.id == record_id)
        )
        async with self._session_factory() as session:
            row = (await session.execute(query)).fetchone()
        return self._to_record(row) if row else None

    async def find_latest(
        self,
        tenant_id: str,
        authorization_id: str,
        alert_type: AlertType,
    ) -> Optional[AcknowledgedAlertRecord]:
        query = (
            select(authorization_alerts)
            .where(authorization_alerts.c.tenant_id == tenant_id)
            .where(authorization_alerts.c.authorization_id == authorization_id)
            .where(authorization_alerts.c.alert_type == alert_type.value)
            .order_by(authorization_alerts.c.created_at.desc())
            .limit(1)
        )
        async with self._session_factory() as session:
            row = (await session.execute(query)).fetchone()
        return self._to_record(row) if row else None

    async def list_records(
        self,
        tenant_id: str,
        acknowledged: Optional[bool] = None,
        limit: int = 50,
        authorization_id: Optional[str] = None,
    ) -> list[AcknowledgedAlertRecord]:
        """Newest first, optionally filtered by acknowledgement state or authorization."""
        query = select(authorization_alerts).where(authorization_alerts.c.tenant_id == tenant_id)
        if acknowledged is True:
            query = query.where(authorization_alerts.c.action_taken_at.is_not(None))
        elif acknowledged is False:
            query = query.where(authorization_alerts.c.action_taken_at.is_(None))
        if authorization_id:
            query = query.where(authorization_alerts.c.authorization_id == authorization_id)
        query = query.order_by(authorization_alerts.c.created_at.desc()).limit(limit)

        async with self._session_factory() as session:
            rows = (await session.execute(query)).fetchall()
        return [self._to_record(r) for r in rows]

    async def list_unacknowledged(self, tenant_id: str, limit: int = 50) -> list[AcknowledgedAlertRecord]:
        return await self.list_records(tenant_id, acknowledged=False, limit=limit)

    async def list_for_authorization(
        self,
        tenant_id: str,
        authorization_id: str,
        limit: int = 10,
    ) -> list[AcknowledgedAlertRecord]:
        return await self.list_records(tenant_id, authorization_id=authorization_id, limit=limit)

    async def count(self, tenant_id: str) -> int:
        query = select(func.count()).select_from(authorization_alerts).where(
            authorization_alerts.c.tenant_id == tenant_id
        )
        async with self._session_factory() as session:
            return (await session.execute(query)).scalar_one()
