"""
authwatch: Seed Data
====================
Populates a database with a demo tenant: a handful of clients and one
authorization per alert tier, with end dates and usage placed relative to
"now" so every expiry and usage band shows up in the feed.

Usage:
  export DATABASE_URL=sqlite+aiosqlite:///./authwatch.db
  python -m authwatch init-db
  python -m authwatch seed --tenant demo
"""

import logging
from datetime import datetime, timedelta
from uuid import uuid4

from .alert_engine.config import AuthorizationStatus
from .alert_engine.models import Authorization, ClientRef
from .alert_engine.persistence import AuthorizationStore

logger = logging.getLogger("authwatch.seed")

# (first, last, medicaid id)
CLIENTS = [
    ("Maria", "Alvarez", "MA1000231"),
    ("James", "Okafor", "MA1000874"),
    ("Helen", "Brooks", "MA1001102"),
    ("Daniel", "Nguyen", None),
]

# (service type, unit type, authorized, used, days until end, status)
AUTHORIZATIONS = [
    ("PERSONAL_CARE", "HOURLY", 120, 20, 90, AuthorizationStatus.ACTIVE),          # quiet
    ("PERSONAL_CARE", "HOURLY", 120, 100, 25, AuthorizationStatus.ACTIVE),         # 30-day + 80%
    ("SKILLED_NURSING", "DAILY", 30, 28, 10, AuthorizationStatus.ACTIVE),          # 14-day + 90%
    ("RESPITE", "QUARTER_HOURLY", 400, 400, 5, AuthorizationStatus.ACTIVE),        # 7-day + exhausted
    ("HOMEMAKER", "HOURLY", 60, 12, -3, AuthorizationStatus.ACTIVE),               # expired
    ("PERSONAL_CARE", "HOURLY", 80, 0, 180, AuthorizationStatus.PENDING),          # not alerted
    ("RESPITE", "HOURLY", 40, 40, -40, AuthorizationStatus.EXHAUSTED),             # not alerted
]


async def seed(store: AuthorizationStore, tenant_id: str, now: datetime) -> int:
    """Insert demo clients and authorizations. Returns authorizations created."""
    client_refs = []
    for first, last, medicaid_id in CLIENTS:
        ref = ClientRef(id=str(uuid4()), first_name=first, last_name=last, medicaid_id=medicaid_id)
        await store.add_client(tenant_id, ref)
        client_refs.append(ref)

    today = now.date()
    count = 0
    for i, (service, unit_type, authorized, used, days, status) in enumerate(AUTHORIZATIONS):
        client = client_refs[i % len(client_refs)]
        end = today + timedelta(days=days)
        await store.add(Authorization(
            id=str(uuid4()),
            tenant_id=tenant_id,
            client_id=client.id,
            auth_number=f"PA-{now:%Y}-{i + 1:04d}",
            service_type=service,
            unit_type=unit_type,
            authorized_units=authorized,
            used_units=used,
            start_date=end - timedelta(days=180),
            end_date=end,
            status=status,
            client=client,
        ))
        count += 1

    logger.info("Seeded tenant %s: %d clients, %d authorizations", tenant_id, len(client_refs), count)
    return count
