"""
authwatch command line.

Usage:
    python -m authwatch serve                 # run the API (uvicorn)
    python -m authwatch init-db               # create tables
    python -m authwatch seed --tenant demo    # load demo data
    python -m authwatch alerts --tenant demo  # print the alert feed as JSON
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone

import uvicorn
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from .alert_engine.persistence import AlertRecordStore, AuthorizationStore, create_schema
from .alert_engine.service import AlertService
from .config import Settings, configure_logging
from .seed import seed

logger = logging.getLogger("authwatch.cli")


def _parse_now(value: str) -> datetime:
    now = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return now if now.tzinfo else now.replace(tzinfo=timezone.utc)


async def _with_stores(settings: Settings, fn):
    engine = create_async_engine(settings.database_url)
    try:
        session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        return await fn(engine, session_factory)
    finally:
        await engine.dispose()


async def _init_db(settings: Settings) -> int:
    async def run(engine, _):
        await create_schema(engine)
        return 0
    return await _with_stores(settings, run)


async def _seed(settings: Settings, tenant_id: str, now: datetime) -> int:
    async def run(engine, session_factory):
        count = await seed(AuthorizationStore(session_factory), tenant_id, now)
        print(f"OK: seeded {count} authorizations for tenant {tenant_id}")
        return 0
    return await _with_stores(settings, run)


async def _alerts(settings: Settings, tenant_id: str, now: datetime) -> int:
    async def run(engine, session_factory):
        service = AlertService(
            AuthorizationStore(session_factory),
            AlertRecordStore(session_factory),
            config=settings.engine_config(),
        )
        feed = await service.get_alert_feed(tenant_id, now, acknowledged=False)
        print(json.dumps({
            "alerts": [a.to_dict() for a in feed.alerts],
            "saved_alerts": [r.to_dict() for r in feed.saved_alerts],
            "summary": feed.summary.to_dict(),
        }, indent=2))
        return 0
    return await _with_stores(settings, run)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="authwatch", description="Authorization usage and expiry alerts")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the REST API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    sub.add_parser("init-db", help="create database tables")

    for name, help_text in (("seed", "load demo data"), ("alerts", "print the alert feed")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--tenant", required=True)
        p.add_argument("--now", type=_parse_now, default=None, help="ISO timestamp (default: current time)")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)

    if args.command == "serve":
        uvicorn.run(
            "authwatch.api.app:app",
            host=args.host or settings.API_HOST,
            port=args.port or settings.API_PORT,
        )
        return 0

    if args.command == "init-db":
        return asyncio.run(_init_db(settings))

    now = args.now or datetime.now(timezone.utc)
    if args.command == "seed":
        return asyncio.run(_seed(settings, args.tenant, now))
    return asyncio.run(_alerts(settings, args.tenant, now))


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        raise
