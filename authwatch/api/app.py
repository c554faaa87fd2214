"""
authwatch: REST API

FastAPI application serving authorization usage statistics and alerts to
the dashboard widgets and the alerts drawer.

Endpoints:
  GET  /api/v1/authorizations/alerts?acknowledged=false
  POST /api/v1/authorizations/alerts
  GET  /api/v1/authorizations?clientId=X&status=ACTIVE&expiringSoon=true
  GET  /api/v1/authorizations/{id}
  GET  /health
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from .. import __version__
from ..alert_engine.persistence import AlertRecordStore, AuthorizationStore, create_schema
from ..alert_engine.publisher import AlertEventPublisher
from ..alert_engine.service import AlertService
from ..config import Settings, configure_logging

logger = logging.getLogger("authwatch.api")


def _create_engine(settings: Settings):
    kwargs = {"pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=300,
        )
    return create_async_engine(settings.database_url, **kwargs)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle: DB pool, optional Redis, alert service."""
        logger.info("authwatch API starting...")

        engine = _create_engine(settings)
        if settings.DB_AUTO_CREATE:
            await create_schema(engine)
        app.state.db_engine = engine
        app.state.db_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

        app.state.redis = None
        app.state.publisher = None
        publisher = None
        if settings.REDIS_URL:
            app.state.redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
            publisher = AlertEventPublisher(app.state.redis, settings.ALERT_EVENTS_CHANNEL)
            app.state.publisher = publisher

        app.state.alert_service = AlertService(
            authorizations=AuthorizationStore(app.state.db_session),
            records=AlertRecordStore(app.state.db_session),
            config=settings.engine_config(),
            publisher=publisher,
        )

        logger.info("authwatch API ready (redis=%s)", "on" if publisher else "off")
        yield

        # Shutdown
        if app.state.redis is not None:
            await app.state.redis.aclose()
        await engine.dispose()
        logger.info("authwatch API stopped")

    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="authwatch: Authorization Alerts API",
        description=(
            "Usage and expiry statistics for payer authorizations, with "
            "tiered real-time alerts and acknowledgement tracking."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # alerts before authorizations: /authorizations/alerts must not match /authorizations/{id}
    from .routes import alerts, authorizations, health
    app.include_router(alerts.router, prefix="/api/v1", tags=["Alerts"])
    app.include_router(authorizations.router, prefix="/api/v1", tags=["Authorizations"])
    app.include_router(health.router, tags=["Health"])

    return app


app = create_app()
