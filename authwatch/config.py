"""
authwatch: Service Configuration
Centralises all environment-driven settings with sensible defaults.
"""

import logging
from typing import Optional

from pydantic_settings import BaseSettings

from .alert_engine.config import AlertEngineConfig


class Settings(BaseSettings):
    """All config sourced from environment / .env file."""

    # ── PostgreSQL ───────────────────────────────────────────────────────
    DB_HOST: str = "postgres"
    DB_PORT: int = 5432
    DB_NAME: str = "authwatch"
    DB_USER: str = "authwatch"
    DB_PASSWORD: str = "changeme"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 10
    DB_AUTO_CREATE: bool = False  # create tables on startup (local/dev only)

    # Full URL override, e.g. sqlite+aiosqlite:///./authwatch.db
    DATABASE_URL: Optional[str] = None

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    # ── Redis (alert event pub/sub) ──────────────────────────────────────
    REDIS_URL: Optional[str] = None
    ALERT_EVENTS_CHANNEL: str = "authwatch:alerts:events"

    # ── Alerting ─────────────────────────────────────────────────────────
    ALERT_ACK_UPSERT: bool = False   # update the latest record instead of inserting
    SAVED_ALERT_LIMIT: int = 50

    # ── API ──────────────────────────────────────────────────────────────
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # ── Observability ────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    def engine_config(self) -> AlertEngineConfig:
        return AlertEngineConfig(
            upsert_acknowledgements=self.ALERT_ACK_UPSERT,
            saved_alert_limit=self.SAVED_ALERT_LIMIT,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
