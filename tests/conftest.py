"""Pytest configuration and fixtures."""

from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from authwatch.alert_engine.models import ClientRef
from authwatch.alert_engine.persistence import AlertRecordStore, AuthorizationStore, create_schema
from authwatch.alert_engine.service import AlertService

from tests.factories import TENANT


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """File-backed SQLite database, fresh per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'authwatch.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def authorization_store(session_factory) -> AuthorizationStore:
    return AuthorizationStore(session_factory)


@pytest.fixture
def record_store(session_factory) -> AlertRecordStore:
    return AlertRecordStore(session_factory)


@pytest.fixture
def alert_service(authorization_store, record_store) -> AlertService:
    return AlertService(authorization_store, record_store)


@pytest_asyncio.fixture
async def client_ref(authorization_store) -> ClientRef:
    ref = ClientRef(id=str(uuid4()), first_name="Maria", last_name="Alvarez", medicaid_id="MA1000231")
    await authorization_store.add_client(TENANT, ref)
    return ref
