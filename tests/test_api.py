"""HTTP surface: routing, identity headers, error mapping and camelCase JSON."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from authwatch.alert_engine.config import AuthorizationStatus
from authwatch.alert_engine.models import ClientRef
from authwatch.alert_engine.persistence import AuthorizationStore, create_schema
from authwatch.alert_engine.publisher import AlertEventPublisher
from authwatch.api.app import create_app
from authwatch.api.deps import get_now
from authwatch.config import Settings

from tests.factories import NOW, OTHER_TENANT, TENANT, make_stored_auth

HEADERS = {"X-Tenant-ID": TENANT, "X-User-ID": "user-1"}

CLIENT = ClientRef(id="client-1", first_name="James", last_name="Okafor", medicaid_id="MA1000874")
SOON = make_stored_auth(days=10, used=95, authorized=100, auth_id="auth-soon", client=CLIENT)
QUIET = make_stored_auth(days=90, used=10, authorized=100, auth_id="auth-quiet")
EXPIRED = make_stored_auth(days=-2, used=100, authorized=100, auth_id="auth-expired")
PENDING = make_stored_auth(days=12, status=AuthorizationStatus.PENDING, auth_id="auth-pending")
FOREIGN = make_stored_auth(days=3, tenant_id=OTHER_TENANT, auth_id="auth-foreign")


async def _load(database_url: str) -> None:
    engine = create_async_engine(database_url)
    try:
        await create_schema(engine)
        store = AuthorizationStore(sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
        await store.add_client(TENANT, CLIENT)
        for auth in (SOON, QUIET, EXPIRED, PENDING, FOREIGN):
            await store.add(auth)
    finally:
        await engine.dispose()


@pytest.fixture
def client(tmp_path):
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'api.db'}"
    asyncio.run(_load(database_url))

    app = create_app(Settings(DATABASE_URL=database_url, DB_AUTO_CREATE=True, REDIS_URL=None))
    app.dependency_overrides[get_now] = lambda: NOW
    with TestClient(app) as test_client:
        yield test_client


class TestIdentity:
    def test_missing_tenant(self, client):
        resp = client.get("/api/v1/authorizations/alerts")
        assert resp.status_code == 401

    def test_acknowledge_requires_user(self, client):
        resp = client.post(
            "/api/v1/authorizations/alerts",
            json={"alertId": "expired-auth-expired"},
            headers={"X-Tenant-ID": TENANT},
        )
        assert resp.status_code == 401

    def test_user_named_anonymous_can_acknowledge(self, client):
        resp = client.post(
            "/api/v1/authorizations/alerts",
            json={"alertId": "expired-auth-expired"},
            headers={"X-Tenant-ID": TENANT, "X-User-ID": "anonymous"},
        )
        assert resp.status_code == 200

        (saved,) = client.get("/api/v1/authorizations/alerts", headers=HEADERS).json()["savedAlerts"]
        assert saved["actionTakenById"] == "anonymous"


class TestGetAlerts:
    def test_feed(self, client):
        resp = client.get("/api/v1/authorizations/alerts", headers=HEADERS)
        assert resp.status_code == 200
        body = resp.json()

        ids = [a["id"] for a in body["alerts"]]
        assert ids == [
            "expired-auth-expired", "exhausted-auth-expired",
            "expiring-14-auth-soon", "usage-90-auth-soon",
        ]
        assert body["summary"] == {
            "total": 4, "critical": 2, "high": 2, "warning": 0, "expiring": 2, "lowUnits": 2,
        }
        assert body["savedAlerts"] == []

    def test_alert_shape(self, client):
        body = client.get("/api/v1/authorizations/alerts", headers=HEADERS).json()
        alert = next(a for a in body["alerts"] if a["id"] == "usage-90-auth-soon")

        assert alert["type"] == "UNITS_LOW"
        assert alert["severity"] == "HIGH"
        assert alert["message"] == "5.0% of units remaining"
        assert alert["createdAt"].startswith("2026-03-02T12:00:00")
        assert alert["authorization"]["authNumber"] == "PA-0001"
        assert alert["authorization"]["client"]["firstName"] == "James"

    def test_other_tenant(self, client):
        body = client.get("/api/v1/authorizations/alerts", headers={"X-Tenant-ID": OTHER_TENANT}).json()
        assert [a["id"] for a in body["alerts"]] == ["expiring-7-auth-foreign"]


class TestAcknowledge:
    def test_acknowledge_realtime_alert(self, client):
        resp = client.post(
            "/api/v1/authorizations/alerts", json={"alertId": "usage-90-auth-soon"}, headers=HEADERS,
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        body = client.get(
            "/api/v1/authorizations/alerts", params={"acknowledged": "true"}, headers=HEADERS,
        ).json()
        (saved,) = body["savedAlerts"]
        assert saved["authorizationId"] == "auth-soon"
        assert saved["alertType"] == "UNITS_LOW"
        assert saved["actionTaken"] == "ACKNOWLEDGED"
        assert saved["actionTakenById"] == "user-1"
        assert saved["isRead"] is True

        # real-time alerts are recomputed, so the alert is still listed
        assert "usage-90-auth-soon" in [a["id"] for a in body["alerts"]]

        unacked = client.get(
            "/api/v1/authorizations/alerts", params={"acknowledged": "false"}, headers=HEADERS,
        ).json()
        assert unacked["savedAlerts"] == []

    def test_acknowledge_saved_alert(self, client):
        client.post("/api/v1/authorizations/alerts", json={"alertId": "expired-auth-expired"}, headers=HEADERS)
        record_id = client.get("/api/v1/authorizations/alerts", headers=HEADERS).json()["savedAlerts"][0]["id"]

        resp = client.post("/api/v1/authorizations/alerts", json={"alertId": record_id}, headers=HEADERS)

        assert resp.status_code == 200

    @pytest.mark.parametrize("payload", [{}, {"alertId": ""}, {"alertId": None}])
    def test_missing_alert_id(self, client, payload):
        resp = client.post("/api/v1/authorizations/alerts", json=payload, headers=HEADERS)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Alert ID is required"

    @pytest.mark.parametrize("alert_id", ["expired-auth-missing", "expiring-7-auth-foreign", "some-record-id"])
    def test_not_found(self, client, alert_id):
        resp = client.post("/api/v1/authorizations/alerts", json={"alertId": alert_id}, headers=HEADERS)
        assert resp.status_code == 404

        body = client.get("/api/v1/authorizations/alerts", headers=HEADERS).json()
        assert body["savedAlerts"] == []


class TestAuthorizations:
    def test_list(self, client):
        resp = client.get("/api/v1/authorizations", headers=HEADERS)
        assert resp.status_code == 200
        body = resp.json()

        assert body["total"] == 4
        assert [a["id"] for a in body["authorizations"]] == [
            "auth-expired", "auth-soon", "auth-pending", "auth-quiet",
        ]
        soon = body["authorizations"][1]
        assert soon["usagePercentage"] == 95.0
        assert soon["remainingUnits"] == 5.0
        assert soon["daysRemaining"] == 10
        assert soon["isExpiringSoon"] is True
        assert soon["isNearingLimit"] is True

    def test_list_filters(self, client):
        body = client.get(
            "/api/v1/authorizations", params={"expiringSoon": "true"}, headers=HEADERS,
        ).json()
        assert [a["id"] for a in body["authorizations"]] == ["auth-soon"]

        body = client.get(
            "/api/v1/authorizations", params={"clientId": "client-1"}, headers=HEADERS,
        ).json()
        assert body["total"] == 1

        body = client.get(
            "/api/v1/authorizations", params={"status": "PENDING"}, headers=HEADERS,
        ).json()
        assert [a["id"] for a in body["authorizations"]] == ["auth-pending"]

    def test_list_paging(self, client):
        body = client.get(
            "/api/v1/authorizations", params={"limit": 1, "offset": 1}, headers=HEADERS,
        ).json()
        assert body["total"] == 4
        assert [a["id"] for a in body["authorizations"]] == ["auth-soon"]

    def test_detail(self, client):
        client.post("/api/v1/authorizations/alerts", json={"alertId": "exhausted-auth-expired"}, headers=HEADERS)

        resp = client.get("/api/v1/authorizations/auth-expired", headers=HEADERS)

        assert resp.status_code == 200
        body = resp.json()
        assert body["authorization"]["isExpired"] is True
        assert body["authorization"]["daysRemaining"] == 0
        assert body["authorization"]["remainingUnits"] == 0
        assert [a["alertType"] for a in body["alerts"]] == ["UNITS_EXHAUSTED"]

    def test_detail_not_found(self, client):
        assert client.get("/api/v1/authorizations/auth-foreign", headers=HEADERS).status_code == 404
        assert client.get("/api/v1/authorizations/nope", headers=HEADERS).status_code == 404


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["dbConnected"] is True
    assert body["redisConnected"] is None
    assert body["events"] is None


def test_health_reports_event_counters(client):
    redis = AsyncMock()
    publisher = AlertEventPublisher(redis, "authwatch:alerts:events")
    client.app.state.redis = redis
    client.app.state.publisher = publisher
    client.app.state.alert_service.publisher = publisher

    client.post("/api/v1/authorizations/alerts", json={"alertId": "expired-auth-expired"}, headers=HEADERS)
    body = client.get("/health").json()

    assert body["redisConnected"] is True
    assert body["events"] == {"channel": "authwatch:alerts:events", "published": 1, "failed": 0}
