"""Acknowledged alert record lifecycle."""

from datetime import timedelta

import pytest

from authwatch.alert_engine.config import ACTION_ACKNOWLEDGED, AlertSeverity, AlertType
from authwatch.alert_engine.records import AcknowledgedAlertRecord, TransitionResult

from tests.factories import NOW, TENANT


@pytest.fixture
def record():
    return AcknowledgedAlertRecord(
        tenant_id=TENANT,
        authorization_id="auth-1",
        alert_type=AlertType.UNITS_LOW,
        severity=AlertSeverity.HIGH,
        message="8.0% of units remaining",
        created_at=NOW - timedelta(hours=2),
    )


class TestAcknowledge:
    def test_new_record_is_unread(self, record):
        assert record.is_read is False
        assert record.is_acknowledged is False
        assert record.id

    def test_acknowledge(self, record):
        assert record.acknowledge("user-1", NOW) == TransitionResult.OK
        assert record.is_read is True
        assert record.read_at == NOW
        assert record.action_taken == ACTION_ACKNOWLEDGED
        assert record.action_taken_at == NOW
        assert record.action_taken_by_id == "user-1"
        assert record.is_acknowledged is True

    def test_earlier_read_time_is_kept(self, record):
        earlier = NOW - timedelta(minutes=30)
        record.is_read, record.read_at = True, earlier
        record.acknowledge("user-1", NOW)
        assert record.read_at == earlier

    def test_second_acknowledge_is_a_no_op(self, record):
        record.acknowledge("user-1", NOW)
        later = NOW + timedelta(minutes=5)

        assert record.acknowledge("user-2", later) == TransitionResult.NO_CHANGE
        assert record.action_taken_by_id == "user-1"
        assert record.action_taken_at == NOW


class TestAcknowledgedFactory:
    def test_created_acknowledged(self):
        record = AcknowledgedAlertRecord.acknowledged(
            tenant_id=TENANT,
            authorization_id="auth-9",
            alert_type=AlertType.EXPIRED,
            severity=AlertSeverity.CRITICAL,
            message="Authorization has expired",
            user_id="user-7",
            timestamp=NOW,
        )
        assert record.created_at == NOW
        assert record.read_at == NOW
        assert record.action_taken_by_id == "user-7"
        assert record.is_acknowledged

    def test_ids_are_unique(self, record):
        other = AcknowledgedAlertRecord(
            tenant_id=TENANT, authorization_id="auth-1",
            alert_type=AlertType.UNITS_LOW, severity=AlertSeverity.HIGH, message="",
        )
        assert other.id != record.id


def test_to_dict(record):
    record.acknowledge("user-1", NOW)
    data = record.to_dict()
    assert data["alert_type"] == "UNITS_LOW"
    assert data["severity"] == "HIGH"
    assert data["action_taken"] == "ACKNOWLEDGED"
    assert data["action_taken_at"] == NOW.isoformat()
    assert data["is_read"] is True
