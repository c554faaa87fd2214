"""Alert id derivation and parsing."""

import pytest

from authwatch.alert_engine.alert_ids import RealtimeAlertKey, SavedAlertKey, parse_alert_id
from authwatch.alert_engine.config import AlertEngineConfig
from authwatch.alert_engine.errors import ValidationError

LABELS = AlertEngineConfig().labels
AUTH_UUID = "3f2b8c1e-9d4a-4c7b-a1e2-6f0d5b9c8a71"


class TestRealtimeKeys:
    @pytest.mark.parametrize("label", LABELS)
    def test_round_trip_with_hyphenated_id(self, label):
        key = RealtimeAlertKey(label, AUTH_UUID)
        assert parse_alert_id(key.alert_id, LABELS) == key

    def test_alert_id_format(self):
        assert RealtimeAlertKey("usage-90", "abc").alert_id == "usage-90-abc"
        assert RealtimeAlertKey("expired", "abc").kind == "realtime"

    def test_longest_label_wins(self):
        key = parse_alert_id("usage-90-x", ["usage", "usage-90"])
        assert key == RealtimeAlertKey("usage-90", "x")

    def test_whitespace_is_trimmed(self):
        assert parse_alert_id("  expiring-7-abc \n", LABELS) == RealtimeAlertKey("expiring-7", "abc")

    @pytest.mark.parametrize("label", LABELS)
    def test_parsed_label_always_names_a_tier(self, label):
        key = parse_alert_id(f"{label}-{AUTH_UUID}", LABELS)
        assert AlertEngineConfig().tier_for_label(key.label) is not None


class TestSavedKeys:
    def test_record_id(self):
        key = parse_alert_id(AUTH_UUID, LABELS)
        assert key == SavedAlertKey(AUTH_UUID)
        assert key.kind == "saved"
        assert key.alert_id == AUTH_UUID

    def test_label_without_authorization_id(self):
        # "expired-" has no id after the prefix
        assert parse_alert_id("expired-", LABELS) == SavedAlertKey("expired-")

    def test_unknown_prefix(self):
        assert isinstance(parse_alert_id("usage-50-abc", LABELS), SavedAlertKey)


class TestInvalid:
    @pytest.mark.parametrize("alert_id", [None, "", "   "])
    def test_missing_alert_id(self, alert_id):
        with pytest.raises(ValidationError, match="Alert ID is required"):
            parse_alert_id(alert_id, LABELS)

    def test_validation_error_maps_to_400(self):
        assert ValidationError.status_code == 400
