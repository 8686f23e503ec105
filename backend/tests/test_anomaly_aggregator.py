"""
test_anomaly_aggregator.py — Confidence gate and owner/admin fan-out.
"""

import pytest

from timeflow.services import thresholds as T
from timeflow.services.anomaly_aggregator import aggregate, filter_notifiable
from timeflow.services.records import Anomaly


def _anomaly(employee_id="emp-1", confidence=85, kind="exact_time_pattern"):
    return Anomaly(
        type=kind,
        employee_id=employee_id,
        employee_name=f"Name {employee_id}",
        description=f"{kind} for {employee_id}",
        confidence=confidence,
        evidence=("evidence",),
    )


class TestAggregate:

    def test_cross_product_of_anomalies_and_admins(self):
        anomalies = [_anomaly("emp-1"), _anomaly("emp-2", 90, "absence_conflict")]
        result = aggregate("co-1", anomalies, ["owner-1", "admin-1", "admin-2"])
        assert len(result.notifications) == 6
        assert {(n.entity_id, n.user_id) for n in result.notifications} == {
            (e, u) for e in ("emp-1", "emp-2") for u in ("owner-1", "admin-1", "admin-2")
        }

    def test_notification_payload_shape(self):
        result = aggregate("co-1", [_anomaly("emp-1")], ["owner-1"])
        payload = result.notifications[0].to_dict()
        assert payload == {
            "company_id": "co-1",
            "user_id": "owner-1",
            "title": "⚠️ Anomaly detected: Name emp-1",
            "message": "exact_time_pattern for emp-1",
            "type": "warning",
            "entity_type": "anomaly",
            "entity_id": "emp-1",
        }

    def test_no_admins_returns_anomalies_without_notifications(self):
        anomalies = [_anomaly("emp-1"), _anomaly("emp-2")]
        result = aggregate("co-1", anomalies, [])
        assert result.anomalies == anomalies
        assert result.notifications == []

    def test_low_confidence_kept_but_not_notified(self):
        anomalies = [_anomaly("emp-1", confidence=50), _anomaly("emp-2", confidence=T.NOTIFY_MIN_CONFIDENCE)]
        result = aggregate("co-1", anomalies, ["owner-1"])
        assert len(result.anomalies) == 2
        assert [n.entity_id for n in result.notifications] == ["emp-2"]

    def test_gate_is_tunable(self):
        anomalies = [_anomaly(confidence=70), _anomaly(confidence=85)]
        assert len(filter_notifiable(anomalies, min_confidence=80)) == 1
        assert len(filter_notifiable(anomalies)) == 2


def test_unknown_anomaly_type_is_rejected():
    with pytest.raises(ValueError):
        _anomaly(kind="night_owl")
