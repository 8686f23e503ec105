"""Confidence gate + fan-out of anomalies to company owners/admins."""
from dataclasses import dataclass
from typing import List, Sequence

from timeflow.services import thresholds as T
from timeflow.services.records import Anomaly, NotificationPayload


@dataclass(frozen=True)
class AggregationResult:
    anomalies: List[Anomaly]
    notifications: List[NotificationPayload]


def filter_notifiable(anomalies: Sequence[Anomaly], min_confidence: int = T.NOTIFY_MIN_CONFIDENCE) -> List[Anomaly]:
    return [a for a in anomalies if a.confidence >= min_confidence]


def build_notifications(
    company_id: str,
    anomalies: Sequence[Anomaly],
    recipient_ids: Sequence[str],
) -> List[NotificationPayload]:
    """One payload per (anomaly, owner/admin) pair."""
    return [
        NotificationPayload(
            company_id=company_id,
            user_id=recipient_id,
            title=f"⚠️ Anomaly detected: {anomaly.employee_name}",
            message=anomaly.description,
            entity_id=anomaly.employee_id,
        )
        for anomaly in anomalies
        for recipient_id in recipient_ids
    ]


def aggregate(
    company_id: str,
    anomalies: Sequence[Anomaly],
    recipient_ids: Sequence[str],
    min_confidence: int = T.NOTIFY_MIN_CONFIDENCE,
) -> AggregationResult:
    """Keep every anomaly; notify only about the ones above the confidence floor.

    A company without owners/admins still gets its anomaly list back, just
    with no notifications.
    """
    notifiable = filter_notifiable(anomalies, min_confidence)
    notifications = build_notifications(company_id, notifiable, recipient_ids) if recipient_ids else []
    return AggregationResult(anomalies=list(anomalies), notifications=notifications)
