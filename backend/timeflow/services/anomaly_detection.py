"""Company-wide anomaly detection run.

One call = one stateless pass: read the last 30 days of events, run the
pattern detectors, gate by confidence, fan out notifications to owners and
admins. Re-running with unchanged data yields the same anomalies.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from dateutil import tz
from sqlalchemy.orm import Session

from timeflow.core.config import settings
from timeflow.core.exceptions import AnalyticsError, ValidationError
from timeflow.services.anomaly_aggregator import aggregate
from timeflow.services.event_repository import EventRepository
from timeflow.services.notifications import NotificationDispatcher
from timeflow.services.pattern_detector import PatternDetector
from timeflow.services.records import Anomaly, TimeEventRecord

logger = logging.getLogger(__name__)

COMPANY_ID_REQUIRED = "company_id is required"


@dataclass
class AnomalyRunResult:
    anomalies: List[Anomaly] = field(default_factory=list)
    notifications_created: int = 0
    message: str = ""

    def summary(self) -> dict:
        return {
            "anomalies": len(self.anomalies),
            "notifications_created": self.notifications_created,
            "message": self.message,
        }


def _load_events(repository: EventRepository, company_id: str, now: Optional[datetime]) -> List[TimeEventRecord]:
    if not company_id:
        raise ValidationError(COMPANY_ID_REQUIRED)
    now = now or datetime.now(tz.UTC)
    since = (now - timedelta(days=settings.ANOMALY_LOOKBACK_DAYS)).astimezone(tz.UTC)
    return repository.company_events(company_id, since)


def _detect(repository: EventRepository, company_id: str, events: List[TimeEventRecord]) -> List[Anomaly]:
    zone = repository.company_timezone(company_id)
    absences = repository.approved_absences(company_id)
    names = repository.employee_names(e.user_id for e in events)
    return PatternDetector(zone).detect(events, absences, names)


def find_anomalies(repository: EventRepository, company_id: str, now: Optional[datetime] = None) -> List[Anomaly]:
    """Detect anomalies without writing anything."""
    events = _load_events(repository, company_id, now)
    if not events:
        return []
    return _detect(repository, company_id, events)


def run_anomaly_detection(
    repository: EventRepository,
    dispatcher: NotificationDispatcher,
    company_id: str,
    now: Optional[datetime] = None,
) -> AnomalyRunResult:
    events = _load_events(repository, company_id, now)
    if not events:
        return AnomalyRunResult(message="No events to analyze")

    anomalies = _detect(repository, company_id, events)
    recipients = repository.notification_recipients(company_id)
    result = aggregate(company_id, anomalies, recipients)

    if not recipients:
        logger.warning(f"Company {company_id}: {len(anomalies)} anomalies but no owners/admins to notify")
        return AnomalyRunResult(
            anomalies=result.anomalies,
            message=f"Detected {len(anomalies)} anomalies, no owners/admins to notify",
        )

    # Insert failures are logged by the dispatcher and do not change the response
    dispatcher.dispatch(result.notifications)

    logger.info(
        f"Company {company_id}: {len(events)} events, {len(anomalies)} anomalies, "
        f"{len(result.notifications)} notifications"
    )
    return AnomalyRunResult(
        anomalies=result.anomalies,
        notifications_created=len(result.notifications),
        message=f"Detected {len(anomalies)} anomalies, created {len(result.notifications)} notifications",
    )


def run_scheduled_scan(session_factory: Callable[[], Session], now: Optional[datetime] = None) -> Dict[str, dict]:
    """One pass of the periodic scan over every company.

    Each company gets its own session; a failing company is logged and
    skipped so the rest still run.
    """
    db = session_factory()
    try:
        company_ids = EventRepository(db).company_ids()
    finally:
        db.close()

    results: Dict[str, dict] = {}
    for company_id in company_ids:
        db = session_factory()
        try:
            result = run_anomaly_detection(EventRepository(db), NotificationDispatcher(db), company_id, now)
            results[company_id] = result.summary()
        except AnalyticsError as e:
            logger.error(f"Scheduled anomaly scan failed for company {company_id}: {e.error}")
            results[company_id] = e.payload()
        finally:
            db.close()
    return results
