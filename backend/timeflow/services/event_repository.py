"""Read side of the analytics engine.

Loads the rows the detectors and calculators need and hands them back as
immutable records. Any query failure surfaces as ``UpstreamReadError``.
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime, tzinfo
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timeflow.core.config import settings
from timeflow.core.exceptions import UpstreamReadError
from timeflow.models import (
    NOTIFIED_ROLES,
    Absence,
    Company,
    Incident,
    Membership,
    Profile,
    ScheduledHours,
    TimeEvent,
    WorkSession,
)
from timeflow.services.localtime import get_timezone
from timeflow.services.records import (
    APPROVED,
    AbsenceRecord,
    EmployeeHistory,
    IncidentRecord,
    ShiftRecord,
    TimeEventRecord,
    WorkSessionRecord,
)

logger = logging.getLogger(__name__)


@contextmanager
def _reading(what: str):
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch {what}: {e}", exc_info=True)
        raise UpstreamReadError(f"Failed to fetch {what}") from e


def _float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _event_record(e: TimeEvent) -> TimeEventRecord:
    return TimeEventRecord(
        id=e.id,
        user_id=e.user_id,
        event_type=e.event_type,
        event_time=e.event_time,
        latitude=_float(e.latitude),
        longitude=_float(e.longitude),
    )


def _absence_record(a: Absence) -> AbsenceRecord:
    return AbsenceRecord(
        user_id=a.user_id,
        start_date=a.start_date,
        end_date=a.end_date,
        status=a.status,
        absence_type=a.absence_type,
    )


class EventRepository:
    def __init__(self, db: Session):
        self.db = db

    def company_ids(self) -> List[str]:
        with _reading("companies"):
            return [row[0] for row in self.db.query(Company.id).order_by(Company.id).all()]

    def company_timezone(self, company_id: str) -> tzinfo:
        with _reading("company"):
            company = self.db.query(Company).filter(Company.id == company_id).first()
        return get_timezone(company.timezone if company and company.timezone else settings.ANALYTICS_TIMEZONE)

    def company_events(self, company_id: str, since: datetime) -> List[TimeEventRecord]:
        with _reading("time events"):
            rows = self.db.query(TimeEvent).filter(
                TimeEvent.company_id == company_id,
                TimeEvent.event_time >= since,
            ).order_by(TimeEvent.event_time.desc()).all()
        return [_event_record(e) for e in rows]

    def employee_names(self, user_ids: Iterable[str]) -> Dict[str, str]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        with _reading("profiles"):
            profiles = self.db.query(Profile).filter(Profile.id.in_(ids)).all()
        return {p.id: p.display_name for p in profiles}

    def approved_absences(
        self,
        company_id: str,
        user_id: Optional[str] = None,
        ending_on_or_after: Optional[date] = None,
    ) -> List[AbsenceRecord]:
        with _reading("absences"):
            query = self.db.query(Absence).filter(
                Absence.company_id == company_id,
                Absence.status == APPROVED,
            )
            if user_id:
                query = query.filter(Absence.user_id == user_id)
            if ending_on_or_after:
                query = query.filter(Absence.end_date >= ending_on_or_after)
            rows = query.order_by(Absence.start_date).all()
        return [_absence_record(a) for a in rows]

    def notification_recipients(self, company_id: str) -> List[str]:
        """Owners and admins of the company."""
        with _reading("memberships"):
            rows = self.db.query(Membership.user_id).filter(
                Membership.company_id == company_id,
                Membership.role.in_(NOTIFIED_ROLES),
            ).order_by(Membership.user_id).all()
        return [row[0] for row in rows]

    def employee_history(
        self,
        company_id: str,
        employee_id: str,
        since_day: date,
        since: datetime,
    ) -> EmployeeHistory:
        """Shifts, absences, events, sessions and incidents since the window start."""
        with _reading("employee profile"):
            profile = self.db.query(Profile).filter(Profile.id == employee_id).first()

        with _reading("scheduled hours"):
            shifts = self.db.query(ScheduledHours).filter(
                ScheduledHours.company_id == company_id,
                ScheduledHours.user_id == employee_id,
                ScheduledHours.date >= since_day,
            ).order_by(ScheduledHours.date).all()

        absences = self.approved_absences(company_id, employee_id, ending_on_or_after=since_day)

        with _reading("time events"):
            events = self.db.query(TimeEvent).filter(
                TimeEvent.company_id == company_id,
                TimeEvent.user_id == employee_id,
                TimeEvent.event_time >= since,
            ).order_by(TimeEvent.event_time.desc()).all()

        with _reading("work sessions"):
            sessions = self.db.query(WorkSession).filter(
                WorkSession.company_id == company_id,
                WorkSession.user_id == employee_id,
                WorkSession.clock_in_time >= since,
            ).order_by(WorkSession.clock_in_time).all()

        with _reading("incidents"):
            incidents = self.db.query(Incident).filter(
                Incident.company_id == company_id,
                Incident.user_id == employee_id,
                Incident.created_at >= since,
            ).all()

        return EmployeeHistory(
            employee_id=employee_id,
            employee_name=profile.display_name if profile else "Employee",
            events=tuple(_event_record(e) for e in events),
            sessions=tuple(
                WorkSessionRecord(
                    user_id=s.user_id,
                    clock_in_time=s.clock_in_time,
                    clock_out_time=s.clock_out_time,
                    total_pause_duration=s.total_pause_duration,
                )
                for s in sessions
            ),
            absences=tuple(absences),
            shifts=tuple(
                ShiftRecord(
                    user_id=s.user_id,
                    date=s.date,
                    expected_hours=float(s.expected_hours or 0),
                    start_time=s.start_time,
                    end_time=s.end_time,
                )
                for s in shifts
            ),
            incidents=tuple(
                IncidentRecord(
                    id=i.id,
                    user_id=i.user_id,
                    type=i.type,
                    status=i.status,
                    created_at=i.created_at,
                )
                for i in incidents
            ),
        )
