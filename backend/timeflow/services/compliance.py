"""Per-employee compliance against assigned schedules.

Rates are computed over the current month (company local time), skipping any
day covered by an approved absence and any day without an assigned shift.
Each rate only produces text outside its neutral band:

    punctuality   strength >= 95%   improvement < 80%
    hours         strength 95-105%  improvement < 90% or > 110%
    adherence     strength >= 90%   improvement < 70%
    pauses        strength <= 45m   improvement > 60m

Incidents and events on absence days look at the whole 3-month window.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, List, Optional, Set

from timeflow.models.timeclock import EventType
from timeflow.services import thresholds as T
from timeflow.services.localtime import (
    absence_days,
    at_local,
    local_date,
    minutes_between,
    month_start,
    parse_hhmm,
    session_hours,
    to_local,
)
from timeflow.services.records import (
    PENDING,
    EmployeeHistory,
    Findings,
    ShiftRecord,
)

logger = logging.getLogger(__name__)


@dataclass
class ComplianceReport:
    punctuality_rate: Optional[float] = None
    hours_rate: Optional[float] = None
    adherence_rate: Optional[float] = None
    avg_pause_minutes: Optional[float] = None
    incident_count: int = 0
    absence_day_events: int = 0
    findings: Findings = field(default_factory=Findings)


class ComplianceCalculator:
    """Scores one employee's history as of ``now``."""

    def __init__(self, zone: tzinfo, now: datetime, lookback_months: int = 3):
        self.zone = zone
        self.now = now
        today = local_date(now, zone)
        self.month_start = month_start(today)
        self.window_start = month_start(today, lookback_months)

    def calculate(self, history: EmployeeHistory) -> ComplianceReport:
        shifts = {s.date: s for s in history.shifts}
        off_days = absence_days(history.absences)

        report = ComplianceReport()
        report.punctuality_rate = self._punctuality(history, shifts, off_days, report.findings)
        report.hours_rate = self._hour_compliance(history, shifts, off_days, report.findings)
        report.adherence_rate = self._schedule_adherence(history, shifts, off_days, report.findings)
        report.incident_count = self._incidents(history, report.findings)
        report.absence_day_events = self._absence_day_events(history, off_days, report.findings)
        report.avg_pause_minutes = self._pause_duration(history, report.findings)
        return report

    def _in_current_month(self, day: date, off_days: Set[date]) -> bool:
        return day >= self.month_start and day not in off_days

    # ── Punctuality ──────────────────────────────────────────────────

    def _punctuality(
        self,
        history: EmployeeHistory,
        shifts: Dict[date, ShiftRecord],
        off_days: Set[date],
        findings: Findings,
    ) -> Optional[float]:
        on_time = 0
        total_with_schedule = 0
        late_minutes: List[int] = []

        for event in history.events:
            if event.event_type != EventType.CLOCK_IN.value:
                continue
            local = to_local(event.event_time, self.zone)
            day = local.date()
            if not self._in_current_month(day, off_days):
                continue
            shift = shifts.get(day)
            start = parse_hhmm(shift.start_time) if shift else None
            if start is None:
                continue

            total_with_schedule += 1
            expected = at_local(day, start[0], start[1], self.zone)
            if local <= expected + timedelta(minutes=T.PUNCTUALITY_GRACE_MINUTES):
                on_time += 1
            else:
                late_minutes.append(minutes_between(local, expected))

        if total_with_schedule == 0:
            return None

        rate = on_time / total_with_schedule * 100
        ratio = f"{on_time}/{total_with_schedule} days"
        if rate >= T.PUNCTUALITY_STRENGTH_RATE:
            findings.strengths.append(f"{rate:.0f}% punctuality against assigned schedule ({ratio})")
            findings.recognition_suggestions.append("Recognition for excellent punctuality")
        elif rate < T.PUNCTUALITY_IMPROVEMENT_RATE:
            detail = f"Punctuality: {rate:.0f}% against assigned schedule ({ratio})"
            if late_minutes:
                avg_late = sum(late_minutes) / len(late_minutes)
                detail += f", average delay: {avg_late:.0f}min"
            findings.areas_for_improvement.append(detail)
            findings.recommendations.append(
                "Review compliance with the assigned start time and stress the importance of punctuality"
            )
        return rate

    # ── Worked vs expected hours ─────────────────────────────────────

    def _hour_compliance(
        self,
        history: EmployeeHistory,
        shifts: Dict[date, ShiftRecord],
        off_days: Set[date],
        findings: Findings,
    ) -> Optional[float]:
        total_expected = 0.0
        total_actual = 0.0

        for session in history.sessions:
            day = local_date(session.clock_in_time, self.zone)
            if not self._in_current_month(day, off_days):
                continue
            shift = shifts.get(day)
            if shift is None or shift.expected_hours <= 0:
                continue
            total_expected += shift.expected_hours
            total_actual += session_hours(session, self.now)

        if total_expected <= 0:
            return None

        rate = total_actual / total_expected * 100
        difference = total_actual - total_expected
        hours = f"{total_actual:.1f}h worked vs {total_expected:.1f}h expected"
        if T.HOURS_STRENGTH_MIN_RATE <= rate <= T.HOURS_STRENGTH_MAX_RATE:
            findings.strengths.append(f"Hour compliance: {rate:.0f}% ({hours})")
        elif rate < T.HOURS_SHORT_RATE:
            findings.areas_for_improvement.append(
                f"Hour compliance: {rate:.0f}% ({hours}, {abs(difference):.1f}h short)"
            )
            findings.recommendations.append("Review why the assigned expected hours are not being met")
        elif rate > T.HOURS_OVER_RATE:
            findings.areas_for_improvement.append(
                f"Excess hours worked: {rate:.0f}% ({hours}, {difference:.1f}h over)"
            )
            findings.recommendations.append(
                "Check whether the extra hours are needed or the assigned schedule should be adjusted"
            )
        return rate

    # ── Start/end adherence ──────────────────────────────────────────

    def _schedule_adherence(
        self,
        history: EmployeeHistory,
        shifts: Dict[date, ShiftRecord],
        off_days: Set[date],
        findings: Findings,
    ) -> Optional[float]:
        adhering = 0
        total = 0
        entry_deviations = 0
        exit_deviations = 0

        for session in history.sessions:
            if session.clock_out_time is None:
                continue
            clock_in = to_local(session.clock_in_time, self.zone)
            day = clock_in.date()
            if not self._in_current_month(day, off_days):
                continue
            shift = shifts.get(day)
            if shift is None:
                continue
            start = parse_hhmm(shift.start_time)
            end = parse_hhmm(shift.end_time)
            if start is None and end is None:
                continue

            total += 1
            adheres = True
            if start is not None:
                diff = minutes_between(clock_in, at_local(day, start[0], start[1], self.zone))
                if abs(diff) > T.ADHERENCE_GRACE_MINUTES:
                    adheres = False
                    entry_deviations += 1
            if end is not None:
                clock_out = to_local(session.clock_out_time, self.zone)
                diff = minutes_between(clock_out, at_local(day, end[0], end[1], self.zone))
                if abs(diff) > T.ADHERENCE_GRACE_MINUTES:
                    adheres = False
                    exit_deviations += 1
            if adheres:
                adhering += 1

        if total == 0:
            return None

        rate = adhering / total * 100
        summary = f"Schedule adherence: {rate:.0f}% ({adhering}/{total} days)"
        if rate >= T.ADHERENCE_STRENGTH_RATE:
            findings.strengths.append(summary)
        elif rate < T.ADHERENCE_IMPROVEMENT_RATE:
            findings.areas_for_improvement.append(summary)
            if entry_deviations > exit_deviations:
                findings.recommendations.append("Review compliance with assigned start times")
            else:
                findings.recommendations.append("Review compliance with assigned end times")
        return rate

    # ── Incidents ────────────────────────────────────────────────────

    def _incidents(self, history: EmployeeHistory, findings: Findings) -> int:
        since = at_local(self.window_start, 0, 0, self.zone)
        recent = [i for i in history.incidents if to_local(i.created_at, self.zone) >= since]
        pending = [i for i in recent if i.status == PENDING]

        if not recent:
            findings.strengths.append("No incidents in the last 3 months")
            findings.recognition_suggestions.append("Recognition for exemplary compliance")
        elif len(recent) <= T.INCIDENTS_MINOR_MAX:
            findings.strengths.append(f"Only {len(recent)} incident(s) in 3 months")
        else:
            findings.areas_for_improvement.append(f"{len(recent)} incidents in the last 3 months")
            if pending:
                findings.recommendations.append(f"Resolve {len(pending)} pending incident(s)")
        return len(recent)

    # ── Events on approved absence days ──────────────────────────────

    def _absence_day_events(self, history: EmployeeHistory, off_days: Set[date], findings: Findings) -> int:
        if not off_days:
            return 0
        conflicting = [e for e in history.events if local_date(e.event_time, self.zone) in off_days]
        if conflicting:
            findings.areas_for_improvement.append(
                f"{len(conflicting)} clock event(s) recorded on approved absence days"
            )
            findings.recommendations.append(
                "Verify whether the events during absences are correct or a recording error"
            )
        return len(conflicting)

    # ── Pauses ───────────────────────────────────────────────────────

    def _pause_duration(self, history: EmployeeHistory, findings: Findings) -> Optional[float]:
        pauses = [s.total_pause_duration for s in history.sessions if s.total_pause_duration and s.total_pause_duration > 0]
        if not pauses:
            return None

        avg_minutes = sum(pauses) / len(pauses) / 60_000
        if avg_minutes > T.PAUSE_IMPROVEMENT_MIN_MINUTES:
            findings.areas_for_improvement.append(f"Longer than usual breaks (average: {avg_minutes:.0f}min)")
            findings.recommendations.append("Review the break policy and communicate expected break times")
        elif avg_minutes <= T.PAUSE_STRENGTH_MAX_MINUTES:
            findings.strengths.append(f"Breaks within a reasonable time (average: {avg_minutes:.0f}min)")
        return avg_minutes
