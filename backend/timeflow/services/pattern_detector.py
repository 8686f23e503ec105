"""Suspicious clock-in pattern detection.

Five independent heuristics run per employee over the last 30 days of clock
events:

1. exact_time_pattern: most clock-ins at the very same HH:MM:SS (automation)
2. same_location: clocking from a GPS cell shared with 2+ coworkers
3. perfect_pattern: clock-in times with < 2 min standard deviation
4. off_hours: 30%+ of clock-ins between 22:00 and 06:00
5. absence_conflict: any event inside an approved absence

Employees with fewer than 5 clock-ins are skipped. Output is a pure function
of the input events: employees are visited in id order and each detector
reports at most once per employee.
"""
import logging
import math
from collections import Counter, defaultdict
from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from timeflow.models.timeclock import EventType
from timeflow.services import thresholds as T
from timeflow.services.localtime import at_local, round_half_up, to_local
from timeflow.services.records import AbsenceRecord, Anomaly, TimeEventRecord

logger = logging.getLogger(__name__)

UNKNOWN_EMPLOYEE = "Unknown employee"

LocationCell = Tuple[int, int]


def location_cell(latitude: float, longitude: float) -> LocationCell:
    """Round coordinates to the detection grid.

    3 decimal places is ~111 m of latitude, coarser than a single building.
    Rounds half up, so -0.0005 and 0.0005 land in different cells.
    """
    scale = 10 ** T.LOCATION_ROUND_DECIMALS
    return (
        int(math.floor(latitude * scale + 0.5)),
        int(math.floor(longitude * scale + 0.5)),
    )


def format_cell(cell: LocationCell) -> str:
    scale = 10 ** T.LOCATION_ROUND_DECIMALS
    return f"{cell[0] / scale:.{T.LOCATION_ROUND_DECIMALS}f},{cell[1] / scale:.{T.LOCATION_ROUND_DECIMALS}f}"


def group_events_by_user(events: Iterable[TimeEventRecord]) -> Dict[str, List[TimeEventRecord]]:
    grouped: Dict[str, List[TimeEventRecord]] = defaultdict(list)
    for event in events:
        grouped[event.user_id].append(event)
    return {user_id: sorted(evts, key=lambda e: (e.event_time, e.id)) for user_id, evts in grouped.items()}


def build_location_index(events: Iterable[TimeEventRecord]) -> Dict[LocationCell, Set[str]]:
    """Which employees have any event in each rounded GPS cell."""
    index: Dict[LocationCell, Set[str]] = defaultdict(set)
    for event in events:
        if event.has_location:
            index[location_cell(event.latitude, event.longitude)].add(event.user_id)
    return index


class PatternDetector:
    """Runs every heuristic for every qualifying employee of one company."""

    def __init__(self, zone: tzinfo):
        self.zone = zone

    def detect(
        self,
        events: Sequence[TimeEventRecord],
        absences: Sequence[AbsenceRecord] = (),
        employee_names: Optional[Mapping[str, str]] = None,
    ) -> List[Anomaly]:
        employee_names = employee_names or {}
        events_by_user = group_events_by_user(events)
        location_index = build_location_index(events)

        absences_by_user: Dict[str, List[AbsenceRecord]] = defaultdict(list)
        for absence in absences:
            if absence.is_approved:
                absences_by_user[absence.user_id].append(absence)

        per_employee = [
            self.detect_for_employee(
                user_id,
                events_by_user[user_id],
                employee_names.get(user_id) or UNKNOWN_EMPLOYEE,
                location_index,
                absences_by_user.get(user_id, []),
            )
            for user_id in sorted(events_by_user)
        ]
        return [anomaly for found in per_employee for anomaly in found]

    def detect_for_employee(
        self,
        user_id: str,
        user_events: Sequence[TimeEventRecord],
        employee_name: str,
        location_index: Mapping[LocationCell, Set[str]],
        user_absences: Sequence[AbsenceRecord],
    ) -> List[Anomaly]:
        clock_ins = [e for e in user_events if e.event_type == EventType.CLOCK_IN.value]
        if len(clock_ins) < T.MIN_CLOCK_INS_FOR_PATTERNS:
            logger.debug(f"Skipping {user_id}: only {len(clock_ins)} clock-ins")
            return []

        local_times = [to_local(e.event_time, self.zone) for e in clock_ins]

        found: List[Anomaly] = []
        for anomaly in (
            detect_exact_time(user_id, employee_name, local_times),
            detect_same_location(user_id, employee_name, clock_ins, location_index),
            detect_perfect_pattern(user_id, employee_name, local_times),
            detect_off_hours(user_id, employee_name, local_times),
            detect_absence_conflict(user_id, employee_name, user_events, user_absences, self.zone),
        ):
            if anomaly is not None:
                found.append(anomaly)
        return found


# ── Individual heuristics ────────────────────────────────────────────

def detect_exact_time(user_id: str, employee_name: str, local_times: Sequence[datetime]) -> Optional[Anomaly]:
    total = len(local_times)
    buckets = Counter((t.hour, t.minute, t.second) for t in local_times)

    # Counter keeps first-seen order, so "first qualifying bucket" is stable
    for (hour, minute, second), count in buckets.items():
        if count >= T.EXACT_TIME_MIN_COUNT and count / total >= T.EXACT_TIME_MIN_RATIO:
            score = T.EXACT_TIME_BASE_CONFIDENCE + count * T.EXACT_TIME_RATIO_WEIGHT / total
            confidence = min(T.EXACT_TIME_MAX_CONFIDENCE, round_half_up(score))
            stamp = f"{hour:02d}:{minute:02d}:{second:02d}"
            return Anomaly(
                type="exact_time_pattern",
                employee_id=user_id,
                employee_name=employee_name,
                description=f"Always clocks in at exactly {stamp}. Possible automation.",
                confidence=confidence,
                evidence=(
                    f"{count}/{total} clock-ins at exactly {stamp}",
                    "Pattern detected in the last 30 days",
                ),
            )
    return None


def detect_same_location(
    user_id: str,
    employee_name: str,
    clock_ins: Sequence[TimeEventRecord],
    location_index: Mapping[LocationCell, Set[str]],
) -> Optional[Anomaly]:
    own_cells = Counter(
        location_cell(e.latitude, e.longitude) for e in clock_ins if e.has_location
    )
    if not own_cells:
        return None

    for cell, count in own_cells.items():
        if count < T.LOCATION_MIN_EVENTS_IN_CELL:
            continue
        others = location_index.get(cell, set()) - {user_id}
        if len(others) >= T.LOCATION_MIN_OTHER_EMPLOYEES:
            return Anomaly(
                type="same_location",
                employee_id=user_id,
                employee_name=employee_name,
                description=(
                    "Several employees clock in from the same GPS location. "
                    "Check that they are at the right workplace."
                ),
                confidence=T.SAME_LOCATION_CONFIDENCE,
                evidence=(
                    f"{count} clock-ins from location {format_cell(cell)}",
                    f"{len(others) + 1} employees share this location",
                ),
            )
    return None


def detect_perfect_pattern(user_id: str, employee_name: str, local_times: Sequence[datetime]) -> Optional[Anomaly]:
    total = len(local_times)
    if total < T.PERFECT_PATTERN_MIN_EVENTS:
        return None

    minutes = [t.hour * 60 + t.minute for t in local_times]
    mean = sum(minutes) / total
    variance = sum((m - mean) ** 2 for m in minutes) / total
    stddev = math.sqrt(variance)

    if stddev >= T.PERFECT_PATTERN_MAX_STDDEV_MINUTES:
        return None

    avg_hours = int(mean // 60)
    avg_minutes = int(mean % 60)
    return Anomaly(
        type="perfect_pattern",
        employee_id=user_id,
        employee_name=employee_name,
        description=(
            f"Clock-in pattern is too perfect: always around {avg_hours:02d}:{avg_minutes:02d} "
            f"with a standard deviation of {stddev:.1f} minutes."
        ),
        confidence=T.PERFECT_PATTERN_CONFIDENCE,
        evidence=(
            f"Standard deviation: {stddev:.1f} minutes",
            f"{total} clock-ins analysed",
        ),
    )


def detect_off_hours(user_id: str, employee_name: str, local_times: Sequence[datetime]) -> Optional[Anomaly]:
    total = len(local_times)
    by_hour = Counter(t.hour for t in local_times)
    off_hours = sum(
        count for hour, count in by_hour.items()
        if hour < T.OFF_HOURS_END_HOUR or hour >= T.OFF_HOURS_START_HOUR
    )

    if off_hours / total < T.OFF_HOURS_MIN_RATIO:
        return None

    return Anomaly(
        type="off_hours",
        employee_id=user_id,
        employee_name=employee_name,
        description=(
            f"Frequent clock-ins outside normal hours (30% or more between "
            f"{T.OFF_HOURS_START_HOUR:02d}:00 and {T.OFF_HOURS_END_HOUR:02d}:00). Check whether this is expected."
        ),
        confidence=T.OFF_HOURS_CONFIDENCE,
        evidence=(
            f"{off_hours}/{total} clock-ins outside normal hours",
            f"Expected hours: {T.OFF_HOURS_END_HOUR:02d}:00-{T.OFF_HOURS_START_HOUR:02d}:00",
        ),
    )


def detect_absence_conflict(
    user_id: str,
    employee_name: str,
    user_events: Sequence[TimeEventRecord],
    user_absences: Sequence[AbsenceRecord],
    zone: tzinfo,
) -> Optional[Anomaly]:
    """Any event (not just clock-ins) during an approved absence."""
    for absence in sorted(user_absences, key=lambda a: (a.start_date, a.end_date)):
        if not absence.is_approved:
            continue
        window_start = at_local(absence.start_date, 0, 0, zone)
        window_end = at_local(absence.end_date, 23, 59, zone, second=59)

        conflicting = [
            e for e in user_events
            if window_start <= to_local(e.event_time, zone) <= window_end
        ]
        if conflicting:
            period = f"{absence.start_date.isoformat()} - {absence.end_date.isoformat()}"
            return Anomaly(
                type="absence_conflict",
                employee_id=user_id,
                employee_name=employee_name,
                description=f"Clock events recorded during an approved absence ({period}).",
                confidence=T.ABSENCE_CONFLICT_CONFIDENCE,
                evidence=(
                    f"{len(conflicting)} event(s) during the absence",
                    f"Absence: {absence.start_date.isoformat()} to {absence.end_date.isoformat()}",
                ),
            )
    return None
