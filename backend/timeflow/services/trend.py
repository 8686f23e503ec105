"""Month-over-month hour compliance trend."""
import logging
from datetime import date, datetime, tzinfo
from typing import List, Optional, Set

from timeflow.services import thresholds as T
from timeflow.services.localtime import absence_days, local_date, month_start, session_hours
from timeflow.services.records import (
    TREND_DECLINING,
    TREND_IMPROVING,
    TREND_STABLE,
    EmployeeHistory,
    TrendResult,
)

logger = logging.getLogger(__name__)


def classify_trend(trend_percentage: float) -> str:
    if trend_percentage > T.TREND_CHANGE_PCT:
        return TREND_IMPROVING
    if trend_percentage < -T.TREND_CHANGE_PCT:
        return TREND_DECLINING
    return TREND_STABLE


class TrendAnalyzer:
    """Compares this month's average compliance with last month's.

    Needs at least 20 sessions overall and one scheduled session in each
    month; otherwise the trend is "stable" with no percentage at all.
    """

    def __init__(self, zone: tzinfo, now: datetime):
        self.zone = zone
        self.now = now
        today = local_date(now, zone)
        self.this_month_start = month_start(today)
        self.last_month_start = month_start(today, 1)

    def analyze(self, history: EmployeeHistory) -> TrendResult:
        if len(history.sessions) < T.TREND_MIN_SESSIONS or not history.shifts:
            return TrendResult()

        off_days = absence_days(history.absences)
        this_month = self._monthly_average(history, off_days, self.this_month_start, None)
        last_month = self._monthly_average(history, off_days, self.last_month_start, self.this_month_start)

        if this_month is None or last_month is None or last_month <= 0:
            return TrendResult()

        trend_percentage = (this_month - last_month) / last_month * 100
        return TrendResult(
            performance_trend=classify_trend(trend_percentage),
            trend_percentage=trend_percentage,
            this_month_avg=this_month,
            last_month_avg=last_month,
        )

    def _monthly_average(
        self,
        history: EmployeeHistory,
        off_days: Set[date],
        start: date,
        end: Optional[date],
    ) -> Optional[float]:
        """Mean of actual/expected * 100 over scheduled sessions in [start, end)."""
        shifts = {s.date: s for s in history.shifts}
        ratios: List[float] = []
        for session in history.sessions:
            day = local_date(session.clock_in_time, self.zone)
            if day < start or (end is not None and day >= end) or day in off_days:
                continue
            shift = shifts.get(day)
            if shift is None or shift.expected_hours <= 0:
                continue
            ratios.append(session_hours(session, self.now) / shift.expected_hours * 100)

        if not ratios:
            return None
        return sum(ratios) / len(ratios)
