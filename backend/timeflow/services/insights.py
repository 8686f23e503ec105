"""Per-employee performance insight.

Loads 3 months of history, runs the compliance calculator and the trend
analyzer, and merges their findings into one ``Insight``.
"""
import logging
from datetime import datetime
from typing import Optional

from dateutil import tz

from timeflow.core.config import settings
from timeflow.core.exceptions import InsufficientDataError, ValidationError
from timeflow.services import thresholds as T
from timeflow.services.compliance import ComplianceCalculator, ComplianceReport
from timeflow.services.event_repository import EventRepository
from timeflow.services.localtime import at_local, local_date, month_start
from timeflow.services.records import EmployeeHistory, Findings, Insight, TrendResult
from timeflow.services.trend import TrendAnalyzer

logger = logging.getLogger(__name__)

NO_STRENGTHS_FALLBACK = (
    "Not enough data to identify specific strengths. "
    "Make sure the owner has assigned scheduled hours."
)
GENERAL_RECOMMENDATION = "Keep monitoring performance and give regular feedback"
IDS_REQUIRED = "employee_id and company_id are required"


def compose_insight(history: EmployeeHistory, report: ComplianceReport, trend: TrendResult) -> Insight:
    findings = Findings()
    findings.extend(report.findings)

    if findings.areas_for_improvement and not findings.recommendations:
        findings.recommendations.append(GENERAL_RECOMMENDATION)

    # An empty strengths list reads as a composition bug, not a result
    if not findings.strengths:
        findings.strengths.append(NO_STRENGTHS_FALLBACK)

    trend_percentage = trend.trend_percentage
    if trend_percentage is not None and abs(trend_percentage) <= T.TREND_NOISE_PCT:
        trend_percentage = None

    return Insight(
        employee_id=history.employee_id,
        employee_name=history.employee_name,
        strengths=tuple(findings.strengths),
        areas_for_improvement=tuple(findings.areas_for_improvement),
        recommendations=tuple(findings.recommendations),
        performance_trend=trend.performance_trend,
        trend_percentage=trend_percentage,
        recognition_suggestions=tuple(findings.recognition_suggestions) or None,
    )


def analyze_history(history: EmployeeHistory, zone, now: datetime) -> Insight:
    if len(history.events) < T.MIN_EVENTS_FOR_INSIGHTS:
        logger.warning(
            f"Insights skipped for employee {history.employee_id}: only {len(history.events)} events in the window"
        )
        raise InsufficientDataError(
            f"At least {T.MIN_EVENTS_FOR_INSIGHTS} clock events are needed to generate insights"
        )
    report = ComplianceCalculator(zone, now, settings.INSIGHTS_LOOKBACK_MONTHS).calculate(history)
    trend = TrendAnalyzer(zone, now).analyze(history)
    if trend.trend_percentage is not None:
        logger.debug(
            f"Trend for {history.employee_id}: {trend.last_month_avg:.1f}% last month, "
            f"{trend.this_month_avg:.1f}% this month"
        )
    return compose_insight(history, report, trend)


def generate_employee_insight(
    repository: EventRepository,
    company_id: str,
    employee_id: str,
    now: Optional[datetime] = None,
) -> Insight:
    if not employee_id or not company_id:
        raise ValidationError(IDS_REQUIRED)

    now = now or datetime.now(tz.UTC)
    zone = repository.company_timezone(company_id)
    window_day = month_start(local_date(now, zone), settings.INSIGHTS_LOOKBACK_MONTHS)
    window_start = at_local(window_day, 0, 0, zone).astimezone(tz.UTC)

    history = repository.employee_history(company_id, employee_id, window_day, window_start)
    return analyze_history(history, zone, now)
