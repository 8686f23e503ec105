"""
test_compliance.py — Unit tests for ComplianceCalculator.

All scenarios are pinned to "now" = 2024-03-28 18:00 UTC with the company in
UTC, so the current month is March 2024 and the 3-month window starts on
2023-12-01.

Tests cover:
  - Punctuality: 5-minute grace, silent band [80, 95), excluded days
  - Hour compliance: strength / short / over bands, open sessions
  - Schedule adherence: 15-minute window, entry vs exit recommendation
  - Pauses, incidents and events recorded on approved absence days
"""

from datetime import date, timedelta

import pytest

from conftest import absence, at, event, incident, session, shift, weekdays
from timeflow.services.compliance import ComplianceCalculator
from timeflow.services.records import EmployeeHistory

EMP = "emp-1"


def _history(events=(), sessions=(), shifts=(), absences=(), incidents=()):
    return EmployeeHistory(
        employee_id=EMP,
        employee_name="Ana",
        events=tuple(events),
        sessions=tuple(sessions),
        shifts=tuple(shifts),
        absences=tuple(absences),
        incidents=tuple(incidents),
    )


@pytest.fixture
def calculator(utc, march_now):
    return ComplianceCalculator(utc, march_now)


def _clock_ins(days, late_days=(), late_minutes=20):
    return [
        event(EMP, at(d.year, d.month, d.day, 9, late_minutes if d in late_days else 3))
        for d in days
    ]


def _texts(findings):
    return findings.strengths + findings.areas_for_improvement


# ===========================================================================
# Punctuality
# ===========================================================================

class TestPunctuality:

    def test_eighty_percent_is_silent(self, calculator):
        days = weekdays(2024, 3, 10)
        history = _history(events=_clock_ins(days, late_days=days[:2]), shifts=[shift(EMP, d) for d in days])
        report = calculator.calculate(history)

        assert report.punctuality_rate == pytest.approx(80.0)
        assert not any("unctuality" in t for t in _texts(report.findings))

    def test_perfect_punctuality_is_a_strength(self, calculator):
        days = weekdays(2024, 3, 10)
        report = calculator.calculate(_history(events=_clock_ins(days), shifts=[shift(EMP, d) for d in days]))

        assert report.punctuality_rate == pytest.approx(100.0)
        assert "100% punctuality against assigned schedule (10/10 days)" in report.findings.strengths
        assert "Recognition for excellent punctuality" in report.findings.recognition_suggestions

    def test_low_punctuality_reports_average_delay(self, calculator):
        days = weekdays(2024, 3, 10)
        history = _history(events=_clock_ins(days, late_days=days[:5]), shifts=[shift(EMP, d) for d in days])
        report = calculator.calculate(history)

        assert report.punctuality_rate == pytest.approx(50.0)
        area = [a for a in report.findings.areas_for_improvement if a.startswith("Punctuality")]
        assert area == ["Punctuality: 50% against assigned schedule (5/10 days), average delay: 20min"]
        assert any("start time" in r for r in report.findings.recommendations)

    def test_grace_period_boundary(self, calculator):
        day = date(2024, 3, 4)
        on_edge = _history(events=[event(EMP, at(2024, 3, 4, 9, 5, 0))], shifts=[shift(EMP, day)])
        past_edge = _history(events=[event(EMP, at(2024, 3, 4, 9, 5, 30))], shifts=[shift(EMP, day)])

        assert calculator.calculate(on_edge).punctuality_rate == pytest.approx(100.0)
        assert calculator.calculate(past_edge).punctuality_rate == pytest.approx(0.0)

    def test_unscheduled_absent_and_previous_month_days_excluded(self, calculator):
        days = weekdays(2024, 3, 4)
        events = _clock_ins(days)
        events.append(event(EMP, at(2024, 3, 12, 11, 0)))  # no shift that day
        events.append(event(EMP, at(2024, 3, 13, 11, 0)))  # approved absence
        events.append(event(EMP, at(2024, 2, 20, 11, 0)))  # last month
        shifts = [shift(EMP, d) for d in days] + [shift(EMP, date(2024, 3, 13)), shift(EMP, date(2024, 2, 20))]
        history = _history(
            events=events,
            shifts=shifts,
            absences=[absence(EMP, date(2024, 3, 13), date(2024, 3, 13))],
        )
        assert calculator.calculate(history).punctuality_rate == pytest.approx(100.0)

    def test_shift_without_start_time_is_not_sampled(self, calculator):
        day = date(2024, 3, 4)
        history = _history(events=[event(EMP, at(2024, 3, 4, 11, 0))], shifts=[shift(EMP, day, start=None)])
        assert calculator.calculate(history).punctuality_rate is None


# ===========================================================================
# Hour compliance
# ===========================================================================

class TestHourCompliance:

    def _report(self, calculator, worked_hours, count=5):
        days = weekdays(2024, 3, count)
        sessions = [session(EMP, at(d.year, d.month, d.day, 9, 0), hours=worked_hours) for d in days]
        return calculator.calculate(_history(sessions=sessions, shifts=[shift(EMP, d, start=None, end=None) for d in days]))

    def test_on_target_is_a_strength(self, calculator):
        report = self._report(calculator, 8.0)
        assert report.hours_rate == pytest.approx(100.0)
        assert "Hour compliance: 100% (40.0h worked vs 40.0h expected)" in report.findings.strengths

    def test_short_hours(self, calculator):
        report = self._report(calculator, 7.0)
        assert report.hours_rate == pytest.approx(87.5)
        assert "Hour compliance: 88% (35.0h worked vs 40.0h expected, 5.0h short)" in report.findings.areas_for_improvement

    def test_excess_hours(self, calculator):
        report = self._report(calculator, 9.0)
        assert report.hours_rate == pytest.approx(112.5)
        assert any(a.startswith("Excess hours worked: 112%") and "5.0h over" in a for a in report.findings.areas_for_improvement)

    def test_silent_bands(self, calculator):
        for hours in (7.5, 8.6):  # 93.75% and 107.5%
            report = self._report(calculator, hours)
            assert not any("our" in t and "compliance" in t for t in _texts(report.findings))
            assert not any(t.startswith("Excess") for t in report.findings.areas_for_improvement)

    def test_open_session_counts_until_now(self, utc, march_now):
        day = march_now.date()
        sessions = [session(EMP, at(day.year, day.month, day.day, 10, 0), open_=True)]
        report = ComplianceCalculator(utc, march_now).calculate(
            _history(sessions=sessions, shifts=[shift(EMP, day, start=None, end=None)])
        )
        # 10:00 -> 18:00 = 8h against 8h expected
        assert report.hours_rate == pytest.approx(100.0)

    def test_zero_expected_hours_ignored(self, calculator):
        day = date(2024, 3, 4)
        report = calculator.calculate(_history(
            sessions=[session(EMP, at(2024, 3, 4, 9, 0))],
            shifts=[shift(EMP, day, expected_hours=0, start=None, end=None)],
        ))
        assert report.hours_rate is None


# ===========================================================================
# Schedule adherence
# ===========================================================================

class TestScheduleAdherence:

    def _sessions(self, days, start_offsets, hours=8.0):
        return [
            session(EMP, at(d.year, d.month, d.day, 9, 0) + timedelta(minutes=off), hours=hours)
            for d, off in zip(days, start_offsets)
        ]

    def test_entry_deviations_drive_recommendation(self, calculator):
        days = weekdays(2024, 3, 10)
        # Late arrivals still leave at 17:00, so only the entry deviates
        sessions = self._sessions(days[:4], [30] * 4, hours=7.5) + self._sessions(days[4:], [0] * 6)
        report = calculator.calculate(_history(sessions=sessions, shifts=[shift(EMP, d) for d in days]))

        assert report.adherence_rate == pytest.approx(60.0)
        assert "Schedule adherence: 60% (6/10 days)" in report.findings.areas_for_improvement
        assert "Review compliance with assigned start times" in report.findings.recommendations

    def test_exit_deviations_drive_recommendation(self, calculator):
        days = weekdays(2024, 3, 10)
        sessions = self._sessions(days, [0] * 10, hours=8.0)
        # Four days with an extra hour at the end
        sessions = [
            session(EMP, s.clock_in_time, hours=9.0) if i < 4 else s
            for i, s in enumerate(sessions)
        ]
        report = calculator.calculate(_history(sessions=sessions, shifts=[shift(EMP, d) for d in days]))

        assert report.adherence_rate == pytest.approx(60.0)
        assert "Review compliance with assigned end times" in report.findings.recommendations

    def test_high_adherence_is_a_strength(self, calculator):
        days = weekdays(2024, 3, 10)
        sessions = self._sessions(days, [10, -10, 0, 5, 15, -15, 0, 0, 3, 0])
        report = calculator.calculate(_history(sessions=sessions, shifts=[shift(EMP, d) for d in days]))
        assert report.adherence_rate == pytest.approx(100.0)
        assert "Schedule adherence: 100% (10/10 days)" in report.findings.strengths

    def test_open_sessions_are_not_sampled(self, calculator):
        day = date(2024, 3, 4)
        report = calculator.calculate(_history(
            sessions=[session(EMP, at(2024, 3, 4, 9, 0), open_=True)],
            shifts=[shift(EMP, day)],
        ))
        assert report.adherence_rate is None


# ===========================================================================
# Pauses, incidents, absence days
# ===========================================================================

class TestPauses:

    @pytest.mark.parametrize("minutes,strength,area", [
        (30, True, False),
        (45, True, False),
        (50, False, False),
        (75, False, True),
    ])
    def test_pause_bands(self, calculator, minutes, strength, area):
        sessions = [session(EMP, at(2024, 3, d, 9, 0), pause_minutes=minutes) for d in (4, 5, 6)]
        report = calculator.calculate(_history(sessions=sessions))
        assert report.avg_pause_minutes == pytest.approx(minutes)
        assert any(s.startswith("Breaks within") for s in report.findings.strengths) is strength
        assert any(a.startswith("Longer than usual breaks") for a in report.findings.areas_for_improvement) is area

    def test_sessions_without_pauses_ignored(self, calculator):
        report = calculator.calculate(_history(sessions=[session(EMP, at(2024, 3, 4, 9, 0))]))
        assert report.avg_pause_minutes is None


class TestIncidents:

    def test_no_incidents(self, calculator):
        report = calculator.calculate(_history())
        assert "No incidents in the last 3 months" in report.findings.strengths
        assert "Recognition for exemplary compliance" in report.findings.recognition_suggestions

    def test_few_incidents_are_a_minor_strength(self, calculator):
        incidents = [incident(EMP, at(2024, 3, 4)), incident(EMP, at(2024, 2, 4))]
        report = calculator.calculate(_history(incidents=incidents))
        assert "Only 2 incident(s) in 3 months" in report.findings.strengths

    def test_many_incidents_with_pending(self, calculator):
        incidents = [incident(EMP, at(2024, 3, d)) for d in (1, 2, 3)]
        incidents.append(incident(EMP, at(2024, 3, 4), status="pending"))
        report = calculator.calculate(_history(incidents=incidents))
        assert report.incident_count == 4
        assert "4 incidents in the last 3 months" in report.findings.areas_for_improvement
        assert "Resolve 1 pending incident(s)" in report.findings.recommendations

    def test_incidents_before_window_ignored(self, calculator):
        incidents = [incident(EMP, at(2023, 11, 20)) for _ in range(5)]
        report = calculator.calculate(_history(incidents=incidents))
        assert report.incident_count == 0


class TestAbsenceDayEvents:

    def test_event_on_absence_day_flagged(self, calculator):
        history = _history(
            events=[event(EMP, at(2024, 3, 13, 9, 0)), event(EMP, at(2024, 3, 14, 9, 0))],
            absences=[absence(EMP, date(2024, 3, 13), date(2024, 3, 13))],
        )
        report = calculator.calculate(history)
        assert report.absence_day_events == 1
        assert "1 clock event(s) recorded on approved absence days" in report.findings.areas_for_improvement
        assert any(r.startswith("Verify whether") for r in report.findings.recommendations)

    def test_rejected_absence_not_a_conflict(self, calculator):
        history = _history(
            events=[event(EMP, at(2024, 3, 13, 9, 0))],
            absences=[absence(EMP, date(2024, 3, 13), date(2024, 3, 13), status="rejected")],
        )
        assert calculator.calculate(history).absence_day_events == 0
