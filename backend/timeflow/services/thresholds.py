"""Tuning surface of the workforce analytics engine.

Every cutoff the pattern detectors and the compliance / trend calculators
use lives here so the numbers can be audited and tested in one place.
"""

# ── Anomaly detection ────────────────────────────────────────────────

MIN_CLOCK_INS_FOR_PATTERNS = 5

# exact_time_pattern: same HH:MM:SS on most clock-ins
EXACT_TIME_MIN_COUNT = 5
EXACT_TIME_MIN_RATIO = 0.70
EXACT_TIME_BASE_CONFIDENCE = 60
EXACT_TIME_RATIO_WEIGHT = 35
EXACT_TIME_MAX_CONFIDENCE = 95

# same_location: coordinates rounded to 3 decimals (~111 m cell)
LOCATION_ROUND_DECIMALS = 3
LOCATION_MIN_EVENTS_IN_CELL = 3
LOCATION_MIN_OTHER_EMPLOYEES = 2
SAME_LOCATION_CONFIDENCE = 75

# perfect_pattern: clock-ins with almost no variation
PERFECT_PATTERN_MIN_EVENTS = 10
PERFECT_PATTERN_MAX_STDDEV_MINUTES = 2.0
PERFECT_PATTERN_CONFIDENCE = 70

# off_hours: clock-ins between 22:00 and 06:00
OFF_HOURS_START_HOUR = 22
OFF_HOURS_END_HOUR = 6
OFF_HOURS_MIN_RATIO = 0.30
OFF_HOURS_CONFIDENCE = 65

# absence_conflict: any event inside an approved absence
ABSENCE_CONFLICT_CONFIDENCE = 90

# Aggregation gate before notifying owners/admins
NOTIFY_MIN_CONFIDENCE = 65

# ── Employee insights ────────────────────────────────────────────────

MIN_EVENTS_FOR_INSIGHTS = 5

PUNCTUALITY_GRACE_MINUTES = 5
PUNCTUALITY_STRENGTH_RATE = 95.0
PUNCTUALITY_IMPROVEMENT_RATE = 80.0

HOURS_STRENGTH_MIN_RATE = 95.0
HOURS_STRENGTH_MAX_RATE = 105.0
HOURS_SHORT_RATE = 90.0
HOURS_OVER_RATE = 110.0

ADHERENCE_GRACE_MINUTES = 15
ADHERENCE_STRENGTH_RATE = 90.0
ADHERENCE_IMPROVEMENT_RATE = 70.0

PAUSE_STRENGTH_MAX_MINUTES = 45.0
PAUSE_IMPROVEMENT_MIN_MINUTES = 60.0

INCIDENTS_MINOR_MAX = 2

TREND_MIN_SESSIONS = 20
TREND_CHANGE_PCT = 5.0
TREND_NOISE_PCT = 0.1
