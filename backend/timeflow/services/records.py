"""Plain, immutable records the analytics engine works on.

The repository converts ORM rows into these so the detectors and calculators
never touch a session and can be exercised with hand-built data.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Tuple


APPROVED = "approved"
PENDING = "pending"

ANOMALY_TYPES = (
    "exact_time_pattern",
    "same_location",
    "perfect_pattern",
    "off_hours",
    "absence_conflict",
)

TREND_IMPROVING = "improving"
TREND_STABLE = "stable"
TREND_DECLINING = "declining"


@dataclass(frozen=True)
class TimeEventRecord:
    id: str
    user_id: str
    event_type: str
    event_time: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class WorkSessionRecord:
    user_id: str
    clock_in_time: datetime
    clock_out_time: Optional[datetime] = None
    total_pause_duration: Optional[int] = None  # ms


@dataclass(frozen=True)
class AbsenceRecord:
    user_id: str
    start_date: date
    end_date: date
    status: str = APPROVED
    absence_type: Optional[str] = None

    @property
    def is_approved(self) -> bool:
        return self.status == APPROVED


@dataclass(frozen=True)
class ShiftRecord:
    user_id: str
    date: date
    expected_hours: float
    start_time: Optional[str] = None  # "HH:MM"
    end_time: Optional[str] = None


@dataclass(frozen=True)
class IncidentRecord:
    id: str
    user_id: str
    type: str
    status: str
    created_at: datetime


@dataclass(frozen=True)
class Anomaly:
    type: str
    employee_id: str
    employee_name: str
    description: str
    confidence: int
    evidence: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.type not in ANOMALY_TYPES:
            raise ValueError(f"Unknown anomaly type: {self.type}")

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "description": self.description,
            "confidence": self.confidence,
            "evidence": list(self.evidence),
        }


@dataclass(frozen=True)
class NotificationPayload:
    company_id: str
    user_id: str
    title: str
    message: str
    entity_id: str
    type: str = "warning"
    entity_type: str = "anomaly"

    def to_dict(self) -> dict:
        return {
            "company_id": self.company_id,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
        }


@dataclass
class Findings:
    """Strengths / areas / recommendations collected by one calculator."""
    strengths: List[str] = field(default_factory=list)
    areas_for_improvement: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    recognition_suggestions: List[str] = field(default_factory=list)

    def extend(self, other: "Findings") -> None:
        self.strengths.extend(other.strengths)
        self.areas_for_improvement.extend(other.areas_for_improvement)
        self.recommendations.extend(other.recommendations)
        self.recognition_suggestions.extend(other.recognition_suggestions)


@dataclass(frozen=True)
class TrendResult:
    performance_trend: str = TREND_STABLE
    # None means "not enough data", never "measured zero change"
    trend_percentage: Optional[float] = None
    this_month_avg: Optional[float] = None
    last_month_avg: Optional[float] = None


@dataclass(frozen=True)
class Insight:
    employee_id: str
    employee_name: str
    strengths: Tuple[str, ...]
    areas_for_improvement: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    performance_trend: str
    trend_percentage: Optional[float] = None
    recognition_suggestions: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> dict:
        """Serialize, leaving optional fields out entirely when unset."""
        data = {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "strengths": list(self.strengths),
            "areas_for_improvement": list(self.areas_for_improvement),
            "recommendations": list(self.recommendations),
            "performance_trend": self.performance_trend,
        }
        if self.trend_percentage is not None:
            data["trend_percentage"] = self.trend_percentage
        if self.recognition_suggestions:
            data["recognition_suggestions"] = list(self.recognition_suggestions)
        return data


@dataclass(frozen=True)
class EmployeeHistory:
    """Everything the insight calculators read for one employee."""
    employee_id: str
    employee_name: str
    events: Tuple[TimeEventRecord, ...] = ()
    sessions: Tuple[WorkSessionRecord, ...] = ()
    absences: Tuple[AbsenceRecord, ...] = ()
    shifts: Tuple[ShiftRecord, ...] = ()
    incidents: Tuple[IncidentRecord, ...] = ()
