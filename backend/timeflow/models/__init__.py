from timeflow.models.user import Profile
from timeflow.models.company import Company, Membership, MembershipRole, NOTIFIED_ROLES
from timeflow.models.timeclock import TimeEvent, WorkSession, EventType
from timeflow.models.absence import Absence
from timeflow.models.schedule import ScheduledHours
from timeflow.models.incident import Incident
from timeflow.models.notification import Notification

__all__ = [
    "Profile",
    "Company",
    "Membership",
    "MembershipRole",
    "NOTIFIED_ROLES",
    "TimeEvent",
    "WorkSession",
    "EventType",
    "Absence",
    "ScheduledHours",
    "Incident",
    "Notification",
]
