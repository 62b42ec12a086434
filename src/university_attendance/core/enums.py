from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for route guards."""

    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Attendance status of one student for one slot, stored verbatim."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class ReportingFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class AttendanceStanding(str, Enum):
    """Where a percentage sits relative to the tenant thresholds."""

    OK = "OK"
    WARNING = "WARNING"
    BELOW_MINIMUM = "BELOW_MINIMUM"
