from __future__ import annotations

from dataclasses import asdict, dataclass

from ..core.constants import DEFAULT_GRACE_MINUTES, DEFAULT_MIN_ATTENDANCE_PERCENTAGE, DEFAULT_WARN_AT_PERCENTAGE
from ..core.enums import ReportingFrequency


@dataclass(frozen=True)
class AttendanceSettings:
    """Per-university attendance policy (one row per tenant)."""

    university_id: int
    min_attendance_percentage: float = DEFAULT_MIN_ATTENDANCE_PERCENTAGE
    warn_at_percentage: float = DEFAULT_WARN_AT_PERCENTAGE
    allow_excused_absences: bool = True
    allow_self_marking: bool = False
    grace_time_for_late_marking_minutes: int = DEFAULT_GRACE_MINUTES
    enable_automated_reporting: bool = True
    reporting_frequency: ReportingFrequency = ReportingFrequency.WEEKLY
    count_late_as_present: bool = True
    count_excused_as_present: bool = True

    def to_dict(self) -> dict:
        data = asdict(self)
        data["reporting_frequency"] = self.reporting_frequency.value
        return data
