from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """One student's status for one slot; unique per (class, subject, date, slot, student).

    The display fields are filled by repository joins and may be None when a
    referenced row is missing.
    """

    record_id: int
    university_id: int
    class_id: int
    subject_id: int
    student_id: int
    faculty_id: int
    attendance_date: date
    slot_number: int
    status: AttendanceStatus
    reason: Optional[str] = None

    student_name: Optional[str] = None
    register_number: Optional[str] = None
    subject_name: Optional[str] = None
    subject_code: Optional[str] = None
    faculty_name: Optional[str] = None
    class_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "date": self.attendance_date.strftime("%Y-%m-%d"),
            "slot_number": self.slot_number,
            "status": self.status.value,
            "reason": self.reason or "",
            "student": {"id": self.student_id, "name": self.student_name, "register_number": self.register_number},
            "subject": {"id": self.subject_id, "name": self.subject_name, "code": self.subject_code},
            "faculty": {"id": self.faculty_id, "name": self.faculty_name},
            "class": {"id": self.class_id, "name": self.class_name},
        }


@dataclass(frozen=True)
class RecordQuery:
    """Filter for record lookups; `start`/`end` are inclusive dates."""

    university_id: int
    class_id: Optional[int] = None
    subject_id: Optional[int] = None
    student_id: Optional[int] = None
    start: Optional[date] = None
    end: Optional[date] = None


@dataclass(frozen=True)
class StudentMark:
    """Raw per-student input of a marking request (validated by the service)."""

    student_id: Any
    status: Any
    reason: Optional[str] = None


@dataclass(frozen=True)
class MarkResult:
    student_id: Any
    success: bool
    message: str
    status: Optional[AttendanceStatus] = None

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "success": self.success,
            "message": self.message,
            "status": self.status.value if self.status else None,
        }
