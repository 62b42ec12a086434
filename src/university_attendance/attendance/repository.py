from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, RecordQuery


class AttendanceRepository(Protocol):
    def upsert(
        self,
        *,
        university_id: int,
        class_id: int,
        subject_id: int,
        student_id: int,
        faculty_id: int,
        attendance_date: date,
        slot_number: int,
        status: AttendanceStatus,
        reason: Optional[str] = None,
    ) -> int:
        """Create or overwrite the record for (class, subject, date, slot, student).

        Returns record_id.
        """

        raise NotImplementedError

    def get_for_slot(
        self,
        *,
        class_id: int,
        subject_id: int,
        attendance_date: date,
        slot_number: int,
        student_id: int,
    ) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find(self, query: RecordQuery) -> Sequence[AttendanceRecord]:
        """Records matching every given filter, ordered by date, slot, student name."""

        raise NotImplementedError
