from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from ..academics.model import AcademicClass, Student, Subject
from ..academics.repository import AcademicsRepository
from ..common.datetime_utils import month_range, now_local
from ..common.validators import require_slot_number
from ..core.constants import SLOT_START_TIMES
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..holidays.repository import HolidayRepository
from ..reports.aggregation import group_records
from ..settings.model import AttendanceSettings
from ..settings.service import SettingsService
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, MarkResult, RecordQuery, StudentMark
from .qr import SlotToken, SlotTokenCodec
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkingOutcome:
    results: list[MarkResult]
    records: list[AttendanceRecord]

    @property
    def marked(self) -> int:
        return sum(1 for r in self.results if r.success)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        academics: AcademicsRepository,
        holidays: HolidayRepository,
        settings: SettingsService,
        *,
        token_codec: SlotTokenCodec,
        strategy_factory: AttendanceStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._academics = academics
        self._holidays = holidays
        self._settings = settings
        self._codec = token_codec
        self._factory = strategy_factory or AttendanceStrategyFactory()

    def require_class(self, university_id: int, class_id: int) -> AcademicClass:
        cls = self._academics.get_class(university_id, class_id)
        if not cls:
            raise NotFoundError("Class not found")
        return cls

    def require_subject(self, university_id: int, subject_id: int, *, class_id: Optional[int] = None) -> Subject:
        subject = self._academics.get_subject(university_id, subject_id)
        if not subject:
            raise NotFoundError("Subject not found")
        if class_id is not None and subject.class_id is not None and subject.class_id != class_id:
            raise ValidationError("Subject does not belong to this class")
        return subject

    def require_student(self, university_id: int, student_id: int) -> Student:
        student = self._academics.get_student(university_id, student_id)
        if not student:
            raise NotFoundError("Student not found")
        return student

    # ---- marking ----

    def mark_attendance(
        self,
        *,
        university_id: int,
        faculty_id: int,
        class_id: int,
        subject_id: int,
        attendance_date: date,
        slot_number: int,
        marks: Sequence[StudentMark],
    ) -> MarkingOutcome:
        """Upsert one record per student for a single slot.

        Each student is handled on its own: an unknown student or status becomes a
        failed result for that student and the rest of the batch still goes through.
        """
        slot_number = require_slot_number(slot_number)
        if not marks:
            raise ValidationError("Student attendance list is required")

        self.require_class(university_id, class_id)
        self.require_subject(university_id, subject_id, class_id=class_id)
        settings = self._settings.get(university_id)

        results: list[MarkResult] = []
        for mark in marks:
            results.append(
                self._mark_one(
                    mark,
                    university_id=university_id,
                    faculty_id=faculty_id,
                    class_id=class_id,
                    subject_id=subject_id,
                    attendance_date=attendance_date,
                    slot_number=slot_number,
                    settings=settings,
                )
            )

        records = [
            r
            for r in self._attendance.find(
                RecordQuery(
                    university_id=university_id,
                    class_id=class_id,
                    subject_id=subject_id,
                    start=attendance_date,
                    end=attendance_date,
                )
            )
            if r.slot_number == slot_number
        ]

        outcome = MarkingOutcome(results=results, records=records)
        logger.info(
            "Faculty %s marked class %s subject %s on %s slot %s: %s/%s ok",
            faculty_id,
            class_id,
            subject_id,
            attendance_date,
            slot_number,
            outcome.marked,
            len(results),
        )
        return outcome

    def _mark_one(
        self,
        mark: StudentMark,
        *,
        university_id: int,
        faculty_id: int,
        class_id: int,
        subject_id: int,
        attendance_date: date,
        slot_number: int,
        settings: AttendanceSettings,
    ) -> MarkResult:
        try:
            student_id = int(mark.student_id)
        except (TypeError, ValueError):
            return MarkResult(student_id=mark.student_id, success=False, message="Student not found")

        student = self._academics.get_student(university_id, student_id)
        if not student:
            return MarkResult(student_id=student_id, success=False, message="Student not found")
        if student.class_id != class_id:
            return MarkResult(student_id=student_id, success=False, message="Student is not in this class")

        try:
            requested = AttendanceStatus(str(mark.status).strip().upper())
        except ValueError:
            return MarkResult(student_id=student_id, success=False, message="Invalid attendance status")

        strategy = self._factory.for_marking(requested=requested, settings=settings)
        decision = strategy.decide_mark(requested=requested, reason=(mark.reason or None))

        try:
            existing = self._attendance.get_for_slot(
                class_id=class_id,
                subject_id=subject_id,
                attendance_date=attendance_date,
                slot_number=slot_number,
                student_id=student_id,
            )
            self._attendance.upsert(
                university_id=university_id,
                class_id=class_id,
                subject_id=subject_id,
                student_id=student_id,
                faculty_id=faculty_id,
                attendance_date=attendance_date,
                slot_number=slot_number,
                status=decision.status,
                reason=decision.reason,
            )
        except Exception:
            # One failed write must not abort the rest of the batch.
            logger.exception(
                "Failed to save attendance for student %s (class %s slot %s on %s)",
                student_id,
                class_id,
                slot_number,
                attendance_date,
            )
            return MarkResult(student_id=student_id, success=False, message="Failed to mark attendance")

        return MarkResult(
            student_id=student_id,
            success=True,
            message="Attendance updated" if existing else "Attendance marked",
            status=decision.status,
        )

    # ---- QR self-marking ----

    def issue_slot_token(
        self,
        *,
        university_id: int,
        faculty_id: int,
        class_id: int,
        subject_id: int,
        attendance_date: date,
        slot_number: int,
    ) -> str:
        slot_number = require_slot_number(slot_number)
        self.require_class(university_id, class_id)
        self.require_subject(university_id, subject_id, class_id=class_id)
        self._reject_holiday(university_id, attendance_date)

        token = SlotToken(
            university_id=int(university_id),
            faculty_id=int(faculty_id),
            class_id=int(class_id),
            subject_id=int(subject_id),
            attendance_date=attendance_date,
            slot_number=slot_number,
        )
        return self._codec.issue(token)

    def self_mark(
        self,
        *,
        university_id: int,
        student_id: int,
        token: str,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or now_local()

        settings = self._settings.get(university_id)
        if not settings.allow_self_marking:
            raise AuthorizationError("Self-marking is not enabled for this university")

        slot = self._codec.parse(token)
        if slot.university_id != int(university_id):
            raise ValidationError("Invalid QR code")
        if slot.attendance_date != now.date():
            raise ValidationError("This QR code is not valid today")
        self._reject_holiday(university_id, slot.attendance_date)

        student = self.require_student(university_id, student_id)
        if student.class_id != slot.class_id:
            raise AuthorizationError("You are not enrolled in this class")
        subject = self.require_subject(university_id, slot.subject_id)
        cls = self.require_class(university_id, slot.class_id)

        existing = self._attendance.get_for_slot(
            class_id=slot.class_id,
            subject_id=slot.subject_id,
            attendance_date=slot.attendance_date,
            slot_number=slot.slot_number,
            student_id=student.student_id,
        )
        if existing:
            raise ValidationError("Attendance already marked for this slot")

        start_time = SLOT_START_TIMES.get(slot.slot_number)
        slot_start = datetime.combine(slot.attendance_date, start_time) if start_time else None
        grace = settings.grace_time_for_late_marking_minutes

        strategy = self._factory.for_self_marking(now=now, slot_start=slot_start, grace_minutes=grace)
        decision = strategy.decide_self_mark(now=now, slot_start=slot_start, grace_minutes=grace)

        record_id = self._attendance.upsert(
            university_id=university_id,
            class_id=slot.class_id,
            subject_id=slot.subject_id,
            student_id=student.student_id,
            faculty_id=slot.faculty_id,
            attendance_date=slot.attendance_date,
            slot_number=slot.slot_number,
            status=decision.status,
            reason=decision.reason,
        )
        logger.info(
            "Student %s self-marked %s for class %s slot %s",
            student.student_id,
            decision.status.value,
            slot.class_id,
            slot.slot_number,
        )
        return AttendanceRecord(
            record_id=record_id,
            university_id=int(university_id),
            class_id=slot.class_id,
            subject_id=slot.subject_id,
            student_id=student.student_id,
            faculty_id=slot.faculty_id,
            attendance_date=slot.attendance_date,
            slot_number=slot.slot_number,
            status=decision.status,
            reason=decision.reason,
            student_name=student.name,
            register_number=student.register_number,
            subject_name=subject.name,
            subject_code=subject.code,
            class_name=cls.display_name,
        )

    def _reject_holiday(self, university_id: int, day: date) -> None:
        holiday = self._holidays.get_for_date(university_id, day)
        if holiday:
            raise ValidationError(f"Cannot mark attendance on a holiday: {holiday.reason or day.isoformat()}")

    # ---- queries ----

    def class_day_records(
        self,
        *,
        university_id: int,
        class_id: int,
        day: date,
        subject_id: Optional[int] = None,
    ) -> list[AttendanceRecord]:
        self.require_class(university_id, class_id)
        rows = self._attendance.find(
            RecordQuery(university_id=university_id, class_id=class_id, subject_id=subject_id, start=day, end=day)
        )
        return sorted(rows, key=lambda r: r.slot_number)

    def daily_slots(
        self,
        *,
        university_id: int,
        class_id: int,
        day: date,
        subject_id: Optional[int] = None,
    ) -> dict:
        """A class's day grouped by slot, for the faculty daily register view."""
        cls = self.require_class(university_id, class_id)
        records = self.class_day_records(university_id=university_id, class_id=class_id, day=day, subject_id=subject_id)

        slots = []
        for slot_number, rows in sorted(group_records(records, key=lambda r: r.slot_number).items()):
            first = rows[0]
            slots.append(
                {
                    "slot_number": slot_number,
                    "subject": {"id": first.subject_id, "name": first.subject_name, "code": first.subject_code},
                    "faculty": {"id": first.faculty_id, "name": first.faculty_name},
                    "attendance": [
                        {
                            "student": {"id": r.student_id, "name": r.student_name, "register_number": r.register_number},
                            "status": r.status.value,
                            "reason": r.reason or "",
                        }
                        for r in rows
                    ],
                }
            )

        return {
            "class": cls.summary(),
            "date": day.strftime("%Y-%m-%d"),
            "slots": slots,
        }

    def student_records(
        self,
        *,
        university_id: int,
        student_id: int,
        start: date,
        end: date,
        subject_id: Optional[int] = None,
    ) -> list[AttendanceRecord]:
        """Newest first."""
        rows = self._attendance.find(
            RecordQuery(university_id=university_id, student_id=student_id, subject_id=subject_id, start=start, end=end)
        )
        return sorted(rows, key=lambda r: (r.attendance_date, r.slot_number), reverse=True)

    def today_records(self, *, university_id: int, student_id: int, today: date) -> list[AttendanceRecord]:
        rows = self._attendance.find(
            RecordQuery(university_id=university_id, student_id=student_id, start=today, end=today)
        )
        return sorted(rows, key=lambda r: r.slot_number)

    def calendar(self, *, university_id: int, student_id: int, year: int, month: int) -> list[dict]:
        start, end = month_range(year, month)
        rows = self._attendance.find(
            RecordQuery(university_id=university_id, student_id=student_id, start=start, end=end)
        )
        rows = sorted(rows, key=lambda r: (r.attendance_date, r.slot_number))

        return [
            {"date": day.strftime("%Y-%m-%d"), "records": [r.to_dict() for r in day_rows]}
            for day, day_rows in group_records(rows, key=lambda r: r.attendance_date).items()
        ]

    def check_holiday(self, *, university_id: int, day: date) -> dict:
        holiday = self._holidays.get_for_date(university_id, day)
        return {
            "date": day.strftime("%Y-%m-%d"),
            "is_holiday": holiday is not None,
            "reason": holiday.reason if holiday else None,
        }
