"""In-memory repositories implementing the repository protocols for tests."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional

from university_attendance.academics.model import AcademicClass, Student, Subject
from university_attendance.attendance.model import AttendanceRecord, RecordQuery
from university_attendance.core.enums import AttendanceStatus
from university_attendance.holidays.model import Holiday
from university_attendance.settings.model import AttendanceSettings
from university_attendance.users.model import User

UNIVERSITY_ID = 1
OTHER_UNIVERSITY_ID = 2
CLASS_A = 10
CLASS_B = 20
SUBJECT_DS = 100
SUBJECT_ALGO = 101
SUBJECT_B = 200
FACULTY_ID = 50


@dataclass
class InMemoryUsers:
    users: list[User] = field(default_factory=list)

    def get_by_id(self, user_id: int) -> Optional[User]:
        return next((u for u in self.users if u.user_id == user_id), None)

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users if u.username == username), None)


@dataclass
class InMemoryAcademics:
    classes: list[AcademicClass] = field(default_factory=list)
    subjects: list[Subject] = field(default_factory=list)
    students: list[Student] = field(default_factory=list)

    def get_class(self, university_id: int, class_id: int) -> Optional[AcademicClass]:
        return next((c for c in self.classes if c.university_id == university_id and c.class_id == class_id), None)

    def list_classes(self, university_id: int):
        return [c for c in self.classes if c.university_id == university_id]

    def get_subject(self, university_id: int, subject_id: int) -> Optional[Subject]:
        return next((s for s in self.subjects if s.university_id == university_id and s.subject_id == subject_id), None)

    def list_subjects(self, university_id: int, *, class_id: Optional[int] = None):
        return [
            s
            for s in self.subjects
            if s.university_id == university_id and (class_id is None or s.class_id == class_id)
        ]

    def get_student(self, university_id: int, student_id: int) -> Optional[Student]:
        return next((s for s in self.students if s.university_id == university_id and s.student_id == student_id), None)

    def list_students(self, university_id: int, *, class_id: Optional[int] = None):
        rows = [
            s
            for s in self.students
            if s.university_id == university_id and (class_id is None or s.class_id == class_id)
        ]
        return sorted(rows, key=lambda s: s.name)


@dataclass
class InMemoryHolidays:
    holidays: list[Holiday] = field(default_factory=list)

    def get_for_date(self, university_id: int, day: date) -> Optional[Holiday]:
        return next((h for h in self.holidays if h.university_id == university_id and h.holiday_date == day), None)


class InMemorySettings:
    def __init__(self, rows: Optional[list[AttendanceSettings]] = None):
        self._rows = {s.university_id: s for s in rows or []}
        self.get_calls = 0
        self.saved: list[AttendanceSettings] = []

    def get(self, university_id: int) -> Optional[AttendanceSettings]:
        self.get_calls += 1
        return self._rows.get(university_id)

    def save(self, settings: AttendanceSettings) -> None:
        self.saved.append(settings)
        self._rows[settings.university_id] = settings


class InMemoryAttendance:
    """Keyed by (class, subject, date, slot, student) like the unique index."""

    def __init__(self, academics: Optional[InMemoryAcademics] = None, records: Optional[list[AttendanceRecord]] = None):
        self._academics = academics
        self._rows: dict[tuple, AttendanceRecord] = {}
        self._id = 0
        for r in records or []:
            if not r.record_id:
                self._id += 1
                r = replace(r, record_id=self._id)
            self._id = max(self._id, r.record_id)
            self._rows[self._key(r)] = self._decorate(r)

    @staticmethod
    def _key(r: AttendanceRecord) -> tuple:
        return (r.class_id, r.subject_id, r.attendance_date, r.slot_number, r.student_id)

    def _decorate(self, r: AttendanceRecord) -> AttendanceRecord:
        if not self._academics:
            return r
        student = self._academics.get_student(r.university_id, r.student_id)
        subject = self._academics.get_subject(r.university_id, r.subject_id)
        cls = self._academics.get_class(r.university_id, r.class_id)
        return replace(
            r,
            student_name=student.name if student else r.student_name,
            register_number=student.register_number if student else r.register_number,
            subject_name=subject.name if subject else r.subject_name,
            subject_code=subject.code if subject else r.subject_code,
            class_name=cls.display_name if cls else r.class_name,
        )

    @property
    def records(self) -> list[AttendanceRecord]:
        return list(self._rows.values())

    def add(self, *records: AttendanceRecord) -> None:
        for r in records:
            self.upsert(
                university_id=r.university_id,
                class_id=r.class_id,
                subject_id=r.subject_id,
                student_id=r.student_id,
                faculty_id=r.faculty_id,
                attendance_date=r.attendance_date,
                slot_number=r.slot_number,
                status=r.status,
                reason=r.reason,
            )

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
        key = (class_id, subject_id, attendance_date, slot_number, student_id)
        existing = self._rows.get(key)
        if existing:
            record_id = existing.record_id
        else:
            self._id += 1
            record_id = self._id

        self._rows[key] = self._decorate(
            AttendanceRecord(
                record_id=record_id,
                university_id=university_id,
                class_id=class_id,
                subject_id=subject_id,
                student_id=student_id,
                faculty_id=faculty_id,
                attendance_date=attendance_date,
                slot_number=slot_number,
                status=status,
                reason=reason,
            )
        )
        return record_id

    def get_for_slot(
        self,
        *,
        class_id: int,
        subject_id: int,
        attendance_date: date,
        slot_number: int,
        student_id: int,
    ) -> Optional[AttendanceRecord]:
        return self._rows.get((class_id, subject_id, attendance_date, slot_number, student_id))

    def find(self, query: RecordQuery):
        rows = [
            r
            for r in self._rows.values()
            if r.university_id == query.university_id
            and (query.class_id is None or r.class_id == query.class_id)
            and (query.subject_id is None or r.subject_id == query.subject_id)
            and (query.student_id is None or r.student_id == query.student_id)
            and (query.start is None or r.attendance_date >= query.start)
            and (query.end is None or r.attendance_date <= query.end)
        ]
        return sorted(rows, key=lambda r: (r.attendance_date, r.slot_number, r.student_name or ""))


def make_record(
    student_id: int,
    status: AttendanceStatus,
    day: date,
    *,
    slot: int = 1,
    subject_id: int = SUBJECT_DS,
    class_id: int = CLASS_A,
    university_id: int = UNIVERSITY_ID,
    faculty_id: int = FACULTY_ID,
    record_id: int = 0,
) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=record_id,
        university_id=university_id,
        class_id=class_id,
        subject_id=subject_id,
        student_id=student_id,
        faculty_id=faculty_id,
        attendance_date=day,
        slot_number=slot,
        status=status,
    )
