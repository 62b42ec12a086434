from __future__ import annotations

from datetime import date, datetime

import pytest

from university_attendance.academics.model import AcademicClass, Student, Subject
from university_attendance.attendance.qr import SlotTokenCodec
from university_attendance.attendance.service import AttendanceService
from university_attendance.reports.service import ReportService
from university_attendance.settings.service import SettingsService

from fakes import (
    CLASS_A,
    CLASS_B,
    OTHER_UNIVERSITY_ID,
    SUBJECT_ALGO,
    SUBJECT_B,
    SUBJECT_DS,
    UNIVERSITY_ID,
    InMemoryAcademics,
    InMemoryAttendance,
    InMemoryHolidays,
    InMemorySettings,
)


@pytest.fixture
def fixed_now() -> datetime:
    # A Wednesday, shortly after slot 1 (09:00) starts.
    return datetime(2025, 3, 12, 9, 5)


@pytest.fixture
def today(fixed_now) -> date:
    return fixed_now.date()


@pytest.fixture
def academics() -> InMemoryAcademics:
    return InMemoryAcademics(
        classes=[
            AcademicClass(class_id=CLASS_A, university_id=UNIVERSITY_ID, name="CSE-A", year=2, semester=3, division="A"),
            AcademicClass(class_id=CLASS_B, university_id=UNIVERSITY_ID, name="CSE-B", year=2, semester=3, division="B"),
            AcademicClass(class_id=30, university_id=OTHER_UNIVERSITY_ID, name="ECE-A"),
        ],
        subjects=[
            Subject(subject_id=SUBJECT_DS, university_id=UNIVERSITY_ID, class_id=CLASS_A, name="Data Structures", code="CS201"),
            Subject(subject_id=SUBJECT_ALGO, university_id=UNIVERSITY_ID, class_id=CLASS_A, name="Algorithms", code="CS202"),
            Subject(subject_id=SUBJECT_B, university_id=UNIVERSITY_ID, class_id=CLASS_B, name="Networks", code="CS301"),
        ],
        students=[
            Student(student_id=1, university_id=UNIVERSITY_ID, class_id=CLASS_A, name="Asha", register_number="R001"),
            Student(student_id=2, university_id=UNIVERSITY_ID, class_id=CLASS_A, name="Bala", register_number="R002"),
            Student(student_id=3, university_id=UNIVERSITY_ID, class_id=CLASS_A, name="Chen", register_number="R003"),
            Student(student_id=4, university_id=UNIVERSITY_ID, class_id=CLASS_B, name="Dev", register_number="R004"),
            Student(student_id=9, university_id=OTHER_UNIVERSITY_ID, class_id=30, name="Eve", register_number="X009"),
        ],
    )


@pytest.fixture
def holidays() -> InMemoryHolidays:
    return InMemoryHolidays()


@pytest.fixture
def settings_repo() -> InMemorySettings:
    return InMemorySettings()


@pytest.fixture
def settings_service(settings_repo) -> SettingsService:
    return SettingsService(settings_repo)


@pytest.fixture
def attendance_repo(academics) -> InMemoryAttendance:
    return InMemoryAttendance(academics)


@pytest.fixture
def token_codec() -> SlotTokenCodec:
    return SlotTokenCodec("test-secret", max_age_seconds=300)


@pytest.fixture
def attendance_service(attendance_repo, academics, holidays, settings_service, token_codec) -> AttendanceService:
    return AttendanceService(attendance_repo, academics, holidays, settings_service, token_codec=token_codec)


@pytest.fixture
def report_service(attendance_repo, academics, settings_service) -> ReportService:
    return ReportService(attendance_repo, academics, settings_service)
