from __future__ import annotations

from datetime import date

import pytest

from university_attendance.core.enums import AttendanceStatus, Role
from university_attendance.core.exceptions import NotFoundError, ValidationError

from fakes import CLASS_A, CLASS_B, SUBJECT_ALGO, SUBJECT_B, SUBJECT_DS, UNIVERSITY_ID, make_record

P, A, L, E = (
    AttendanceStatus.PRESENT,
    AttendanceStatus.ABSENT,
    AttendanceStatus.LATE,
    AttendanceStatus.EXCUSED,
)
D1, D2, D3, D4 = date(2025, 3, 3), date(2025, 3, 4), date(2025, 3, 5), date(2025, 3, 6)
START, END = date(2025, 3, 1), date(2025, 3, 12)


@pytest.fixture(autouse=True)
def seeded(attendance_repo):
    # Asha (1): DS 4/4, ALGO 1/2 -> 83.33%
    # Bala (2): DS A A L P, ALGO A -> 40%
    # Chen (3): no records
    # Dev (4, class B): P E A A -> 50%
    attendance_repo.add(
        *[make_record(1, P, d) for d in (D1, D2, D3, D4)],
        make_record(1, P, D1, slot=2, subject_id=SUBJECT_ALGO),
        make_record(1, A, D2, slot=2, subject_id=SUBJECT_ALGO),
        make_record(2, A, D1),
        make_record(2, A, D2),
        make_record(2, L, D3),
        make_record(2, P, D4),
        make_record(2, A, D1, slot=2, subject_id=SUBJECT_ALGO),
        *[
            make_record(4, s, d, class_id=CLASS_B, subject_id=SUBJECT_B)
            for s, d in zip((P, E, A, A), (D1, D2, D3, D4))
        ],
    )
    return attendance_repo


def test_class_reports_summarise_each_class(report_service):
    data = report_service.class_reports(university_id=UNIVERSITY_ID, start=START, end=END)

    assert data["date_range"] == {"start": "2025-03-01", "end": "2025-03-12"}
    class_a, class_b = data["classes"]
    assert class_a["id"] == CLASS_A
    assert class_a["total_students"] == 2
    assert class_a["total_classes"] == 11
    assert class_a["total_present"] == 7
    assert class_a["attendance_rate"] == 63.64
    assert [s["code"] for s in class_a["subjects"]] == ["CS201", "CS202"]
    assert class_b["total_students"] == 1
    assert class_b["attendance_rate"] == 50.0


def test_class_reports_respects_date_range(report_service):
    data = report_service.class_reports(university_id=UNIVERSITY_ID, start=D4, end=END, class_id=CLASS_A)

    assert len(data["classes"]) == 1
    assert data["classes"][0]["total_classes"] == 2


def test_class_stats_sorts_students_and_counts_risk(report_service):
    data = report_service.class_stats(university_id=UNIVERSITY_ID, class_id=CLASS_A, start=START, end=END)

    assert [s["student"]["name"] for s in data["students"]] == ["Bala", "Asha"]
    assert [s["percentage"] for s in data["students"]] == [40.0, 83.33]
    assert [s["standing"] for s in data["students"]] == ["BELOW_MINIMUM", "WARNING"]
    assert data["students_at_risk"] == 1
    assert data["min_attendance_required"] == 75
    assert data["overall_stats"]["average_attendance"] == 61.67
    assert data["overall_stats"]["total_records"] == 11
    assert data["overall_stats"]["present"] == 6
    assert data["overall_stats"]["absent"] == 4
    assert data["overall_stats"]["late"] == 1


def test_class_stats_filtered_by_subject(report_service):
    data = report_service.class_stats(
        university_id=UNIVERSITY_ID, class_id=CLASS_A, start=START, end=END, subject_id=SUBJECT_ALGO
    )

    assert data["subject"]["code"] == "CS202"
    assert [s["percentage"] for s in data["students"]] == [0.0, 50.0]


def test_class_stats_unknown_class(report_service):
    with pytest.raises(NotFoundError):
        report_service.class_stats(university_id=UNIVERSITY_ID, class_id=999, start=START, end=END)


def test_student_stats_per_subject(report_service):
    data = report_service.student_stats(university_id=UNIVERSITY_ID, student_id=1)

    assert data["min_attendance_required"] == 75
    assert data["date_range"] is None
    assert [s["subject"]["code"] for s in data["subject_stats"]] == ["CS202", "CS201"]
    algo, ds = data["subject_stats"]
    assert algo["percentage"] == 50.0 and algo["is_below_threshold"] is True
    assert ds["percentage"] == 100.0 and ds["is_below_threshold"] is False and ds["standing"] == "OK"
    assert data["overall_stats"]["percentage"] == 83.33
    assert data["overall_stats"]["standing"] == "WARNING"


def test_student_stats_rejects_inverted_range(report_service):
    with pytest.raises(ValidationError):
        report_service.student_stats(university_id=UNIVERSITY_ID, student_id=1, start=END, end=START)


def test_student_stats_unknown_student(report_service):
    with pytest.raises(NotFoundError):
        report_service.student_stats(university_id=UNIVERSITY_ID, student_id=9)


def test_student_stats_honours_counting_policy(report_service, settings_service):
    settings_service.update(current_role=Role.ADMIN, university_id=UNIVERSITY_ID, changes={"count_late_as_present": False})

    data = report_service.student_stats(university_id=UNIVERSITY_ID, student_id=2)

    ds = next(s for s in data["subject_stats"] if s["subject"]["id"] == SUBJECT_DS)
    assert ds["percentage"] == 25.0
    assert ds["late"] == 1


def test_low_attendance_defaults_to_tenant_minimum(report_service):
    data = report_service.low_attendance_students(university_id=UNIVERSITY_ID)

    assert data["threshold"] == 75
    assert [s["student"]["name"] for s in data["students"]] == ["Bala", "Dev"]
    bala = data["students"][0]
    assert bala["class"] == {"id": CLASS_A, "name": "CSE-A"}
    assert bala["overall_attendance"]["percentage"] == 40.0
    assert [s["subject"]["code"] for s in bala["subject_attendance"]] == ["CS202", "CS201"]


def test_low_attendance_is_strictly_below_threshold(report_service):
    data = report_service.low_attendance_students(university_id=UNIVERSITY_ID, threshold=50)

    assert [s["student"]["name"] for s in data["students"]] == ["Bala"]


def test_low_attendance_custom_threshold_and_class(report_service):
    high = report_service.low_attendance_students(university_id=UNIVERSITY_ID, threshold=85)
    only_b = report_service.low_attendance_students(university_id=UNIVERSITY_ID, class_id=CLASS_B)

    assert {s["student"]["name"] for s in high["students"]} == {"Asha", "Bala", "Dev"}
    assert [s["student"]["name"] for s in only_b["students"]] == ["Dev"]


def test_absentees_reports_streaks_and_last_attendance(report_service):
    data = report_service.absentees(university_id=UNIVERSITY_ID, class_id=CLASS_A)

    assert data["threshold"] == 75
    assert data["total_students"] == 3
    assert data["students_at_risk"] == 1
    bala = data["students"][0]
    assert bala["student"]["name"] == "Bala"
    assert bala["overall_attendance"] == 40.0
    assert bala["consecutive_absences"] == 3
    assert [(s["subject"]["code"], s["last_attendance"]) for s in bala["subject_attendance"]] == [
        ("CS202", "2025-03-03"),
        ("CS201", "2025-03-06"),
    ]


def test_absentees_with_custom_threshold(report_service):
    data = report_service.absentees(university_id=UNIVERSITY_ID, class_id=CLASS_A, threshold=90)

    assert [s["student"]["name"] for s in data["students"]] == ["Bala", "Asha"]


def test_inactive_students_have_no_recent_records(report_service):
    week = report_service.inactive_students(university_id=UNIVERSITY_ID, class_id=CLASS_A, today=END, days=7)
    shorter = report_service.inactive_students(university_id=UNIVERSITY_ID, class_id=CLASS_A, today=END, days=5)

    assert week["since"] == "2025-03-05"
    assert [(s["name"], s["last_attendance"]) for s in week["students"]] == [("Chen", None)]
    assert [(s["name"], s["last_attendance"]) for s in shorter["students"]] == [
        ("Asha", "2025-03-06"),
        ("Bala", "2025-03-06"),
        ("Chen", None),
    ]


def test_inactive_students_rejects_non_positive_days(report_service):
    with pytest.raises(ValidationError):
        report_service.inactive_students(university_id=UNIVERSITY_ID, class_id=CLASS_A, today=END, days=0)


def test_export_rows_flatten_records(report_service):
    data = report_service.export_rows(university_id=UNIVERSITY_ID, start=START, end=END, class_id=CLASS_A)

    assert len(data.rows) == 11
    assert data.rows[0] == {
        "date": "2025-03-03",
        "slot_number": 1,
        "class_name": "CSE-A",
        "subject_code": "CS201",
        "subject_name": "Data Structures",
        "register_number": "R001",
        "student_name": "Asha",
        "status": "PRESENT",
        "reason": "",
        "faculty_name": "-",
    }
    assert [s["student_name"] for s in data.summary] == ["Bala", "Asha"]
