from __future__ import annotations

import pytest
from werkzeug.security import generate_password_hash

from university_attendance.container import wire
from university_attendance.core.enums import Role
from university_attendance.main import create_app
from university_attendance.users.model import User

from fakes import CLASS_A, FACULTY_ID, SUBJECT_DS, UNIVERSITY_ID, InMemoryAttendance, InMemoryUsers

PASSWORD = "s3cret"
PASSWORD_HASH = generate_password_hash(PASSWORD)

USERS = [
    User(1, UNIVERSITY_ID, "admin", PASSWORD_HASH, Role.ADMIN, "Admin"),
    User(2, UNIVERSITY_ID, "faculty", PASSWORD_HASH, Role.FACULTY, "Dr. Rao", profile_id=FACULTY_ID),
    User(3, UNIVERSITY_ID, "asha", PASSWORD_HASH, Role.STUDENT, "Asha", profile_id=1),
]


class BrokenAttendance(InMemoryAttendance):
    def find(self, query):
        raise RuntimeError("connection lost")


@pytest.fixture
def make_client(monkeypatch, academics, holidays, settings_repo):
    monkeypatch.setenv("APP_ENV", "testing")

    def _make(attendance_repo):
        container = wire(
            users_repo=InMemoryUsers(USERS),
            academics_repo=academics,
            holidays_repo=holidays,
            settings_repo=settings_repo,
            attendance_repo=attendance_repo,
            secret_key="test-secret",
        )
        return create_app(container=container).test_client()

    return _make


@pytest.fixture
def client(make_client, attendance_repo):
    return make_client(attendance_repo)


def login(client, username):
    resp = client.post("/api/auth/login", json={"username": username, "password": PASSWORD})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["data"]


def mark_payload(**overrides):
    payload = {
        "classId": CLASS_A,
        "subjectId": SUBJECT_DS,
        "slotNumber": 1,
        "date": "2025-03-12",
        "studentAttendance": [
            {"id": 1, "status": "present"},
            {"id": 2, "status": "ABSENT", "reason": "sick"},
        ],
    }
    payload.update(overrides)
    return payload


def test_login_rejects_wrong_password(client):
    resp = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Invalid username or password"}


def test_login_stores_session_user(client):
    data = login(client, "faculty")

    assert data["role"] == "faculty"
    assert data["profile_id"] == FACULTY_ID
    assert client.get("/api/auth/me").get_json()["data"]["user_id"] == 2


def test_routes_require_login(client):
    resp = client.get("/api/admin/attendance/settings")

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_routes_enforce_role(client):
    login(client, "asha")

    resp = client.post("/api/faculty/attendance/mark", json=mark_payload())

    assert resp.status_code == 403


def test_admin_reads_and_updates_settings(client):
    login(client, "admin")

    got = client.get("/api/admin/attendance/settings").get_json()
    assert got["data"]["min_attendance_percentage"] == 75

    resp = client.put("/api/admin/attendance/settings", json={"minAttendancePercentage": 80, "allowSelfMarking": True})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["min_attendance_percentage"] == 80
    assert resp.get_json()["data"]["allow_self_marking"] is True


def test_invalid_setting_is_rejected(client):
    login(client, "admin")

    resp = client.put("/api/admin/attendance/settings", json={"graceTimeForLateMarkingMinutes": 90})

    assert resp.status_code == 400
    assert "Grace period" in resp.get_json()["message"]


def test_faculty_marks_attendance(client, attendance_repo):
    login(client, "faculty")

    resp = client.post("/api/faculty/attendance/mark", json=mark_payload())

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert [r["status"] for r in body["data"]["results"]] == ["PRESENT", "ABSENT"]
    assert [r["student"]["name"] for r in body["data"]["records"]] == ["Asha", "Bala"]
    assert {r.faculty_id for r in attendance_repo.records} == {FACULTY_ID}


def test_mark_requires_class_id(client):
    login(client, "faculty")

    resp = client.post("/api/faculty/attendance/mark", json=mark_payload(classId=None))

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Class ID is required"


def test_mark_unknown_class_is_not_found(client):
    login(client, "faculty")

    resp = client.post("/api/faculty/attendance/mark", json=mark_payload(classId=999))

    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Class not found"


def test_mark_rejects_bad_date(client):
    login(client, "faculty")

    resp = client.post("/api/faculty/attendance/mark", json=mark_payload(date="12/03/2025"))

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Invalid date format. Use YYYY-MM-DD"


def test_faculty_daily_view(client):
    login(client, "faculty")
    client.post("/api/faculty/attendance/mark", json=mark_payload())

    resp = client.get("/api/faculty/attendance/daily?classId=10&date=2025-03-12")

    slots = resp.get_json()["data"]["slots"]
    assert [s["slot_number"] for s in slots] == [1]
    assert len(slots[0]["attendance"]) == 2


def test_admin_export_is_csv(client):
    login(client, "faculty")
    client.post("/api/faculty/attendance/mark", json=mark_payload())
    client.post("/api/auth/logout")
    login(client, "admin")

    resp = client.get("/api/admin/attendance/export?startDate=2025-03-01&endDate=2025-03-31")

    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "attendance_report_20250301_20250331.csv" in resp.headers["Content-Disposition"]
    lines = resp.data.decode("utf-8-sig").splitlines()
    assert lines[0].startswith("date,slot_number,class_name")
    assert len(lines) == 3


def test_faculty_export_as_json_includes_summary(client):
    login(client, "faculty")
    client.post("/api/faculty/attendance/mark", json=mark_payload())

    resp = client.get("/api/faculty/attendance/export?startDate=2025-03-01&endDate=2025-03-31&format=json")

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["date_range"] == {"start": "2025-03-01", "end": "2025-03-31"}
    assert len(data["rows"]) == 2
    assert [(s["student_name"], s["percentage"]) for s in data["summary"]] == [("Bala", 0.0), ("Asha", 100.0)]


def test_export_rejects_unknown_format(client):
    login(client, "admin")

    resp = client.get("/api/admin/attendance/export?format=pdf")

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Export format must be csv or json"


def test_calendar_year_out_of_range_is_bad_request(client):
    login(client, "asha")

    resp = client.get("/api/student/attendance/calendar?year=10000&month=1")

    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Year must be between 1 and 9999"


def test_slot_token_qr_is_png(client):
    login(client, "faculty")

    resp = client.get("/api/faculty/attendance/slot-token/qr?classId=10&subjectId=100&slotNumber=1")

    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.data[:8] == b"\x89PNG\r\n\x1a\n"


def test_student_self_marks_with_slot_token(client):
    login(client, "admin")
    client.put("/api/admin/attendance/settings", json={"allowSelfMarking": True})
    client.post("/api/auth/logout")

    login(client, "faculty")
    issued = client.get("/api/faculty/attendance/slot-token?classId=10&subjectId=100&slotNumber=8").get_json()
    token = issued["data"]["token"]
    assert issued["data"]["expires_in"] == 900
    client.post("/api/auth/logout")

    login(client, "asha")
    resp = client.post("/api/student/attendance/self-mark", json={"qr_code": token})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "PRESENT"

    again = client.post("/api/student/attendance/self-mark", json={"qr_code": token})
    assert again.status_code == 400
    assert again.get_json()["message"] == "Attendance already marked for this slot"

    today = client.get("/api/student/attendance/today").get_json()["data"]
    assert [r["slot_number"] for r in today] == [8]


def test_self_mark_disabled_is_forbidden(client):
    login(client, "faculty")
    token = client.get("/api/faculty/attendance/slot-token?classId=10&subjectId=100&slotNumber=8").get_json()["data"]["token"]
    client.post("/api/auth/logout")

    login(client, "asha")
    resp = client.post("/api/student/attendance/self-mark", json={"qr_code": token})

    assert resp.status_code == 403


def test_student_stats(client):
    login(client, "faculty")
    client.post("/api/faculty/attendance/mark", json=mark_payload())
    client.post("/api/auth/logout")
    login(client, "asha")

    resp = client.get("/api/student/attendance/stats")

    data = resp.get_json()["data"]
    assert data["student"]["name"] == "Asha"
    assert data["overall_stats"]["percentage"] == 100.0


def test_unexpected_error_hides_details(make_client, academics):
    client = make_client(BrokenAttendance(academics))
    login(client, "faculty")

    resp = client.get("/api/faculty/attendance/class?classId=10&date=2025-03-12")

    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "message": "Failed to retrieve attendance records"}


def test_unknown_route_returns_json(client):
    resp = client.get("/api/nope")

    assert resp.status_code == 404
    assert resp.get_json()["message"] == "Resource not found"
