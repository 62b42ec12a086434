from __future__ import annotations

import logging
from datetime import date

from flask import Flask, request, send_file

from ..common.datetime_utils import now_local, parse_iso_date, resolve_date_range
from ..common.http import api_errors, json_body, ok, query_arg
from ..common.validators import optional_positive_int, require_positive_int
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..users.guards import current_profile_id, current_user, role_required
from .model import StudentMark
from .qr import decode_qr_image, render_qr_png

logger = logging.getLogger(__name__)

FACULTY_PREFIX = "/api/faculty/attendance"
STUDENT_PREFIX = "/api/student/attendance"


def _today() -> date:
    return now_local().date()


def _date_arg(*names: str, default: date | None = None) -> date:
    value = query_arg(*names)
    if value is None:
        if default is None:
            raise ValidationError("Date is required")
        return default
    return parse_iso_date(value)


def _parse_marks(items) -> list[StudentMark]:
    if not isinstance(items, list) or not items:
        raise ValidationError("Student attendance list is required")
    marks = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Each student attendance entry must be an object")
        marks.append(
            StudentMark(
                student_id=item.get("id", item.get("student_id", item.get("studentId"))),
                status=item.get("status"),
                reason=item.get("reason"),
            )
        )
    return marks


def register(app: Flask, container: Container) -> None:
    # ===== FACULTY =====

    @app.route(f"{FACULTY_PREFIX}/mark", methods=["POST"], endpoint="faculty_attendance_mark")
    @role_required(Role.FACULTY)
    @api_errors("Failed to mark attendance")
    def faculty_attendance_mark():
        body = json_body()
        date_s = body.get("date")
        if not date_s:
            raise ValidationError("Missing required fields")

        outcome = container.attendance_service.mark_attendance(
            university_id=current_user().university_id,
            faculty_id=current_profile_id(),
            class_id=require_positive_int(body.get("classId", body.get("class_id")), "Class ID"),
            subject_id=require_positive_int(body.get("subjectId", body.get("subject_id")), "Subject ID"),
            attendance_date=parse_iso_date(str(date_s)),
            slot_number=body.get("slotNumber", body.get("slot_number")),
            marks=_parse_marks(body.get("studentAttendance", body.get("student_attendance"))),
        )
        return ok(
            {
                "results": [r.to_dict() for r in outcome.results],
                "records": [r.to_dict() for r in outcome.records],
            },
            "Attendance processed",
        )

    @app.route(f"{FACULTY_PREFIX}/class", methods=["GET"], endpoint="faculty_attendance_class")
    @role_required(Role.FACULTY)
    @api_errors("Failed to retrieve attendance records")
    def faculty_attendance_class():
        records = container.attendance_service.class_day_records(
            university_id=current_user().university_id,
            class_id=require_positive_int(query_arg("classId", "class_id"), "Class ID"),
            day=_date_arg("date"),
            subject_id=optional_positive_int(query_arg("subjectId", "subject_id"), "Subject ID"),
        )
        return ok([r.to_dict() for r in records], "Attendance records retrieved")

    @app.route(f"{FACULTY_PREFIX}/daily", methods=["GET"], endpoint="faculty_attendance_daily")
    @role_required(Role.FACULTY)
    @api_errors("Failed to retrieve daily attendance records")
    def faculty_attendance_daily():
        data = container.attendance_service.daily_slots(
            university_id=current_user().university_id,
            class_id=require_positive_int(query_arg("classId", "class_id"), "Class ID"),
            day=_date_arg("date"),
            subject_id=optional_positive_int(query_arg("subjectId", "subject_id"), "Subject ID"),
        )
        return ok(data, "Daily attendance records retrieved")

    @app.route(f"{FACULTY_PREFIX}/holidays", methods=["GET"], endpoint="faculty_attendance_holidays")
    @role_required(Role.FACULTY)
    @api_errors("Failed to check holiday")
    def faculty_attendance_holidays():
        data = container.attendance_service.check_holiday(
            university_id=current_user().university_id,
            day=_date_arg("date", default=_today()),
        )
        return ok(data, "Holiday status retrieved")

    def _issue_token() -> str:
        return container.attendance_service.issue_slot_token(
            university_id=current_user().university_id,
            faculty_id=current_profile_id(),
            class_id=require_positive_int(query_arg("classId", "class_id"), "Class ID"),
            subject_id=require_positive_int(query_arg("subjectId", "subject_id"), "Subject ID"),
            attendance_date=_date_arg("date", default=_today()),
            slot_number=query_arg("slotNumber", "slot_number"),
        )

    @app.route(f"{FACULTY_PREFIX}/slot-token", methods=["GET"], endpoint="faculty_attendance_slot_token")
    @role_required(Role.FACULTY)
    @api_errors("Failed to issue slot QR code")
    def faculty_attendance_slot_token():
        token = _issue_token()
        return ok(
            {"token": token, "expires_in": container.token_codec.max_age_seconds},
            "Slot QR code issued",
        )

    @app.route(f"{FACULTY_PREFIX}/slot-token/qr", methods=["GET"], endpoint="faculty_attendance_slot_token_qr")
    @role_required(Role.FACULTY)
    @api_errors("Failed to issue slot QR code")
    def faculty_attendance_slot_token_qr():
        """QR code image (PNG) for projecting in class."""
        buf = render_qr_png(_issue_token())
        return send_file(buf, mimetype="image/png", as_attachment=False, download_name="slot_qr.png")

    # ===== STUDENT =====

    @app.route(STUDENT_PREFIX, methods=["GET"], endpoint="student_attendance")
    @role_required(Role.STUDENT)
    @api_errors("Failed to retrieve attendance records")
    def student_attendance():
        start, end = resolve_date_range(query_arg("startDate", "start"), query_arg("endDate", "end"), today=_today())
        records = container.attendance_service.student_records(
            university_id=current_user().university_id,
            student_id=current_profile_id(),
            start=start,
            end=end,
            subject_id=optional_positive_int(query_arg("subjectId", "subject_id"), "Subject ID"),
        )
        return ok(
            {
                "date_range": {"start": start.strftime("%Y-%m-%d"), "end": end.strftime("%Y-%m-%d")},
                "records": [r.to_dict() for r in records],
            },
            "Attendance records retrieved",
        )

    @app.route(f"{STUDENT_PREFIX}/today", methods=["GET"], endpoint="student_attendance_today")
    @role_required(Role.STUDENT)
    @api_errors("Failed to retrieve today's attendance")
    def student_attendance_today():
        records = container.attendance_service.today_records(
            university_id=current_user().university_id,
            student_id=current_profile_id(),
            today=_today(),
        )
        return ok([r.to_dict() for r in records], "Today's attendance records retrieved")

    @app.route(f"{STUDENT_PREFIX}/calendar", methods=["GET"], endpoint="student_attendance_calendar")
    @role_required(Role.STUDENT)
    @api_errors("Failed to retrieve attendance calendar")
    def student_attendance_calendar():
        today = _today()
        year = require_positive_int(query_arg("year") or today.year, "Year")
        month = require_positive_int(query_arg("month") or today.month, "Month")
        days = container.attendance_service.calendar(
            university_id=current_user().university_id,
            student_id=current_profile_id(),
            year=year,
            month=month,
        )
        return ok({"year": year, "month": month, "days": days}, "Attendance calendar retrieved")

    @app.route(f"{STUDENT_PREFIX}/self-mark", methods=["POST"], endpoint="student_attendance_self_mark")
    @role_required(Role.STUDENT)
    @api_errors("Failed to mark attendance")
    def student_attendance_self_mark():
        body = json_body()
        token = body.get("qr_code") or body.get("token") or ""
        record = container.attendance_service.self_mark(
            university_id=current_user().university_id,
            student_id=current_profile_id(),
            token=str(token),
        )
        return ok(record.to_dict(), "Attendance marked")

    @app.route(f"{STUDENT_PREFIX}/self-mark/image", methods=["POST"], endpoint="student_attendance_self_mark_image")
    @role_required(Role.STUDENT)
    @api_errors("Failed to mark attendance")
    def student_attendance_self_mark_image():
        upload = request.files.get("image")
        if upload is None or not upload.filename:
            raise ValidationError("QR image is required")

        token = decode_qr_image(upload.stream)
        record = container.attendance_service.self_mark(
            university_id=current_user().university_id,
            student_id=current_profile_id(),
            token=token,
        )
        return ok(record.to_dict(), "Attendance marked")
