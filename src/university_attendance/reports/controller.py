from __future__ import annotations

import csv
import io

from flask import Flask

from ..common.datetime_utils import now_local, parse_iso_date, resolve_date_range
from ..common.http import api_errors, ok, query_arg
from ..common.validators import optional_positive_int, require_percentage, require_positive_int
from ..container import Container
from ..core.constants import INACTIVE_LOOKBACK_DAYS
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..users.guards import current_profile_id, current_user, role_required
from .service import ReportData

EXPORT_FIELDS = [
    "date",
    "slot_number",
    "class_name",
    "subject_code",
    "subject_name",
    "register_number",
    "student_name",
    "status",
    "reason",
    "faculty_name",
]


def _date_range_args():
    return resolve_date_range(
        query_arg("startDate", "start"),
        query_arg("endDate", "end"),
        today=now_local().date(),
    )


def _threshold_arg():
    value = query_arg("threshold")
    return require_percentage(value, "Threshold") if value is not None else None


def register(app: Flask, container: Container) -> None:
    def _write_report_csv(*, data: ReportData, filename: str):
        """Write report rows to CSV response.

        Shared helper used by admin/faculty exports.
        """

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=EXPORT_FIELDS)
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    def _export():
        """CSV of flat rows; `?format=json` returns rows plus the per-student summary."""
        start, end = _date_range_args()
        data = container.report_service.export_rows(
            university_id=current_user().university_id,
            start=start,
            end=end,
            class_id=optional_positive_int(query_arg("classId", "class_id"), "Class ID"),
            subject_id=optional_positive_int(query_arg("subjectId", "subject_id"), "Subject ID"),
        )

        fmt = (query_arg("format") or "csv").lower()
        if fmt == "json":
            return ok(
                {
                    "date_range": {"start": start.strftime("%Y-%m-%d"), "end": end.strftime("%Y-%m-%d")},
                    "rows": data.rows,
                    "summary": data.summary,
                },
                "Attendance report exported",
            )
        if fmt != "csv":
            raise ValidationError("Export format must be csv or json")

        filename = f"attendance_report_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return _write_report_csv(data=data, filename=filename)

    # ===== ADMIN =====

    @app.route("/api/admin/attendance/reports", methods=["GET"], endpoint="admin_attendance_reports")
    @role_required(Role.ADMIN)
    @api_errors("Failed to retrieve attendance reports")
    def admin_attendance_reports():
        start, end = _date_range_args()
        data = container.report_service.class_reports(
            university_id=current_user().university_id,
            start=start,
            end=end,
            class_id=optional_positive_int(query_arg("classId", "class_id"), "Class ID"),
        )
        return ok(data, "Attendance reports retrieved")

    @app.route("/api/admin/attendance/low-attendance", methods=["GET"], endpoint="admin_attendance_low")
    @role_required(Role.ADMIN)
    @api_errors("Failed to get low attendance students")
    def admin_attendance_low():
        data = container.report_service.low_attendance_students(
            university_id=current_user().university_id,
            threshold=_threshold_arg(),
            class_id=optional_positive_int(query_arg("classId", "class_id"), "Class ID"),
        )
        return ok(data, "Low attendance students retrieved")

    @app.route("/api/admin/attendance/export", methods=["GET"], endpoint="admin_attendance_export")
    @role_required(Role.ADMIN)
    @api_errors("Failed to export attendance report")
    def admin_attendance_export():
        return _export()

    # ===== FACULTY =====

    @app.route("/api/faculty/attendance/stats", methods=["GET"], endpoint="faculty_attendance_stats")
    @role_required(Role.FACULTY)
    @api_errors("Failed to retrieve attendance statistics")
    def faculty_attendance_stats():
        start, end = _date_range_args()
        data = container.report_service.class_stats(
            university_id=current_user().university_id,
            class_id=require_positive_int(query_arg("classId", "class_id"), "Class ID"),
            start=start,
            end=end,
            subject_id=optional_positive_int(query_arg("subjectId", "subject_id"), "Subject ID"),
        )
        return ok(data, "Attendance statistics retrieved")

    @app.route("/api/faculty/attendance/absentees", methods=["GET"], endpoint="faculty_attendance_absentees")
    @role_required(Role.FACULTY)
    @api_errors("Failed to retrieve absentees")
    def faculty_attendance_absentees():
        data = container.report_service.absentees(
            university_id=current_user().university_id,
            class_id=require_positive_int(query_arg("classId", "class_id"), "Class ID"),
            threshold=_threshold_arg(),
            subject_id=optional_positive_int(query_arg("subjectId", "subject_id"), "Subject ID"),
        )
        return ok(data, "Absentees retrieved")

    @app.route("/api/faculty/attendance/inactive", methods=["GET"], endpoint="faculty_attendance_inactive")
    @role_required(Role.FACULTY)
    @api_errors("Failed to retrieve inactive students")
    def faculty_attendance_inactive():
        data = container.report_service.inactive_students(
            university_id=current_user().university_id,
            class_id=require_positive_int(query_arg("classId", "class_id"), "Class ID"),
            today=now_local().date(),
            days=query_arg("days") or INACTIVE_LOOKBACK_DAYS,
        )
        return ok(data, "Inactive students retrieved")

    @app.route(
        "/api/faculty/attendance/students/<int:student_id>/stats",
        methods=["GET"],
        endpoint="faculty_attendance_student_stats",
    )
    @role_required(Role.FACULTY)
    @api_errors("Failed to retrieve student attendance statistics")
    def faculty_attendance_student_stats(student_id: int):
        start_s = query_arg("startDate", "start")
        end_s = query_arg("endDate", "end")
        data = container.report_service.student_stats(
            university_id=current_user().university_id,
            student_id=student_id,
            start=parse_iso_date(start_s) if start_s else None,
            end=parse_iso_date(end_s) if end_s else None,
        )
        return ok(data, "Student attendance statistics retrieved")

    @app.route("/api/faculty/attendance/export", methods=["GET"], endpoint="faculty_attendance_export")
    @role_required(Role.FACULTY)
    @api_errors("Failed to export attendance report")
    def faculty_attendance_export():
        return _export()

    # ===== STUDENT =====

    @app.route("/api/student/attendance/stats", methods=["GET"], endpoint="student_attendance_stats")
    @role_required(Role.STUDENT)
    @api_errors("Failed to retrieve attendance statistics")
    def student_attendance_stats():
        data = container.report_service.student_stats(
            university_id=current_user().university_id,
            student_id=current_profile_id(),
        )
        return ok(data, "Attendance statistics retrieved")
