from __future__ import annotations

from flask import Flask

from ..common.http import api_errors, json_body, ok
from ..container import Container
from ..core.enums import Role
from ..users.guards import current_user, role_required


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/attendance/settings", methods=["GET"], endpoint="admin_attendance_settings")
    @role_required(Role.ADMIN)
    @api_errors("Failed to retrieve attendance settings")
    def admin_attendance_settings():
        settings = container.settings_service.get(current_user().university_id)
        return ok(settings.to_dict(), "Attendance settings retrieved")

    @app.route("/api/admin/attendance/settings", methods=["PUT"], endpoint="admin_attendance_settings_update")
    @role_required(Role.ADMIN)
    @api_errors("Failed to update attendance settings")
    def admin_attendance_settings_update():
        user = current_user()
        settings = container.settings_service.update(
            current_role=user.role,
            university_id=user.university_id,
            changes=json_body(),
        )
        return ok(settings.to_dict(), "Attendance settings updated")
