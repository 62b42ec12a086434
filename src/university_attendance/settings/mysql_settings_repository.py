from __future__ import annotations

from typing import Optional

from ..core.enums import ReportingFrequency
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import AttendanceSettings
from .repository import SettingsRepository


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, university_id: int) -> Optional[AttendanceSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT university_id, min_attendance_percentage, warn_at_percentage,
                       allow_excused_absences, allow_self_marking, grace_time_for_late_marking_minutes,
                       enable_automated_reporting, reporting_frequency,
                       count_late_as_present, count_excused_as_present
                FROM attendance_settings
                WHERE university_id=%s
                """,
                (int(university_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceSettings(
                university_id=int(r["university_id"]),
                min_attendance_percentage=float(r["min_attendance_percentage"]),
                warn_at_percentage=float(r["warn_at_percentage"]),
                allow_excused_absences=bool(r["allow_excused_absences"]),
                allow_self_marking=bool(r["allow_self_marking"]),
                grace_time_for_late_marking_minutes=int(r["grace_time_for_late_marking_minutes"]),
                enable_automated_reporting=bool(r["enable_automated_reporting"]),
                reporting_frequency=ReportingFrequency(r["reporting_frequency"]),
                count_late_as_present=bool(r["count_late_as_present"]),
                count_excused_as_present=bool(r["count_excused_as_present"]),
            )

    def save(self, settings: AttendanceSettings) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_settings(
                    university_id, min_attendance_percentage, warn_at_percentage,
                    allow_excused_absences, allow_self_marking, grace_time_for_late_marking_minutes,
                    enable_automated_reporting, reporting_frequency,
                    count_late_as_present, count_excused_as_present
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    min_attendance_percentage=VALUES(min_attendance_percentage),
                    warn_at_percentage=VALUES(warn_at_percentage),
                    allow_excused_absences=VALUES(allow_excused_absences),
                    allow_self_marking=VALUES(allow_self_marking),
                    grace_time_for_late_marking_minutes=VALUES(grace_time_for_late_marking_minutes),
                    enable_automated_reporting=VALUES(enable_automated_reporting),
                    reporting_frequency=VALUES(reporting_frequency),
                    count_late_as_present=VALUES(count_late_as_present),
                    count_excused_as_present=VALUES(count_excused_as_present)
                """,
                (
                    int(settings.university_id),
                    settings.min_attendance_percentage,
                    settings.warn_at_percentage,
                    int(settings.allow_excused_absences),
                    int(settings.allow_self_marking),
                    int(settings.grace_time_for_late_marking_minutes),
                    int(settings.enable_automated_reporting),
                    settings.reporting_frequency.value,
                    int(settings.count_late_as_present),
                    int(settings.count_excused_as_present),
                ),
            )
