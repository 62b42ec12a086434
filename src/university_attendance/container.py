from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .academics.mysql_academics_repository import MySQLAcademicsRepository
from .academics.repository import AcademicsRepository
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.qr import SlotTokenCodec
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_SLOT_TOKEN_MAX_AGE_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .holidays.mysql_holiday_repository import MySQLHolidayRepository
from .holidays.repository import HolidayRepository
from .reports.service import ReportService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    academics_repo: AcademicsRepository
    holidays_repo: HolidayRepository
    settings_repo: SettingsRepository
    attendance_repo: AttendanceRepository

    token_codec: SlotTokenCodec

    auth_service: AuthService
    settings_service: SettingsService
    attendance_service: AttendanceService
    report_service: ReportService


def wire(
    *,
    users_repo: UserRepository,
    academics_repo: AcademicsRepository,
    holidays_repo: HolidayRepository,
    settings_repo: SettingsRepository,
    attendance_repo: AttendanceRepository,
    secret_key: str,
    token_max_age: int = DEFAULT_SLOT_TOKEN_MAX_AGE_SECONDS,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build services on top of any repository implementations (MySQL or in-memory)."""
    token_codec = SlotTokenCodec(secret_key, max_age_seconds=token_max_age)

    auth_service = AuthService(users_repo)
    settings_service = SettingsService(settings_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        academics_repo,
        holidays_repo,
        settings_service,
        token_codec=token_codec,
        strategy_factory=AttendanceStrategyFactory(),
    )
    report_service = ReportService(attendance_repo, academics_repo, settings_service)

    return Container(
        conn=conn,
        users_repo=users_repo,
        academics_repo=academics_repo,
        holidays_repo=holidays_repo,
        settings_repo=settings_repo,
        attendance_repo=attendance_repo,
        token_codec=token_codec,
        auth_service=auth_service,
        settings_service=settings_service,
        attendance_service=attendance_service,
        report_service=report_service,
    )


def build_container(
    *,
    db_config: dict,
    secret_key: str,
    token_max_age: int = DEFAULT_SLOT_TOKEN_MAX_AGE_SECONDS,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire(
        users_repo=MySQLUserRepository(conn),
        academics_repo=MySQLAcademicsRepository(conn),
        holidays_repo=MySQLHolidayRepository(conn),
        settings_repo=MySQLSettingsRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        secret_key=secret_key,
        token_max_age=token_max_age,
        conn=conn,
    )
