from __future__ import annotations

from datetime import date
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchone
from .model import Holiday
from .repository import HolidayRepository


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_date(self, university_id: int, day: date) -> Optional[Holiday]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT holiday_id, university_id, holiday_date, reason
                FROM holidays
                WHERE university_id=%s AND holiday_date=%s
                """,
                (int(university_id), day),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Holiday(
                holiday_id=int(r["holiday_id"]),
                university_id=int(r["university_id"]),
                holiday_date=as_date(r["holiday_date"]),
                reason=r.get("reason"),
            )
