from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_date, db_cursor, fetchall, fetchone
from .model import AttendanceRecord, RecordQuery
from .repository import AttendanceRepository

_SELECT = """
    SELECT
        ar.record_id, ar.university_id, ar.class_id, ar.subject_id, ar.student_id, ar.faculty_id,
        ar.attendance_date, ar.slot_number, ar.status, ar.reason,
        st.name AS student_name, st.register_number,
        sb.name AS subject_name, sb.code AS subject_code,
        f.name AS faculty_name,
        c.name AS class_name
    FROM attendance_records ar
    LEFT JOIN students st ON st.student_id = ar.student_id
    LEFT JOIN subjects sb ON sb.subject_id = ar.subject_id
    LEFT JOIN faculty f ON f.faculty_id = ar.faculty_id
    LEFT JOIN classes c ON c.class_id = ar.class_id
"""


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        university_id=int(r["university_id"]),
        class_id=int(r["class_id"]),
        subject_id=int(r["subject_id"]),
        student_id=int(r["student_id"]),
        faculty_id=int(r["faculty_id"]),
        attendance_date=as_date(r["attendance_date"]),
        slot_number=int(r["slot_number"]),
        status=AttendanceStatus(r["status"]),
        reason=r.get("reason"),
        student_name=r.get("student_name"),
        register_number=r.get("register_number"),
        subject_name=r.get("subject_name"),
        subject_code=r.get("subject_code"),
        faculty_name=r.get("faculty_name"),
        class_name=r.get("class_name"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        key = (int(class_id), int(subject_id), attendance_date, int(slot_number), int(student_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(
                    university_id, class_id, subject_id, attendance_date, slot_number, student_id,
                    faculty_id, status, reason
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    faculty_id=VALUES(faculty_id), status=VALUES(status), reason=VALUES(reason)
                """,
                (int(university_id), *key, int(faculty_id), status.value, reason),
            )

            # If it was an update, lastrowid can be 0; fetch record_id.
            if cur.lastrowid:
                return int(cur.lastrowid)

            cur.execute(
                """
                SELECT record_id FROM attendance_records
                WHERE class_id=%s AND subject_id=%s AND attendance_date=%s AND slot_number=%s AND student_id=%s
                """,
                key,
            )
            r = fetchone(cur)
            return int(r["record_id"]) if r else 0

    def get_for_slot(
        self,
        *,
        class_id: int,
        subject_id: int,
        attendance_date: date,
        slot_number: int,
        student_id: int,
    ) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE ar.class_id=%s AND ar.subject_id=%s AND ar.attendance_date=%s
                  AND ar.slot_number=%s AND ar.student_id=%s
                """,
                (int(class_id), int(subject_id), attendance_date, int(slot_number), int(student_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def find(self, query: RecordQuery) -> Sequence[AttendanceRecord]:
        clauses = ["ar.university_id=%s"]
        params: list[object] = [int(query.university_id)]

        if query.class_id is not None:
            clauses.append("ar.class_id=%s")
            params.append(int(query.class_id))
        if query.subject_id is not None:
            clauses.append("ar.subject_id=%s")
            params.append(int(query.subject_id))
        if query.student_id is not None:
            clauses.append("ar.student_id=%s")
            params.append(int(query.student_id))
        if query.start is not None:
            clauses.append("ar.attendance_date >= %s")
            params.append(query.start)
        if query.end is not None:
            clauses.append("ar.attendance_date <= %s")
            params.append(query.end)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + f"""
                WHERE {where}
                ORDER BY ar.attendance_date ASC, ar.slot_number ASC, st.name ASC
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
