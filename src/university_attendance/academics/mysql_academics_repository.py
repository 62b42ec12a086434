from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AcademicClass, Student, Subject
from .repository import AcademicsRepository


def _to_class(r: dict) -> AcademicClass:
    return AcademicClass(
        class_id=int(r["class_id"]),
        university_id=int(r["university_id"]),
        name=r.get("name") or "",
        year=r.get("year"),
        semester=r.get("semester"),
        division=r.get("division"),
    )


def _to_subject(r: dict) -> Subject:
    return Subject(
        subject_id=int(r["subject_id"]),
        university_id=int(r["university_id"]),
        class_id=int(r["class_id"]) if r.get("class_id") is not None else None,
        name=r["name"],
        code=r["code"],
    )


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        university_id=int(r["university_id"]),
        class_id=int(r["class_id"]) if r.get("class_id") is not None else None,
        name=r["name"],
        register_number=r["register_number"],
        email=r.get("email"),
        phone=r.get("phone"),
    )


class MySQLAcademicsRepository(AcademicsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_class(self, university_id: int, class_id: int) -> Optional[AcademicClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_id, university_id, name, year, semester, division
                FROM classes
                WHERE university_id=%s AND class_id=%s
                """,
                (int(university_id), int(class_id)),
            )
            r = fetchone(cur)
            return _to_class(r) if r else None

    def list_classes(self, university_id: int) -> Sequence[AcademicClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_id, university_id, name, year, semester, division
                FROM classes
                WHERE university_id=%s
                ORDER BY year, semester, division, class_id
                """,
                (int(university_id),),
            )
            return [_to_class(r) for r in fetchall(cur)]

    def get_subject(self, university_id: int, subject_id: int) -> Optional[Subject]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT subject_id, university_id, class_id, name, code
                FROM subjects
                WHERE university_id=%s AND subject_id=%s
                """,
                (int(university_id), int(subject_id)),
            )
            r = fetchone(cur)
            return _to_subject(r) if r else None

    def list_subjects(self, university_id: int, *, class_id: Optional[int] = None) -> Sequence[Subject]:
        clauses = ["university_id=%s"]
        params: list[object] = [int(university_id)]
        if class_id is not None:
            clauses.append("class_id=%s")
            params.append(int(class_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT subject_id, university_id, class_id, name, code
                FROM subjects
                WHERE {" AND ".join(clauses)}
                ORDER BY code
                """,
                tuple(params),
            )
            return [_to_subject(r) for r in fetchall(cur)]

    def get_student(self, university_id: int, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT student_id, university_id, class_id, name, register_number, email, phone
                FROM students
                WHERE university_id=%s AND student_id=%s
                """,
                (int(university_id), int(student_id)),
            )
            r = fetchone(cur)
            return _to_student(r) if r else None

    def list_students(self, university_id: int, *, class_id: Optional[int] = None) -> Sequence[Student]:
        clauses = ["university_id=%s"]
        params: list[object] = [int(university_id)]
        if class_id is not None:
            clauses.append("class_id=%s")
            params.append(int(class_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT student_id, university_id, class_id, name, register_number, email, phone
                FROM students
                WHERE {" AND ".join(clauses)}
                ORDER BY name
                """,
                tuple(params),
            )
            return [_to_student(r) for r in fetchall(cur)]
