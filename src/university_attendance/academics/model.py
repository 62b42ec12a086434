from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AcademicClass:
    """A cohort of students (year / semester / division) that shares a timetable."""

    class_id: int
    university_id: int
    name: str
    year: Optional[int] = None
    semester: Optional[int] = None
    division: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return f"{self.year}-{self.division} (Sem {self.semester})"

    def summary(self) -> dict:
        return {"id": self.class_id, "name": self.display_name}


@dataclass(frozen=True)
class Subject:
    subject_id: int
    university_id: int
    class_id: Optional[int]
    name: str
    code: str

    def summary(self) -> dict:
        return {"id": self.subject_id, "name": self.name, "code": self.code}


@dataclass(frozen=True)
class Student:
    student_id: int
    university_id: int
    class_id: Optional[int]
    name: str
    register_number: str
    email: Optional[str] = None
    phone: Optional[str] = None

    def summary(self) -> dict:
        return {
            "id": self.student_id,
            "name": self.name,
            "register_number": self.register_number,
            "email": self.email,
        }
