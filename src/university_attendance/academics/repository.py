from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AcademicClass, Student, Subject


class AcademicsRepository(Protocol):
    """Read-only access to the reference entities attendance logic needs.

    Every lookup is scoped by university; an id from another tenant is "not found".
    """

    def get_class(self, university_id: int, class_id: int) -> Optional[AcademicClass]:
        raise NotImplementedError

    def list_classes(self, university_id: int) -> Sequence[AcademicClass]:
        raise NotImplementedError

    def get_subject(self, university_id: int, subject_id: int) -> Optional[Subject]:
        raise NotImplementedError

    def list_subjects(self, university_id: int, *, class_id: Optional[int] = None) -> Sequence[Subject]:
        raise NotImplementedError

    def get_student(self, university_id: int, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def list_students(self, university_id: int, *, class_id: Optional[int] = None) -> Sequence[Student]:
        raise NotImplementedError
