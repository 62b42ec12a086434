from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from ..academics.model import AcademicClass, Student
from ..academics.repository import AcademicsRepository
from ..attendance.model import AttendanceRecord, RecordQuery
from ..attendance.repository import AttendanceRepository
from ..common.validators import require_positive_int
from ..core.constants import INACTIVE_LOOKBACK_DAYS
from ..core.exceptions import NotFoundError, ValidationError
from ..settings.service import SettingsService
from .aggregation import (
    CountingPolicy,
    classify,
    group_records,
    max_consecutive_absences,
    round_percentage,
    tally,
)


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


def _date_range(start: Optional[date], end: Optional[date]) -> Optional[dict]:
    if start is None and end is None:
        return None
    return {
        "start": start.strftime("%Y-%m-%d") if start else None,
        "end": end.strftime("%Y-%m-%d") if end else None,
    }


def _subject_ref(r: AttendanceRecord) -> dict:
    return {"id": r.subject_id, "name": r.subject_name, "code": r.subject_code}


def _subject_breakdown(records: list[AttendanceRecord], policy: CountingPolicy, *, with_last: bool = False) -> list[dict]:
    """Per-subject counts sorted by percentage ascending."""
    scored = []
    for rows in group_records(records, key=lambda r: r.subject_id).values():
        counts = tally(rows)
        entry = {"subject": _subject_ref(rows[0]), **counts.as_dict(policy)}
        if with_last:
            entry["last_attendance"] = max(r.attendance_date for r in rows).strftime("%Y-%m-%d")
        scored.append((counts.percentage(policy), entry))
    scored.sort(key=lambda x: x[0])
    return [entry for _, entry in scored]


class ReportService:
    """Read-side attendance reports.

    Every report follows the same steps: resolve tenant settings, fetch records,
    fold them with `aggregation`, then filter by thresholds.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        academics: AcademicsRepository,
        settings: SettingsService,
    ):
        self._attendance = attendance
        self._academics = academics
        self._settings = settings

    def _require_class(self, university_id: int, class_id: int) -> AcademicClass:
        cls = self._academics.get_class(university_id, class_id)
        if not cls:
            raise NotFoundError("Class not found")
        return cls

    def _require_student(self, university_id: int, student_id: int) -> Student:
        student = self._academics.get_student(university_id, student_id)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def class_reports(
        self,
        *,
        university_id: int,
        start: date,
        end: date,
        class_id: Optional[int] = None,
    ) -> dict:
        """Admin overview: one summary per class that has records in range."""
        policy = self._settings.policy(university_id)
        if class_id is not None:
            classes = {class_id: self._require_class(university_id, class_id)}
        else:
            classes = {c.class_id: c for c in self._academics.list_classes(university_id)}

        records = self._attendance.find(
            RecordQuery(university_id=university_id, class_id=class_id, start=start, end=end)
        )

        summaries = []
        for cid, rows in group_records(records, key=lambda r: r.class_id).items():
            cls = classes.get(cid)
            counts = tally(rows)
            subjects = []
            for subject_rows in group_records(rows, key=lambda r: r.subject_id).values():
                subjects.append({**_subject_ref(subject_rows[0]), **tally(subject_rows).as_dict(policy)})

            summaries.append(
                {
                    "id": cid,
                    "name": cls.display_name if cls else rows[0].class_name,
                    "year": cls.year if cls else None,
                    "semester": cls.semester if cls else None,
                    "division": cls.division if cls else None,
                    "total_students": len({r.student_id for r in rows}),
                    "total_classes": counts.total,
                    "total_present": counts.attended(policy),
                    "attendance_rate": round_percentage(counts.percentage(policy)),
                    "subjects": subjects,
                }
            )

        return {"date_range": _date_range(start, end), "classes": summaries}

    def class_stats(
        self,
        *,
        university_id: int,
        class_id: int,
        start: date,
        end: date,
        subject_id: Optional[int] = None,
    ) -> dict:
        cls = self._require_class(university_id, class_id)
        subject = None
        if subject_id is not None:
            subject = self._academics.get_subject(university_id, subject_id)
            if not subject:
                raise NotFoundError("Subject not found")

        settings = self._settings.get(university_id)
        policy = CountingPolicy.from_settings(settings)

        records = self._attendance.find(
            RecordQuery(university_id=university_id, class_id=class_id, subject_id=subject_id, start=start, end=end)
        )
        by_student = group_records(records, key=lambda r: r.student_id)

        scored = []
        for student in self._academics.list_students(university_id, class_id=class_id):
            rows = by_student.get(student.student_id)
            if not rows:
                continue
            counts = tally(rows)
            pct = counts.percentage(policy)
            scored.append(
                (
                    pct,
                    {
                        "student": student.summary(),
                        **counts.as_dict(policy),
                        "standing": classify(pct, settings).value,
                    },
                )
            )

        scored.sort(key=lambda x: x[0])
        rates = [pct for pct, _ in scored]
        at_risk = sum(1 for pct in rates if pct < settings.min_attendance_percentage)
        average = round_percentage(sum(rates) / len(rates)) if rates else 0.0

        return {
            "class": cls.summary(),
            "subject": subject.summary() if subject else None,
            "date_range": _date_range(start, end),
            "min_attendance_required": settings.min_attendance_percentage,
            "students_at_risk": at_risk,
            "overall_stats": {
                "total_records": len(records),
                **tally(records).as_dict(policy),
                "average_attendance": average,
            },
            "students": [entry for _, entry in scored],
        }

    def student_stats(
        self,
        *,
        university_id: int,
        student_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> dict:
        if start and end and start > end:
            raise ValidationError("startDate must not be after endDate")
        student = self._require_student(university_id, student_id)
        settings = self._settings.get(university_id)
        policy = CountingPolicy.from_settings(settings)

        records = self._attendance.find(
            RecordQuery(university_id=university_id, student_id=student_id, start=start, end=end)
        )

        subject_stats = _subject_breakdown(list(records), policy)

        # Flags use the unrounded percentage.
        by_subject = group_records(records, key=lambda r: r.subject_id)
        for entry in subject_stats:
            pct = tally(by_subject[entry["subject"]["id"]]).percentage(policy)
            entry["is_below_threshold"] = pct < settings.min_attendance_percentage
            entry["standing"] = classify(pct, settings).value

        overall = tally(records)
        overall_pct = overall.percentage(policy)

        return {
            "student": student.summary(),
            "date_range": _date_range(start, end),
            "min_attendance_required": settings.min_attendance_percentage,
            "warn_at_percentage": settings.warn_at_percentage,
            "overall_stats": {
                **overall.as_dict(policy),
                "is_below_threshold": overall.total > 0 and overall_pct < settings.min_attendance_percentage,
                "standing": classify(overall_pct, settings).value if overall.total else None,
            },
            "subject_stats": subject_stats,
        }

    def low_attendance_students(
        self,
        *,
        university_id: int,
        threshold: Optional[float] = None,
        class_id: Optional[int] = None,
    ) -> dict:
        """Students whose overall percentage is strictly below `threshold` (tenant minimum by default)."""
        settings = self._settings.get(university_id)
        policy = CountingPolicy.from_settings(settings)
        limit = settings.min_attendance_percentage if threshold is None else float(threshold)

        if class_id is not None:
            classes = [self._require_class(university_id, class_id)]
        else:
            classes = list(self._academics.list_classes(university_id))

        records = self._attendance.find(RecordQuery(university_id=university_id, class_id=class_id))
        grouped = group_records(records, key=lambda r: (r.class_id, r.student_id))
        students_by_class = group_records(
            self._academics.list_students(university_id, class_id=class_id),
            key=lambda s: s.class_id,
        )

        flagged = []
        for cls in classes:
            for student in students_by_class.get(cls.class_id, []):
                rows = grouped.get((cls.class_id, student.student_id))
                if not rows:
                    continue
                counts = tally(rows)
                pct = counts.percentage(policy)
                if pct >= limit:
                    continue
                flagged.append(
                    (
                        pct,
                        {
                            "student": student.summary(),
                            "class": cls.summary(),
                            "overall_attendance": counts.as_dict(policy),
                            "standing": classify(pct, settings).value,
                            "subject_attendance": _subject_breakdown(rows, policy),
                        },
                    )
                )

        flagged.sort(key=lambda x: x[0])
        return {"threshold": limit, "students": [entry for _, entry in flagged]}

    def absentees(
        self,
        *,
        university_id: int,
        class_id: int,
        threshold: Optional[float] = None,
        subject_id: Optional[int] = None,
    ) -> dict:
        """Low-attendance students of one class across all recorded dates."""
        cls = self._require_class(university_id, class_id)
        settings = self._settings.get(university_id)
        policy = CountingPolicy.from_settings(settings)
        limit = settings.min_attendance_percentage if threshold is None else float(threshold)

        students = list(self._academics.list_students(university_id, class_id=class_id))
        records = self._attendance.find(
            RecordQuery(university_id=university_id, class_id=class_id, subject_id=subject_id)
        )
        by_student = group_records(records, key=lambda r: r.student_id)

        flagged = []
        for student in students:
            rows = by_student.get(student.student_id)
            if not rows:
                continue
            counts = tally(rows)
            pct = counts.percentage(policy)
            if pct >= limit:
                continue
            flagged.append(
                (
                    pct,
                    {
                        "student": student.summary(),
                        "overall_attendance": round_percentage(pct),
                        "consecutive_absences": max_consecutive_absences(rows),
                        "subject_attendance": _subject_breakdown(rows, policy, with_last=True),
                    },
                )
            )

        flagged.sort(key=lambda x: x[0])
        return {
            "class": cls.summary(),
            "subject_id": subject_id,
            "threshold": limit,
            "students_at_risk": len(flagged),
            "total_students": len(students),
            "students": [entry for _, entry in flagged],
        }

    def inactive_students(
        self,
        *,
        university_id: int,
        class_id: int,
        today: date,
        days: int = INACTIVE_LOOKBACK_DAYS,
    ) -> dict:
        """Students of a class with no record at all in the last `days` days."""
        cls = self._require_class(university_id, class_id)
        days = require_positive_int(days, "days")
        since = today - timedelta(days=days)

        records = self._attendance.find(RecordQuery(university_id=university_id, class_id=class_id, end=today))
        last_seen: dict[int, date] = {}
        for r in records:
            if r.student_id not in last_seen or r.attendance_date > last_seen[r.student_id]:
                last_seen[r.student_id] = r.attendance_date

        inactive = []
        for student in self._academics.list_students(university_id, class_id=class_id):
            last = last_seen.get(student.student_id)
            if last is not None and last >= since:
                continue
            inactive.append(
                {
                    **student.summary(),
                    "phone": student.phone,
                    "last_attendance": last.strftime("%Y-%m-%d") if last else None,
                }
            )

        return {
            "class": cls.summary(),
            "days": days,
            "since": since.strftime("%Y-%m-%d"),
            "students": inactive,
        }

    def export_rows(
        self,
        *,
        university_id: int,
        start: date,
        end: date,
        class_id: Optional[int] = None,
        subject_id: Optional[int] = None,
    ) -> ReportData:
        """Flat rows for CSV export plus a per-student summary."""
        if class_id is not None:
            self._require_class(university_id, class_id)
        policy = self._settings.policy(university_id)

        records = self._attendance.find(
            RecordQuery(university_id=university_id, class_id=class_id, subject_id=subject_id, start=start, end=end)
        )

        rows = [
            {
                "date": r.attendance_date.strftime("%Y-%m-%d"),
                "slot_number": r.slot_number,
                "class_name": r.class_name or "-",
                "subject_code": r.subject_code or "-",
                "subject_name": r.subject_name or "-",
                "register_number": r.register_number or "-",
                "student_name": r.student_name or "-",
                "status": r.status.value,
                "reason": r.reason or "",
                "faculty_name": r.faculty_name or "-",
            }
            for r in records
        ]

        summary = []
        for student_id, student_rows in group_records(records, key=lambda r: r.student_id).items():
            first = student_rows[0]
            summary.append(
                {
                    "student_id": student_id,
                    "student_name": first.student_name,
                    "register_number": first.register_number,
                    **tally(student_rows).as_dict(policy),
                }
            )
        summary.sort(key=lambda x: x["percentage"])
        return ReportData(rows=rows, summary=summary)
