"""Folding attendance records into counts and percentages.

Every report (admin class summaries, faculty class stats, student self stats,
low-attendance finders) goes through `StatusCounts` so the counting rules
live in exactly one place.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Iterable, List, Protocol, TypeVar

from ..core.enums import AttendanceStanding, AttendanceStatus
from ..settings.model import AttendanceSettings

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")


class HasStatus(Protocol):
    status: AttendanceStatus


@dataclass(frozen=True)
class CountingPolicy:
    """Which statuses count toward "attended" for percentage purposes."""

    count_late_as_present: bool = True
    count_excused_as_present: bool = True

    @classmethod
    def from_settings(cls, settings: AttendanceSettings) -> "CountingPolicy":
        return cls(
            count_late_as_present=settings.count_late_as_present,
            count_excused_as_present=settings.count_excused_as_present,
        )


DEFAULT_POLICY = CountingPolicy()


@dataclass
class StatusCounts:
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0

    def add(self, status: AttendanceStatus) -> None:
        if status == AttendanceStatus.PRESENT:
            self.present += 1
        elif status == AttendanceStatus.ABSENT:
            self.absent += 1
        elif status == AttendanceStatus.LATE:
            self.late += 1
        elif status == AttendanceStatus.EXCUSED:
            self.excused += 1
        else:
            raise ValueError(f"Unknown attendance status: {status!r}")

    def __add__(self, other: "StatusCounts") -> "StatusCounts":
        return StatusCounts(
            present=self.present + other.present,
            absent=self.absent + other.absent,
            late=self.late + other.late,
            excused=self.excused + other.excused,
        )

    @property
    def total(self) -> int:
        return self.present + self.absent + self.late + self.excused

    def attended(self, policy: CountingPolicy = DEFAULT_POLICY) -> int:
        attended = self.present
        if policy.count_late_as_present:
            attended += self.late
        if policy.count_excused_as_present:
            attended += self.excused
        return attended

    def percentage(self, policy: CountingPolicy = DEFAULT_POLICY) -> float:
        if self.total == 0:
            return 0.0
        return self.attended(policy) / self.total * 100

    def as_dict(self, policy: CountingPolicy = DEFAULT_POLICY) -> dict:
        return {
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "excused": self.excused,
            "total_classes": self.total,
            "total_present": self.attended(policy),
            "percentage": round_percentage(self.percentage(policy)),
        }


def tally(records: Iterable[HasStatus]) -> StatusCounts:
    counts = StatusCounts()
    for r in records:
        counts.add(r.status)
    return counts


def group_counts(records: Iterable[HasStatus], key: Callable[[HasStatus], K]) -> Dict[K, StatusCounts]:
    """Counts per key; dict order follows first appearance in `records`."""
    grouped: Dict[K, StatusCounts] = {}
    for r in records:
        k = key(r)
        if k not in grouped:
            grouped[k] = StatusCounts()
        grouped[k].add(r.status)
    return grouped


def group_records(records: Iterable[R], key: Callable[[R], K]) -> Dict[K, List[R]]:
    grouped: Dict[K, List[R]] = {}
    for r in records:
        grouped.setdefault(key(r), []).append(r)
    return grouped


def max_consecutive_absences(records: Iterable) -> int:
    """Longest run of ABSENT records in (date, slot) order."""
    ordered = sorted(records, key=lambda r: (r.attendance_date, r.slot_number))
    longest = current = 0
    for r in ordered:
        if r.status == AttendanceStatus.ABSENT:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


def round_percentage(value: float) -> float:
    return round(float(value), 2)


def classify(percentage: float, settings: AttendanceSettings) -> AttendanceStanding:
    if percentage < settings.min_attendance_percentage:
        return AttendanceStanding.BELOW_MINIMUM
    if percentage < settings.warn_at_percentage:
        return AttendanceStanding.WARNING
    return AttendanceStanding.OK
