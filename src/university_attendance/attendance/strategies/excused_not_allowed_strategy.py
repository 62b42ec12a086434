from __future__ import annotations

from typing import Optional

from ...core.enums import AttendanceStatus
from .base import MarkingStrategy, StatusDecision


class ExcusedNotAllowedStrategy(MarkingStrategy):
    """Tenant disallows excused absences: an EXCUSED mark is stored as ABSENT."""

    def decide_mark(self, *, requested: AttendanceStatus, reason: Optional[str]) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ABSENT, reason=reason)
