from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from .base import MarkingStrategy, SelfMarkStrategy, StatusDecision


class NormalStrategy(MarkingStrategy, SelfMarkStrategy):
    """Keep the requested status; self-marking on time is PRESENT."""

    def decide_mark(self, *, requested: AttendanceStatus, reason: Optional[str]) -> StatusDecision:
        return StatusDecision(status=requested, reason=reason)

    def decide_self_mark(self, *, now: datetime, slot_start: Optional[datetime], grace_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT, reason="Self-marked via QR")
