from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from .base import SelfMarkStrategy, StatusDecision


class LateStrategy(SelfMarkStrategy):
    """Arrival after slot start + grace."""

    def decide_self_mark(self, *, now: datetime, slot_start: Optional[datetime], grace_minutes: int) -> StatusDecision:
        if slot_start is None:
            return StatusDecision(status=AttendanceStatus.LATE, reason="Self-marked via QR")
        minutes = int((now - slot_start).total_seconds() // 60)
        return StatusDecision(
            status=AttendanceStatus.LATE,
            reason=f"Self-marked via QR {minutes} minutes after slot start",
        )
