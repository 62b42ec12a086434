from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.enums import AttendanceStatus
from ..settings.model import AttendanceSettings
from .strategies.base import MarkingStrategy, SelfMarkStrategy
from .strategies.excused_not_allowed_strategy import ExcusedNotAllowedStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on tenant rules."""

    def for_marking(self, *, requested: AttendanceStatus, settings: AttendanceSettings) -> MarkingStrategy:
        if requested == AttendanceStatus.EXCUSED and not settings.allow_excused_absences:
            return ExcusedNotAllowedStrategy()
        return NormalStrategy()

    def for_self_marking(self, *, now: datetime, slot_start: Optional[datetime], grace_minutes: int) -> SelfMarkStrategy:
        if slot_start is None:
            return NormalStrategy()

        if now <= slot_start + timedelta(minutes=grace_minutes):
            return NormalStrategy()
        return LateStrategy()
