from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    reason: Optional[str] = None


class MarkingStrategy(ABC):
    """Strategy Pattern: status stored when faculty marks a student."""

    @abstractmethod
    def decide_mark(self, *, requested: AttendanceStatus, reason: Optional[str]) -> StatusDecision:
        raise NotImplementedError


class SelfMarkStrategy(ABC):
    """Strategy Pattern: status stored when a student marks themselves from a slot QR code."""

    @abstractmethod
    def decide_self_mark(self, *, now: datetime, slot_start: Optional[datetime], grace_minutes: int) -> StatusDecision:
        raise NotImplementedError
