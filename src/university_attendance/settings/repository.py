from __future__ import annotations

from typing import Optional, Protocol

from .model import AttendanceSettings


class SettingsRepository(Protocol):
    def get(self, university_id: int) -> Optional[AttendanceSettings]:
        raise NotImplementedError

    def save(self, settings: AttendanceSettings) -> None:
        """Insert or replace the tenant's settings row."""

        raise NotImplementedError
