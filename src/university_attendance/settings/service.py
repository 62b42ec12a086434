from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping

from ..common.validators import require_percentage
from ..core.constants import MAX_GRACE_MINUTES
from ..core.enums import ReportingFrequency, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..reports.aggregation import CountingPolicy
from .model import AttendanceSettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

_BOOL_FIELDS = (
    "allow_excused_absences",
    "allow_self_marking",
    "enable_automated_reporting",
    "count_late_as_present",
    "count_excused_as_present",
)

# The dashboard posts camelCase keys.
_ALIASES = {
    "minAttendancePercentage": "min_attendance_percentage",
    "warnAtPercentage": "warn_at_percentage",
    "allowExcusedAbsences": "allow_excused_absences",
    "allowSelfMarking": "allow_self_marking",
    "graceTimeForLateMarkingMinutes": "grace_time_for_late_marking_minutes",
    "enableAutomatedReporting": "enable_automated_reporting",
    "reportingFrequency": "reporting_frequency",
    "countLateAsPresent": "count_late_as_present",
    "countExcusedAsPresent": "count_excused_as_present",
}


class SettingsService:
    """Resolves tenant settings, creating defaults lazily and caching per university."""

    def __init__(self, settings: SettingsRepository):
        self._settings = settings
        self._cache: dict[int, AttendanceSettings] = {}

    def get(self, university_id: int) -> AttendanceSettings:
        university_id = int(university_id)
        cached = self._cache.get(university_id)
        if cached is not None:
            return cached

        found = self._settings.get(university_id)
        if found is None:
            found = AttendanceSettings(university_id=university_id)
            self._settings.save(found)
            logger.info("Created default attendance settings for university %s", university_id)

        self._cache[university_id] = found
        return found

    def invalidate(self, university_id: int) -> None:
        self._cache.pop(int(university_id), None)

    def policy(self, university_id: int) -> CountingPolicy:
        return CountingPolicy.from_settings(self.get(university_id))

    def update(self, *, current_role: Role, university_id: int, changes: Mapping[str, Any]) -> AttendanceSettings:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can change attendance settings")

        current = self.get(university_id)
        updates = self._validate(changes)
        if not updates:
            return current

        updated = replace(current, **updates)
        self._settings.save(updated)
        self.invalidate(university_id)
        self._cache[int(university_id)] = updated
        logger.info("Updated attendance settings for university %s: %s", university_id, sorted(updates))
        return updated

    @staticmethod
    def _validate(changes: Mapping[str, Any]) -> dict[str, Any]:
        normalized = {_ALIASES.get(k, k): v for k, v in changes.items() if v is not None}
        updates: dict[str, Any] = {}

        if "min_attendance_percentage" in normalized:
            updates["min_attendance_percentage"] = require_percentage(
                normalized["min_attendance_percentage"], "Minimum attendance percentage"
            )
        if "warn_at_percentage" in normalized:
            updates["warn_at_percentage"] = require_percentage(normalized["warn_at_percentage"], "Warning percentage")

        if "grace_time_for_late_marking_minutes" in normalized:
            value = normalized["grace_time_for_late_marking_minutes"]
            try:
                grace = int(value)
            except (TypeError, ValueError, OverflowError):
                raise ValidationError(f"Grace period must be between 0 and {MAX_GRACE_MINUTES} minutes")
            whole = not isinstance(value, bool) and not (isinstance(value, float) and not value.is_integer())
            if not whole or grace < 0 or grace > MAX_GRACE_MINUTES:
                raise ValidationError(f"Grace period must be between 0 and {MAX_GRACE_MINUTES} minutes")
            updates["grace_time_for_late_marking_minutes"] = grace

        if "reporting_frequency" in normalized:
            try:
                updates["reporting_frequency"] = ReportingFrequency(str(normalized["reporting_frequency"]).lower())
            except ValueError:
                allowed = ", ".join(f.value for f in ReportingFrequency)
                raise ValidationError(f"Reporting frequency must be one of: {allowed}")

        for name in _BOOL_FIELDS:
            if name in normalized:
                if not isinstance(normalized[name], bool):
                    raise ValidationError(f"{name} must be true or false")
                updates[name] = normalized[name]

        return updates
