from __future__ import annotations

from typing import Any, Optional

from ..core.constants import MAX_SLOT_NUMBER, MIN_SLOT_NUMBER
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is required")
    if number <= 0:
        raise ValidationError(f"{field_name} is invalid")
    return number


def optional_positive_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return require_positive_int(value, field_name)


def require_percentage(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be between 0 and 100")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be between 0 and 100")
    if number < 0 or number > 100:
        raise ValidationError(f"{field_name} must be between 0 and 100")
    return number


def require_slot_number(value: Any) -> int:
    try:
        slot = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Slot number is required")
    if slot < MIN_SLOT_NUMBER or slot > MAX_SLOT_NUMBER:
        raise ValidationError(f"Slot number must be between {MIN_SLOT_NUMBER} and {MAX_SLOT_NUMBER}")
    return slot
