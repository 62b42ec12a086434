from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Holiday:
    holiday_id: int
    university_id: int
    holiday_date: date
    reason: Optional[str] = None
