from __future__ import annotations

import calendar
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from typing import Optional

from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.exceptions import ValidationError

INVALID_DATE_MESSAGE = "Invalid date format. Use YYYY-MM-DD"


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError):
        raise ValidationError(INVALID_DATE_MESSAGE)


def resolve_date_range(
    start_s: Optional[str],
    end_s: Optional[str],
    *,
    today: date,
    default_days: int = DEFAULT_REPORT_DAYS,
) -> tuple[date, date]:
    """Inclusive report range; defaults to the last `default_days` days ending today."""
    end = parse_iso_date(end_s) if end_s else today
    start = parse_iso_date(start_s) if start_s else today - timedelta(days=default_days)
    if start > end:
        raise ValidationError("startDate must not be after endDate")
    return start, end


def month_range(year: int, month: int) -> tuple[date, date]:
    if not MINYEAR <= int(year) <= MAXYEAR:
        raise ValidationError(f"Year must be between {MINYEAR} and {MAXYEAR}")
    if not 1 <= int(month) <= 12:
        raise ValidationError("Month must be between 1 and 12")
    last_day = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last_day)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
