from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Optional

from ..core.exceptions import ValidationError

SECONDS_PER_DAY = 24 * 60 * 60


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def optional_iso_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return parse_iso_date(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def days_overdue(due: datetime, returned: datetime) -> int:
    """Whole days a return is late, rounding any partial day up. Zero when on time."""
    if returned <= due:
        return 0
    return math.ceil((returned - due).total_seconds() / SECONDS_PER_DAY)
