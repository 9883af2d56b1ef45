from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ...common.datetime_utils import days_overdue
from ...core.constants import DAILY_FINE_RATE
from .base import FineCalculator


class DailyRateFineCalculator(FineCalculator):
    """Standard rule: ceil(days late) x daily rate, zero when returned on or before the due date."""

    def __init__(self, daily_rate: Decimal = DAILY_FINE_RATE):
        self._daily_rate = Decimal(str(daily_rate))

    @property
    def daily_rate(self) -> Decimal:
        return self._daily_rate

    def overdue_fine(self, *, due_date: datetime, return_date: datetime) -> Decimal:
        days = days_overdue(due_date, return_date)
        return (self._daily_rate * days).quantize(Decimal("0.01"))
