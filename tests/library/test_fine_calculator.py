from datetime import datetime
from decimal import Decimal

from src.school_admin.school_admin.common.datetime_utils import days_overdue
from src.school_admin.school_admin.library.calculator.daily_rate_calculator import DailyRateFineCalculator


def test_days_overdue_rounds_partial_days_up():
    due = datetime(2024, 1, 10, 12, 0)
    assert days_overdue(due, datetime(2024, 1, 10, 12, 0)) == 0
    assert days_overdue(due, datetime(2024, 1, 9, 8, 0)) == 0
    assert days_overdue(due, datetime(2024, 1, 10, 12, 1)) == 1
    assert days_overdue(due, datetime(2024, 1, 12, 12, 0)) == 2
    assert days_overdue(due, datetime(2024, 1, 12, 12, 30)) == 3


def test_daily_rate_calculator_default_rate():
    calc = DailyRateFineCalculator()
    assert calc.daily_rate == Decimal("0.50")
    assert calc.overdue_fine(due_date=datetime(2024, 1, 10), return_date=datetime(2024, 1, 13)) == Decimal("1.50")


def test_daily_rate_calculator_custom_rate_and_on_time():
    calc = DailyRateFineCalculator(Decimal("0.25"))
    assert calc.overdue_fine(due_date=datetime(2024, 1, 10), return_date=datetime(2024, 1, 14)) == Decimal("1.00")
    assert calc.overdue_fine(due_date=datetime(2024, 1, 10), return_date=datetime(2024, 1, 10)) == Decimal("0.00")
