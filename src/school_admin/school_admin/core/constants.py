"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DAILY_FINE_RATE = Decimal("0.50")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

DEFAULT_MAX_DAYS_ALLOWED = 14
DEFAULT_STUDENT_MAX_BOOKS = 3
DEFAULT_MAX_BOOKS = 5
DEFAULT_MAX_RENEWALS = 2

MIN_PASSWORD_LENGTH = 6
CARD_NUMBER_PREFIX = "LIB"
EMPLOYEE_ID_PREFIX = "EMP"
