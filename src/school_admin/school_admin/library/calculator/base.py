from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal


class FineCalculator(ABC):
    """Calculator interface (Strategy Pattern for overdue fines)."""

    @abstractmethod
    def overdue_fine(self, *, due_date: datetime, return_date: datetime) -> Decimal:
        raise NotImplementedError
