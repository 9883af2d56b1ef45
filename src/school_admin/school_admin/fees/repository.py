from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Payment, PaymentQuery


class PaymentRepository(Protocol):
    def create(self, payment: Payment) -> None:
        raise NotImplementedError

    def get(self, payment_id: str) -> Optional[Payment]:
        raise NotImplementedError

    def list_for_school(self, query: PaymentQuery) -> Sequence[Payment]:
        raise NotImplementedError

    def mark_verified(self, payment_id: str, *, verified_by: str, verified_at: datetime) -> bool:
        raise NotImplementedError
