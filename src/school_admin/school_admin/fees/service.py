from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence
from uuid import uuid4

from ..common.datetime_utils import now_local
from ..core.enums import PaymentStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..profiles.access import SchoolAccessService
from .model import NewPayment, Payment, PaymentQuery
from .repository import PaymentRepository

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(self, access: SchoolAccessService, payments: PaymentRepository):
        self._access = access
        self._payments = payments

    def list_payments(self, query: PaymentQuery) -> Sequence[Payment]:
        self._access.require_school_access(user_id=query.user_id, school_id=query.school_id)
        if query.date_from and query.date_to and query.date_from > query.date_to:
            raise ValidationError("date_from must be on or before date_to")
        return self._payments.list_for_school(query)

    def record_payment(self, new_payment: NewPayment, *, now: Optional[datetime] = None) -> Payment:
        """Record a payment as pending; it only counts as paid once verified."""
        now = now or now_local()
        self._access.require_school_access(user_id=new_payment.user_id, school_id=new_payment.school_id)

        payment = Payment(
            id=str(uuid4()),
            school_id=new_payment.school_id,
            student_id=new_payment.student_id,
            amount=new_payment.amount,
            payment_method=new_payment.payment_method,
            payment_date=new_payment.payment_date or now.date(),
            status=PaymentStatus.PENDING,
            reference_number=new_payment.reference_number,
            notes=new_payment.notes,
            recorded_by=new_payment.user_id,
        )
        self._payments.create(payment)
        logger.info("Payment %s recorded: %s via %s", payment.id, payment.amount, payment.payment_method.value)
        return self._payments.get(payment.id) or payment

    def verify_payment(self, payment_id: str, *, verified_by: str, now: Optional[datetime] = None) -> Payment:
        if not payment_id or not verified_by:
            raise ValidationError("Payment ID and verified_by are required")
        now = now or now_local()

        payment = self._payments.get(payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        self._access.require_school_access(user_id=verified_by, school_id=payment.school_id)

        if payment.is_verified:
            raise ValidationError("Payment has already been verified")

        if not self._payments.mark_verified(payment.id, verified_by=verified_by, verified_at=now):
            raise NotFoundError("Payment not found")
        logger.info("Payment %s verified by %s", payment.id, verified_by)
        return self._payments.get(payment.id) or payment
