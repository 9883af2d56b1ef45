from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.school_admin.school_admin.core.enums import PaymentMethod, PaymentStatus
from src.school_admin.school_admin.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.school_admin.school_admin.fees.model import NewPayment, PaymentQuery
from src.school_admin.school_admin.fees.service import PaymentService

SCHOOL_ID = "11111111-aaaa-4000-8000-000000000001"
LIBRARIAN_ID = "librarian-1"


@pytest.fixture
def service(access, payments) -> PaymentService:
    return PaymentService(access, payments)


@pytest.fixture
def pending(service, fixed_now):
    return service.record_payment(
        NewPayment.from_payload(
            {
                "school_id": SCHOOL_ID,
                "user_id": LIBRARIAN_ID,
                "student_id": "student-1",
                "amount": "120.5",
                "payment_method": "bank_transfer",
                "reference_number": "TRX-77",
            }
        ),
        now=fixed_now,
    )


def test_record_payment_is_pending(pending, fixed_now):
    assert pending.status == PaymentStatus.PENDING
    assert pending.amount == Decimal("120.50")
    assert pending.payment_method == PaymentMethod.BANK_TRANSFER
    assert pending.payment_date == fixed_now.date()
    assert pending.recorded_by == LIBRARIAN_ID
    assert not pending.is_verified


def test_verify_marks_paid_and_stamps_verifier(service, pending, fixed_now):
    verified = service.verify_payment(pending.id, verified_by=LIBRARIAN_ID, now=fixed_now)

    assert verified.status == PaymentStatus.PAID
    assert verified.verified_by == LIBRARIAN_ID
    assert verified.verified_at == fixed_now


def test_verify_requires_verifier(service, pending):
    with pytest.raises(ValidationError, match="verified_by are required"):
        service.verify_payment(pending.id, verified_by="")


def test_verify_unknown_payment(service):
    with pytest.raises(NotFoundError):
        service.verify_payment("missing", verified_by=LIBRARIAN_ID)


def test_verifier_from_other_school_forbidden(service, pending, payments):
    with pytest.raises(AuthorizationError):
        service.verify_payment(pending.id, verified_by="outsider-1")
    assert payments.by_id[pending.id].status == PaymentStatus.PENDING


def test_verify_twice_rejected(service, pending, fixed_now):
    service.verify_payment(pending.id, verified_by=LIBRARIAN_ID, now=fixed_now)
    with pytest.raises(ValidationError, match="already been verified"):
        service.verify_payment(pending.id, verified_by=LIBRARIAN_ID, now=fixed_now)


def test_list_payments_filters(service, pending, fixed_now):
    service.verify_payment(pending.id, verified_by=LIBRARIAN_ID, now=fixed_now)
    base = {"school_id": SCHOOL_ID, "user_id": LIBRARIAN_ID}

    assert len(service.list_payments(PaymentQuery.from_args({**base, "is_verified": "true"}))) == 1
    assert service.list_payments(PaymentQuery.from_args({**base, "is_verified": "false"})) == []
    assert service.list_payments(PaymentQuery.from_args({**base, "payment_method": "cash"})) == []
    assert len(service.list_payments(PaymentQuery.from_args({**base, "date_from": "2024-01-01"}))) == 1


def test_list_payments_rejects_inverted_range(service):
    query = PaymentQuery(
        school_id=SCHOOL_ID, user_id=LIBRARIAN_ID, date_from=date(2024, 2, 1), date_to=date(2024, 1, 1)
    )
    with pytest.raises(ValidationError):
        service.list_payments(query)


@pytest.mark.parametrize("amount", ["0", "-5", "abc"])
def test_payment_amount_must_be_positive(amount):
    with pytest.raises(ValidationError):
        NewPayment.from_payload(
            {"school_id": "s", "user_id": "u", "student_id": "st", "amount": amount, "payment_method": "cash"}
        )
