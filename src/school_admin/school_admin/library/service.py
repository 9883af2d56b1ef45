from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from ..common.datetime_utils import days_overdue, now_local
from ..common.pagination import Page
from ..common.serialization import format_money
from ..core.enums import CopyStatus, FineStatus, TransactionStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..profiles.access import SchoolAccessService
from .calculator.base import FineCalculator
from .calculator.daily_rate_calculator import DailyRateFineCalculator
from .commands import CheckoutCommand, RenewCommand, ReturnCommand, TransactionQuery
from .model import BorrowingTransaction, Fine, copy_status_after_return
from .repository import BookRepository, FineRepository, MemberRepository, TransactionRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    transaction: BorrowingTransaction
    message: str


@dataclass(frozen=True)
class ReturnResult:
    transaction: BorrowingTransaction
    fine_amount: Decimal
    message: str


@dataclass(frozen=True)
class RenewResult:
    transaction: BorrowingTransaction
    message: str
    new_due_date: datetime
    renewals_remaining: int


class CirculationService:
    """Checkout, return and renewal of book copies.

    Each operation is a short sequence of independent writes. Exclusion on a copy
    comes from the conditional updates in the repositories, not from this class:
    a checkout that loses the race for a copy deletes its own transaction row and
    fails with ConflictError.
    """

    def __init__(
        self,
        access: SchoolAccessService,
        members: MemberRepository,
        books: BookRepository,
        transactions: TransactionRepository,
        fines: FineRepository,
        *,
        fine_calculator: FineCalculator | None = None,
    ):
        self._access = access
        self._members = members
        self._books = books
        self._transactions = transactions
        self._fines = fines
        self._calculator = fine_calculator or DailyRateFineCalculator()

    def checkout(self, cmd: CheckoutCommand, *, now: Optional[datetime] = None) -> CheckoutResult:
        now = now or now_local()
        self._access.require_school_access(user_id=cmd.user_id, school_id=cmd.school_id)

        member = self._members.get_by_card_number(cmd.member_card_number, school_id=cmd.school_id)
        if not member:
            raise NotFoundError("Member not found")
        if not member.is_active:
            raise ValidationError(f"Member is not active (status: {member.status.value})")

        copy = self._books.get_copy_by_barcode(cmd.book_barcode, school_id=cmd.school_id)
        if not copy:
            raise NotFoundError("Book copy not found")
        if copy.status != CopyStatus.AVAILABLE:
            raise ValidationError("Book copy is not available")
        if copy.is_reference_only:
            raise ValidationError("This book is reference only and cannot be borrowed")

        active_loans = self._transactions.count_active_for_member(member.id)
        if active_loans >= member.max_books_allowed:
            raise ValidationError(f"Member has reached maximum borrowing limit of {member.max_books_allowed} books")

        unpaid = self._fines.total_unpaid_for_member(member.id)
        if unpaid > 0:
            raise ValidationError(
                f"Member has unpaid fines of {format_money(unpaid)}. Please clear fines before borrowing."
            )

        due_date = now + timedelta(days=cmd.due_days or member.max_days_allowed)
        txn = BorrowingTransaction(
            id=str(uuid4()),
            school_id=cmd.school_id,
            member_id=member.id,
            book_copy_id=copy.id,
            checkout_date=now,
            due_date=due_date,
            status=TransactionStatus.ACTIVE,
            notes=cmd.notes,
            checked_out_by=cmd.user_id,
        )
        self._transactions.create(txn)

        try:
            claimed = self._books.mark_copy_checked_out(copy.id)
        except Exception:
            logger.error("Copy %s could not be marked checked out; discarding transaction %s", copy.id, txn.id)
            self._discard_transaction(txn.id)
            raise
        if not claimed:
            self._discard_transaction(txn.id)
            raise ConflictError("Book copy is no longer available")

        try:
            self._members.increment_books_borrowed(member.id)
        except Exception:
            logger.exception("Borrow counter not incremented for member %s", member.id)

        stored = self._transactions.get(txn.id, school_id=cmd.school_id) or txn
        logger.info("Checkout %s: copy=%s member=%s due=%s", txn.id, copy.barcode, member.library_card_number, due_date)
        return CheckoutResult(
            transaction=stored,
            message=f'Book "{copy.title}" checked out to {member.name}. Due: {due_date:%Y-%m-%d}',
        )

    def return_book(self, cmd: ReturnCommand, *, now: Optional[datetime] = None) -> ReturnResult:
        now = now or now_local()
        self._access.require_school_access(user_id=cmd.user_id, school_id=cmd.school_id)

        txn = self._transactions.get(cmd.transaction_id, school_id=cmd.school_id)
        if not txn:
            raise NotFoundError("Transaction not found")
        if not txn.is_active:
            raise ValidationError("Book has already been returned")

        fine_amount = self._calculator.overdue_fine(due_date=txn.due_date, return_date=now)

        returned = self._transactions.mark_returned(
            txn.id,
            return_date=now,
            condition=cmd.condition,
            notes=cmd.notes,
            fine_amount=fine_amount,
            returned_by=cmd.user_id,
        )
        if not returned:
            raise ConflictError("Book has already been returned")

        # loan is closed at this point; the fine is recorded either way
        try:
            self._books.update_copy_after_return(
                txn.book_copy_id,
                status=copy_status_after_return(cmd.condition),
                condition=cmd.condition,
            )
        except Exception:
            logger.exception("Copy %s not updated after return of %s", txn.book_copy_id, txn.id)

        if fine_amount > 0:
            self._record_overdue_fine(txn, fine_amount, created_by=cmd.user_id, now=now)

        title = txn.book_title or "Book"
        message = f'Book "{title}" returned successfully'
        if fine_amount > 0:
            message += f". Fine of {format_money(fine_amount)} applied for overdue return."

        stored = self._transactions.get(txn.id, school_id=cmd.school_id) or txn
        logger.info("Return %s: fine=%s condition=%s", txn.id, fine_amount, cmd.condition.value)
        return ReturnResult(transaction=stored, fine_amount=fine_amount, message=message)

    def renew(self, cmd: RenewCommand, *, now: Optional[datetime] = None) -> RenewResult:
        now = now or now_local()
        self._access.require_school_access(user_id=cmd.user_id, school_id=cmd.school_id)

        txn = self._transactions.get(cmd.transaction_id, school_id=cmd.school_id)
        if not txn or not txn.is_active:
            raise NotFoundError("Transaction not found or not active")

        member = self._members.get_by_id(txn.member_id, school_id=cmd.school_id)
        if not member:
            raise NotFoundError("Member not found")
        if not member.can_renew:
            raise ValidationError("Member is not allowed to renew books")

        copy = self._books.get_copy(txn.book_copy_id)
        if copy and copy.is_reference_only:
            raise ValidationError("Reference books cannot be renewed")

        if txn.renewal_count >= member.max_renewals:
            raise ValidationError(f"Maximum renewals ({member.max_renewals}) reached for this book")
        if member.current_fines > 0:
            raise ValidationError(
                f"Cannot renew book. Member has unpaid fines of {format_money(member.current_fines)}"
            )

        new_due_date = txn.due_date + timedelta(days=cmd.renewal_days or member.max_days_allowed)
        renewed = self._transactions.renew(
            txn.id,
            new_due_date=new_due_date,
            expected_renewal_count=txn.renewal_count,
            renewed_by=cmd.user_id,
            renewed_at=now,
        )
        if not renewed:
            raise ConflictError("Transaction changed while renewing; please retry")

        stored = self._transactions.get(txn.id, school_id=cmd.school_id) or txn
        title = txn.book_title or (copy.title if copy else "Book")
        return RenewResult(
            transaction=stored,
            message=f'Book "{title}" renewed successfully. New due date: {new_due_date:%Y-%m-%d}',
            new_due_date=new_due_date,
            renewals_remaining=member.max_renewals - (txn.renewal_count + 1),
        )

    def list_transactions(self, query: TransactionQuery, *, now: Optional[datetime] = None) -> Page[BorrowingTransaction]:
        self._access.require_school_access(user_id=query.user_id, school_id=query.school_id)
        return self._transactions.list_page(
            school_id=query.school_id,
            page=query.page,
            search=query.search,
            status=query.status,
            now=now or now_local(),
        )

    def _record_overdue_fine(self, txn: BorrowingTransaction, amount: Decimal, *, created_by: str, now: datetime) -> None:
        # The return already happened; a missing Fine row is logged, not raised.
        days = days_overdue(txn.due_date, now)
        fine = Fine(
            id=str(uuid4()),
            school_id=txn.school_id,
            member_id=txn.member_id,
            transaction_id=txn.id,
            amount=amount,
            reason="overdue",
            description=f'Overdue fine for "{txn.book_title or "book"}" ({days} day(s) late)',
            status=FineStatus.UNPAID,
            created_by=created_by,
        )
        try:
            self._fines.create(fine)
        except Exception:
            logger.exception("Fine for transaction %s (%s) could not be recorded", txn.id, amount)
            return

        try:
            self._members.add_current_fines(txn.member_id, amount)
        except Exception:
            logger.exception("current_fines not updated for member %s after fine %s", txn.member_id, fine.id)

    def _discard_transaction(self, transaction_id: str) -> None:
        try:
            if not self._transactions.delete_active(transaction_id):
                logger.warning("Compensating delete found no active transaction %s", transaction_id)
        except Exception:
            logger.exception("Compensating delete of transaction %s failed; row may be orphaned", transaction_id)
