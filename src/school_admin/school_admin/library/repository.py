from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import CopyCondition, CopyStatus, FineStatus, MemberStatus, MemberType
from .model import Book, BookCopy, BorrowingTransaction, Fine, LibraryMember


class MemberRepository(Protocol):
    def get_by_id(self, member_id: str, *, school_id: str) -> Optional[LibraryMember]:
        raise NotImplementedError

    def get_by_card_number(self, card_number: str, *, school_id: str) -> Optional[LibraryMember]:
        raise NotImplementedError

    def get_by_profile(self, profile_id: str, *, school_id: str) -> Optional[LibraryMember]:
        raise NotImplementedError

    def list_page(
        self,
        *,
        school_id: str,
        page: PageRequest,
        search: str = "",
        member_type: Optional[MemberType] = None,
        status: Optional[MemberStatus] = None,
    ) -> Page[LibraryMember]:
        raise NotImplementedError

    def create(self, member: LibraryMember) -> None:
        raise NotImplementedError

    def update(self, member_id: str, *, school_id: str, changes: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def increment_books_borrowed(self, member_id: str) -> None:
        raise NotImplementedError

    def add_current_fines(self, member_id: str, amount: Decimal) -> None:
        raise NotImplementedError

    def settle_fine(self, member_id: str, amount: Decimal) -> None:
        """Move `amount` from current_fines to total_fines_paid."""
        raise NotImplementedError


class BookRepository(Protocol):
    def get_book(self, book_id: str, *, school_id: str) -> Optional[Book]:
        raise NotImplementedError

    def list_books(self, *, school_id: str, page: PageRequest, search: str = "") -> Page[Book]:
        raise NotImplementedError

    def create_book(self, book: Book, *, created_by: str) -> None:
        raise NotImplementedError

    def next_copy_number(self, book_id: str) -> int:
        raise NotImplementedError

    def create_copy(self, copy: BookCopy) -> None:
        raise NotImplementedError

    def get_copy(self, copy_id: str) -> Optional[BookCopy]:
        raise NotImplementedError

    def get_copy_by_barcode(self, barcode: str, *, school_id: str) -> Optional[BookCopy]:
        raise NotImplementedError

    def mark_copy_checked_out(self, copy_id: str) -> bool:
        """Conditional on the copy still being available; False when another loan won it."""
        raise NotImplementedError

    def update_copy_after_return(self, copy_id: str, *, status: CopyStatus, condition: CopyCondition) -> bool:
        raise NotImplementedError


class TransactionRepository(Protocol):
    def create(self, txn: BorrowingTransaction) -> None:
        raise NotImplementedError

    def get(self, transaction_id: str, *, school_id: str) -> Optional[BorrowingTransaction]:
        raise NotImplementedError

    def delete_active(self, transaction_id: str) -> bool:
        """Compensating delete; idempotent (False when nothing matched)."""
        raise NotImplementedError

    def count_active_for_member(self, member_id: str) -> int:
        raise NotImplementedError

    def mark_returned(
        self,
        transaction_id: str,
        *,
        return_date: datetime,
        condition: CopyCondition,
        notes: str,
        fine_amount: Decimal,
        returned_by: str,
    ) -> bool:
        """Conditional on status=active so a loan is closed exactly once."""
        raise NotImplementedError

    def renew(
        self,
        transaction_id: str,
        *,
        new_due_date: datetime,
        expected_renewal_count: int,
        renewed_by: str,
        renewed_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def list_page(
        self,
        *,
        school_id: str,
        page: PageRequest,
        search: str = "",
        status: str = "all",
        now: datetime,
    ) -> Page[BorrowingTransaction]:
        raise NotImplementedError


class FineRepository(Protocol):
    def create(self, fine: Fine) -> None:
        raise NotImplementedError

    def get(self, fine_id: str, *, school_id: str) -> Optional[Fine]:
        raise NotImplementedError

    def total_unpaid_for_member(self, member_id: str) -> Decimal:
        raise NotImplementedError

    def mark_paid(self, fine_id: str, *, processed_by: str, paid_at: datetime) -> bool:
        raise NotImplementedError

    def list_for_school(
        self,
        *,
        school_id: str,
        status: Optional[FineStatus] = None,
        member_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Fine]:
        raise NotImplementedError
