from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from ..core.enums import CopyCondition, CopyStatus, FineStatus, MemberStatus, MemberType, TransactionStatus


@dataclass(frozen=True)
class LibraryMember:
    """Borrowing privileges attached to a profile, plus circulation counters."""

    id: str
    profile_id: str
    school_id: str
    library_card_number: str
    barcode: str
    member_type: MemberType
    status: MemberStatus = MemberStatus.ACTIVE
    max_books_allowed: int = 3
    max_days_allowed: int = 14
    can_reserve: bool = True
    can_renew: bool = True
    max_renewals: int = 2
    email_notifications: bool = True
    sms_notifications: bool = False
    membership_end_date: Optional[date] = None
    suspension_reason: Optional[str] = None
    suspension_until: Optional[date] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    total_books_borrowed: int = 0
    current_fines: Decimal = Decimal("0")
    total_fines_paid: Decimal = Decimal("0")
    created_by: Optional[str] = None
    # joined from profiles
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == MemberStatus.ACTIVE


@dataclass(frozen=True)
class Book:
    id: str
    school_id: str
    title: str
    authors: List[str] = field(default_factory=list)
    isbn: Optional[str] = None
    is_reference_only: bool = False
    total_copies: int = 0
    available_copies: int = 0


@dataclass(frozen=True)
class BookCopy:
    """A barcoded physical copy, joined with the catalogue fields of its book."""

    id: str
    book_id: str
    school_id: str
    barcode: str
    copy_number: int
    status: CopyStatus = CopyStatus.AVAILABLE
    condition: CopyCondition = CopyCondition.EXCELLENT
    title: str = ""
    authors: List[str] = field(default_factory=list)
    isbn: Optional[str] = None
    is_reference_only: bool = False


@dataclass(frozen=True)
class BorrowingTransaction:
    """One loan event. Display fields (card number, names, title) come from joins."""

    id: str
    school_id: str
    member_id: str
    book_copy_id: str
    checkout_date: datetime
    due_date: datetime
    status: TransactionStatus = TransactionStatus.ACTIVE
    return_date: Optional[datetime] = None
    renewal_count: int = 0
    last_renewed_date: Optional[datetime] = None
    notes: Optional[str] = None
    return_condition: Optional[CopyCondition] = None
    return_notes: Optional[str] = None
    fine_amount: Decimal = Decimal("0")
    checked_out_by: Optional[str] = None
    returned_by: Optional[str] = None
    renewed_by: Optional[str] = None
    library_card_number: Optional[str] = None
    member_name: Optional[str] = None
    member_email: Optional[str] = None
    barcode: Optional[str] = None
    book_title: Optional[str] = None
    book_authors: List[str] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.status == TransactionStatus.ACTIVE


@dataclass(frozen=True)
class Fine:
    id: str
    school_id: str
    member_id: str
    transaction_id: Optional[str]
    amount: Decimal
    reason: str = "overdue"
    description: Optional[str] = None
    status: FineStatus = FineStatus.UNPAID
    created_by: Optional[str] = None
    processed_by: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    # joined
    library_card_number: Optional[str] = None
    member_name: Optional[str] = None


def copy_status_after_return(condition: CopyCondition) -> CopyStatus:
    if condition in (CopyCondition.DAMAGED, CopyCondition.POOR):
        return CopyStatus.DAMAGED
    return CopyStatus.AVAILABLE
