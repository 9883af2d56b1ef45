"""Row -> domain conversions shared by the library MySQL repositories."""

from __future__ import annotations

import json
from typing import Any, List, Optional

from ..core.enums import CopyCondition, CopyStatus, FineStatus, MemberStatus, MemberType, TransactionStatus
from ..database.mysql_base import to_decimal
from .model import BookCopy, BorrowingTransaction, Fine, LibraryMember


def authors_to_db(authors: List[str]) -> str:
    return json.dumps(list(authors))


def authors_from_db(value: Any) -> List[str]:
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        # hand-written rows may hold a plain comma separated string
        return [a.strip() for a in str(value).split(",") if a.strip()]
    return [str(a) for a in parsed] if isinstance(parsed, list) else [str(parsed)]


def _condition(value: Any) -> Optional[CopyCondition]:
    return CopyCondition(value) if value else None


def row_to_member(r: dict) -> LibraryMember:
    return LibraryMember(
        id=r["id"],
        profile_id=r["profile_id"],
        school_id=r["school_id"],
        library_card_number=r["library_card_number"],
        barcode=r["barcode"],
        member_type=MemberType(r["member_type"]),
        status=MemberStatus(r["status"]),
        max_books_allowed=int(r["max_books_allowed"]),
        max_days_allowed=int(r["max_days_allowed"]),
        can_reserve=bool(r["can_reserve"]),
        can_renew=bool(r["can_renew"]),
        max_renewals=int(r["max_renewals"]),
        email_notifications=bool(r["email_notifications"]),
        sms_notifications=bool(r["sms_notifications"]),
        membership_end_date=r.get("membership_end_date"),
        suspension_reason=r.get("suspension_reason"),
        suspension_until=r.get("suspension_until"),
        emergency_contact_name=r.get("emergency_contact_name"),
        emergency_contact_phone=r.get("emergency_contact_phone"),
        total_books_borrowed=int(r.get("total_books_borrowed") or 0),
        current_fines=to_decimal(r.get("current_fines")),
        total_fines_paid=to_decimal(r.get("total_fines_paid")),
        created_by=r.get("created_by"),
        name=r.get("name"),
        email=r.get("email"),
        phone=r.get("phone"),
    )


def row_to_copy(r: dict) -> BookCopy:
    return BookCopy(
        id=r["id"],
        book_id=r["book_id"],
        school_id=r["school_id"],
        barcode=r["barcode"],
        copy_number=int(r["copy_number"]),
        status=CopyStatus(r["status"]),
        condition=CopyCondition(r["condition"]),
        title=r.get("title") or "",
        authors=authors_from_db(r.get("authors")),
        isbn=r.get("isbn"),
        is_reference_only=bool(r.get("is_reference_only")),
    )


def row_to_transaction(r: dict) -> BorrowingTransaction:
    return BorrowingTransaction(
        id=r["id"],
        school_id=r["school_id"],
        member_id=r["member_id"],
        book_copy_id=r["book_copy_id"],
        checkout_date=r["checkout_date"],
        due_date=r["due_date"],
        status=TransactionStatus(r["status"]),
        return_date=r.get("return_date"),
        renewal_count=int(r.get("renewal_count") or 0),
        last_renewed_date=r.get("last_renewed_date"),
        notes=r.get("notes"),
        return_condition=_condition(r.get("return_condition")),
        return_notes=r.get("return_notes"),
        fine_amount=to_decimal(r.get("fine_amount")),
        checked_out_by=r.get("checked_out_by"),
        returned_by=r.get("returned_by"),
        renewed_by=r.get("renewed_by"),
        library_card_number=r.get("library_card_number"),
        member_name=r.get("member_name"),
        member_email=r.get("member_email"),
        barcode=r.get("barcode"),
        book_title=r.get("book_title"),
        book_authors=authors_from_db(r.get("book_authors")),
    )


def row_to_fine(r: dict) -> Fine:
    return Fine(
        id=r["id"],
        school_id=r["school_id"],
        member_id=r["member_id"],
        transaction_id=r.get("transaction_id"),
        amount=to_decimal(r["amount"]),
        reason=r.get("reason") or "overdue",
        description=r.get("description"),
        status=FineStatus(r["status"]),
        created_by=r.get("created_by"),
        processed_by=r.get("processed_by"),
        paid_at=r.get("paid_at"),
        created_at=r.get("created_at"),
        library_card_number=r.get("library_card_number"),
        member_name=r.get("member_name"),
    )
