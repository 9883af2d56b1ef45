"""Request records for the library endpoints, validated once at the boundary."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from ..common.datetime_utils import optional_iso_date
from ..common.pagination import PageRequest
from ..common.validators import (
    optional_choice,
    optional_positive_int,
    optional_text,
    require_choice,
    require_non_empty,
)
from ..core.enums import CopyCondition, FineStatus, MemberStatus, MemberType
from ..core.exceptions import ValidationError

TRANSACTION_STATUS_FILTERS = ("all", "active", "returned", "overdue")


def _require_fields(payload: Mapping[str, Any], *names: str) -> None:
    if any(not payload.get(n) for n in names):
        raise ValidationError("Missing required fields")


def _optional_bool(value: Any, field_name: str) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"true", "1", "yes"}:
        return True
    if text in {"false", "0", "no"}:
        return False
    raise ValidationError(f"{field_name} must be true or false")


@dataclass(frozen=True)
class CheckoutCommand:
    school_id: str
    user_id: str
    member_card_number: str
    book_barcode: str
    due_days: Optional[int] = None
    notes: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CheckoutCommand":
        _require_fields(payload, "school_id", "user_id", "memberCardNumber", "bookBarcode")
        return cls(
            school_id=str(payload["school_id"]).strip(),
            user_id=str(payload["user_id"]).strip(),
            member_card_number=str(payload["memberCardNumber"]).strip(),
            book_barcode=str(payload["bookBarcode"]).strip(),
            due_days=optional_positive_int(payload.get("dueDays"), "dueDays"),
            notes=optional_text(payload.get("notes")),
        )


@dataclass(frozen=True)
class ReturnCommand:
    school_id: str
    user_id: str
    transaction_id: str
    condition: CopyCondition = CopyCondition.GOOD
    notes: str = ""

    @classmethod
    def from_payload(cls, transaction_id: str, payload: Mapping[str, Any]) -> "ReturnCommand":
        _require_fields(payload, "school_id", "user_id")
        if not transaction_id:
            raise ValidationError("Missing required fields")
        condition = optional_choice(payload.get("condition"), CopyCondition, "condition")
        return cls(
            school_id=str(payload["school_id"]).strip(),
            user_id=str(payload["user_id"]).strip(),
            transaction_id=str(transaction_id),
            condition=condition or CopyCondition.GOOD,
            notes=str(payload.get("notes") or ""),
        )


@dataclass(frozen=True)
class RenewCommand:
    school_id: str
    user_id: str
    transaction_id: str
    renewal_days: Optional[int] = None

    @classmethod
    def from_payload(cls, transaction_id: str, payload: Mapping[str, Any]) -> "RenewCommand":
        _require_fields(payload, "school_id", "user_id")
        if not transaction_id:
            raise ValidationError("Missing required fields")
        return cls(
            school_id=str(payload["school_id"]).strip(),
            user_id=str(payload["user_id"]).strip(),
            transaction_id=str(transaction_id),
            renewal_days=optional_positive_int(payload.get("renewal_days"), "renewal_days"),
        )


@dataclass(frozen=True)
class TransactionQuery:
    school_id: str
    user_id: str
    page: PageRequest = field(default_factory=PageRequest)
    search: str = ""
    status: str = "all"

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "TransactionQuery":
        _require_params(args)
        status = (args.get("status") or "all").strip()
        if status not in TRANSACTION_STATUS_FILTERS:
            raise ValidationError(f"Invalid status (expected one of: {', '.join(TRANSACTION_STATUS_FILTERS)})")
        return cls(
            school_id=args["school_id"],
            user_id=args["user_id"],
            page=PageRequest.from_args(args.get("page"), args.get("limit")),
            search=(args.get("search") or "").strip(),
            status=status,
        )


def _require_params(args: Mapping[str, Any]) -> None:
    if not args.get("school_id") or not args.get("user_id"):
        raise ValidationError("Missing required parameters")


@dataclass(frozen=True)
class MemberQuery:
    school_id: str
    user_id: str
    page: PageRequest = field(default_factory=PageRequest)
    search: str = ""
    member_type: Optional[MemberType] = None
    status: Optional[MemberStatus] = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "MemberQuery":
        _require_params(args)
        member_type = args.get("member_type") or "all"
        status = args.get("status") or "all"
        return cls(
            school_id=args["school_id"],
            user_id=args["user_id"],
            page=PageRequest.from_args(args.get("page"), args.get("limit")),
            search=(args.get("search") or "").strip(),
            member_type=None if member_type == "all" else require_choice(member_type, MemberType, "member_type"),
            status=None if status == "all" else require_choice(status, MemberStatus, "status"),
        )


@dataclass(frozen=True)
class NewMember:
    school_id: str
    user_id: str
    profile_id: str
    member_type: MemberType
    max_books_allowed: Optional[int] = None
    max_days_allowed: Optional[int] = None
    membership_end_date: Optional[date] = None
    can_reserve: bool = True
    can_renew: bool = True
    max_renewals: Optional[int] = None
    email_notifications: bool = True
    sms_notifications: bool = False
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "NewMember":
        _require_fields(payload, "school_id", "user_id", "profile_id", "member_type")
        return cls(
            school_id=str(payload["school_id"]).strip(),
            user_id=str(payload["user_id"]).strip(),
            profile_id=str(payload["profile_id"]).strip(),
            member_type=require_choice(payload["member_type"], MemberType, "member_type"),
            max_books_allowed=optional_positive_int(payload.get("max_books_allowed"), "max_books_allowed"),
            max_days_allowed=optional_positive_int(payload.get("max_days_allowed"), "max_days_allowed"),
            membership_end_date=optional_iso_date(payload.get("membership_end_date"), "membership_end_date"),
            can_reserve=_optional_bool(payload.get("can_reserve"), "can_reserve") is not False,
            can_renew=_optional_bool(payload.get("can_renew"), "can_renew") is not False,
            max_renewals=optional_positive_int(payload.get("max_renewals"), "max_renewals"),
            email_notifications=_optional_bool(payload.get("email_notifications"), "email_notifications") is not False,
            sms_notifications=bool(_optional_bool(payload.get("sms_notifications"), "sms_notifications")),
            emergency_contact_name=optional_text(payload.get("emergency_contact_name")),
            emergency_contact_phone=optional_text(payload.get("emergency_contact_phone")),
        )


@dataclass(frozen=True)
class MemberUpdate:
    """Partial update: only keys present in the body end up in `changes`."""

    school_id: str
    user_id: str
    member_id: str
    changes: Dict[str, Any]

    _INT_FIELDS = ("max_books_allowed", "max_days_allowed", "max_renewals")
    _BOOL_FIELDS = ("can_reserve", "can_renew", "email_notifications", "sms_notifications")
    _TEXT_FIELDS = ("suspension_reason", "emergency_contact_name", "emergency_contact_phone")
    _DATE_FIELDS = ("membership_end_date", "suspension_until")

    @classmethod
    def from_payload(cls, member_id: str, payload: Mapping[str, Any]) -> "MemberUpdate":
        _require_fields(payload, "school_id", "user_id")
        changes: Dict[str, Any] = {}
        if "member_type" in payload:
            changes["member_type"] = require_choice(payload["member_type"], MemberType, "member_type")
        if "status" in payload:
            changes["status"] = require_choice(payload["status"], MemberStatus, "status")
        for name in cls._INT_FIELDS:
            if name in payload:
                value = optional_positive_int(payload[name], name)
                if value is None:
                    raise ValidationError(f"{name} must be greater than 0")
                changes[name] = value
        for name in cls._BOOL_FIELDS:
            if name in payload:
                value = _optional_bool(payload[name], name)
                if value is None:
                    raise ValidationError(f"{name} must be true or false")
                changes[name] = value
        for name in cls._TEXT_FIELDS:
            if name in payload:
                changes[name] = optional_text(payload[name])
        for name in cls._DATE_FIELDS:
            if name in payload:
                changes[name] = optional_iso_date(payload[name], name)
        return cls(
            school_id=str(payload["school_id"]).strip(),
            user_id=str(payload["user_id"]).strip(),
            member_id=str(member_id),
            changes=changes,
        )


@dataclass(frozen=True)
class FineQuery:
    school_id: str
    user_id: str
    status: Optional[FineStatus] = None
    member_id: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "FineQuery":
        _require_params(args)
        status = args.get("status") or "all"
        return cls(
            school_id=args["school_id"],
            user_id=args["user_id"],
            status=None if status == "all" else require_choice(status, FineStatus, "status"),
            member_id=optional_text(args.get("member_id")),
        )


@dataclass(frozen=True)
class NewBook:
    school_id: str
    user_id: str
    title: str
    authors: List[str]
    isbn: Optional[str] = None
    is_reference_only: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "NewBook":
        _require_fields(payload, "school_id", "user_id", "title")
        authors = payload.get("authors") or []
        if isinstance(authors, str):
            authors = [a.strip() for a in authors.split(",")]
        authors = [str(a).strip() for a in authors if str(a).strip()]
        if not authors:
            raise ValidationError("At least one author is required")
        return cls(
            school_id=str(payload["school_id"]).strip(),
            user_id=str(payload["user_id"]).strip(),
            title=require_non_empty(payload["title"], "title"),
            authors=authors,
            isbn=optional_text(payload.get("isbn")),
            is_reference_only=bool(_optional_bool(payload.get("is_reference_only"), "is_reference_only")),
        )


@dataclass(frozen=True)
class NewCopy:
    school_id: str
    user_id: str
    book_id: str
    barcode: Optional[str] = None
    condition: CopyCondition = CopyCondition.EXCELLENT

    @classmethod
    def from_payload(cls, book_id: str, payload: Mapping[str, Any]) -> "NewCopy":
        _require_fields(payload, "school_id", "user_id")
        return cls(
            school_id=str(payload["school_id"]).strip(),
            user_id=str(payload["user_id"]).strip(),
            book_id=str(book_id),
            barcode=optional_text(payload.get("barcode")),
            condition=optional_choice(payload.get("condition"), CopyCondition, "condition") or CopyCondition.EXCELLENT,
        )
