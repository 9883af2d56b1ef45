from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from ..common.datetime_utils import optional_iso_date
from ..common.validators import optional_choice, optional_text, require_choice, require_positive_amount
from ..core.enums import PaymentMethod, PaymentStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Payment:
    id: str
    school_id: str
    student_id: str
    amount: Decimal
    payment_method: PaymentMethod
    payment_date: date
    status: PaymentStatus = PaymentStatus.PENDING
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    recorded_by: Optional[str] = None
    verified_by: Optional[str] = None
    verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @property
    def is_verified(self) -> bool:
        return self.verified_at is not None


@dataclass(frozen=True)
class NewPayment:
    school_id: str
    user_id: str
    student_id: str
    amount: Decimal
    payment_method: PaymentMethod
    payment_date: Optional[date] = None
    reference_number: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "NewPayment":
        if not all(payload.get(k) for k in ("school_id", "user_id", "student_id", "amount", "payment_method")):
            raise ValidationError("Missing required fields or invalid amount")
        return cls(
            school_id=str(payload["school_id"]).strip(),
            user_id=str(payload["user_id"]).strip(),
            student_id=str(payload["student_id"]).strip(),
            amount=require_positive_amount(payload["amount"], "amount"),
            payment_method=require_choice(payload["payment_method"], PaymentMethod, "payment_method"),
            payment_date=optional_iso_date(payload.get("payment_date"), "payment_date"),
            reference_number=optional_text(payload.get("reference_number")),
            notes=optional_text(payload.get("notes")),
        )


@dataclass(frozen=True)
class PaymentQuery:
    school_id: str
    user_id: str
    student_id: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    status: Optional[PaymentStatus] = None
    is_verified: Optional[bool] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "PaymentQuery":
        if not args.get("school_id") or not args.get("user_id"):
            raise ValidationError("Missing school_id or user_id parameter")
        verified = (args.get("is_verified") or "").strip().lower()
        if verified not in ("", "true", "false"):
            raise ValidationError("is_verified must be true or false")
        return cls(
            school_id=args["school_id"],
            user_id=args["user_id"],
            student_id=optional_text(args.get("student_id")),
            payment_method=optional_choice(args.get("payment_method"), PaymentMethod, "payment_method"),
            status=optional_choice(args.get("status"), PaymentStatus, "status"),
            is_verified=None if not verified else verified == "true",
            date_from=optional_iso_date(args.get("date_from"), "date_from"),
            date_to=optional_iso_date(args.get("date_to"), "date_to"),
        )
