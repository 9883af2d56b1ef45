from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Profile role, fixed when the account is provisioned."""

    ADMIN = "admin"
    SUB_ADMIN = "sub-admin"
    TEACHER = "teacher"
    STUDENT = "student"


class MemberType(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    STAFF = "staff"
    GUEST = "guest"


class MemberStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    EXPIRED = "expired"
    BLOCKED = "blocked"
    DELETED = "deleted"


class CopyStatus(str, Enum):
    """Circulation status of a physical book copy."""

    AVAILABLE = "available"
    CHECKED_OUT = "checked_out"
    DAMAGED = "damaged"


class CopyCondition(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    DAMAGED = "damaged"


class TransactionStatus(str, Enum):
    ACTIVE = "active"
    RETURNED = "returned"


class FineStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    ONLINE = "online"
    CHEQUE = "cheque"
