from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional

from ..common.validators import optional_text, require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.exceptions import ValidationError
from ..profiles.model import Profile


@dataclass(frozen=True)
class NewTeacher:
    school_id: str
    user_id: str
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "NewTeacher":
        if not payload.get("name") or not payload.get("email"):
            raise ValidationError("Name and email are required")
        if not payload.get("school_id") or not payload.get("user_id"):
            raise ValidationError("Missing school_id or user_id")
        password = optional_text(payload.get("password"))
        if password is not None:
            require_min_length(password, "password", MIN_PASSWORD_LENGTH)
        return cls(
            school_id=str(payload["school_id"]).strip(),
            user_id=str(payload["user_id"]).strip(),
            name=require_non_empty(payload["name"], "name"),
            email=require_email(payload["email"]),
            phone=optional_text(payload.get("phone")),
            address=optional_text(payload.get("address")),
            password=password,
        )


@dataclass(frozen=True)
class TeacherRecord:
    employee_id: str
    designation: str
    joining_date: date
    is_active: bool = True


@dataclass(frozen=True)
class CreatedTeacher:
    id: str
    profile: Profile
    teacher: TeacherRecord
    temporary_password: Optional[str] = None
