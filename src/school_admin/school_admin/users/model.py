from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..common.validators import require_choice, require_email, require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class NewUser:
    """Validated body of POST /admin/create-user."""

    email: str
    password: str
    name: str
    role: Role
    school_id: str

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "NewUser":
        required = ("email", "password", "name", "role", "school_id")
        if any(not payload.get(k) for k in required):
            raise ValidationError("Missing required fields")
        return cls(
            email=require_email(payload["email"]),
            password=require_min_length(str(payload["password"]), "password", MIN_PASSWORD_LENGTH),
            name=require_non_empty(payload["name"], "name"),
            role=require_choice(payload["role"], Role, "role"),
            school_id=str(payload["school_id"]).strip(),
        )


@dataclass(frozen=True)
class ProvisionedUser:
    id: str
    email: str
    name: str
    role: Role
    school_id: str
