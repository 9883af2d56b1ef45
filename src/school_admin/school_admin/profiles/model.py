from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Profile:
    """Domain entity: the stored profile behind an identity.

    Note: one profile per identity; `id` is shared with the identity and with
    the role-specific record (admins/sub_admins/teachers/students).
    """

    id: str
    school_id: Optional[str]
    name: str
    email: str
    role: Role
    phone: Optional[str] = None
    address: Optional[str] = None
