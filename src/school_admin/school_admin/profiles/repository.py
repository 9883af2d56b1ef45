from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Profile


class ProfileRepository(Protocol):
    """Repository interface for profiles.

    Note (DIP): services depend on this interface, not on a concrete DB.
    """

    def get_by_id(self, profile_id: str) -> Optional[Profile]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        profile_id: str,
        school_id: str,
        name: str,
        email: str,
        role: Role,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> None:
        raise NotImplementedError

    def list_by_role(self, *, school_id: str, role: Role) -> Sequence[Profile]:
        raise NotImplementedError
