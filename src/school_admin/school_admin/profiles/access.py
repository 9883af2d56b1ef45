from __future__ import annotations

from ..core.exceptions import AuthorizationError
from .model import Profile
from .repository import ProfileRepository


class SchoolAccessService:
    """Per-request school check: the caller's stored profile must belong to the school.

    Re-reads the profile on every call; nothing is cached between requests.
    """

    def __init__(self, profiles: ProfileRepository):
        self._profiles = profiles

    def require_school_access(self, *, user_id: str, school_id: str) -> Profile:
        profile = self._profiles.get_by_id(str(user_id)) if user_id else None
        if not profile or not school_id or profile.school_id != str(school_id):
            raise AuthorizationError("Unauthorized")
        return profile
