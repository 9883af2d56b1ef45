from __future__ import annotations

from werkzeug.security import check_password_hash

from ..common.validators import require_non_empty
from ..core.exceptions import AuthenticationError
from ..profiles.model import Profile
from ..profiles.repository import ProfileRepository
from .provider import IdentityProvider


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, identities: IdentityProvider, profiles: ProfileRepository):
        self._identities = identities
        self._profiles = profiles

    def authenticate(self, email: str, password: str) -> Profile:
        email = require_non_empty(email, "email").lower()
        identity = self._identities.get_by_email(email)
        if not identity:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(identity.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        profile = self._profiles.get_by_id(identity.id)
        if not profile:
            raise AuthenticationError("Account has no profile")
        return profile
