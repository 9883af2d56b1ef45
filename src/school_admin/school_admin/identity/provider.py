from __future__ import annotations

from typing import Optional, Protocol

from .model import Identity

DUPLICATE_EMAIL_MESSAGE = "A user with this email already exists"


class IdentityProvider(Protocol):
    """Credential store that issues identities; profiles and role records hang off its ids."""

    def get_by_email(self, email: str) -> Optional[Identity]:
        raise NotImplementedError

    def create_identity(self, *, email: str, password: str) -> Identity:
        """Raise ValidationError when the email is already registered."""
        raise NotImplementedError

    def delete_identity(self, identity_id: str) -> bool:
        """Idempotent: deleting an unknown id returns False instead of raising."""
        raise NotImplementedError
