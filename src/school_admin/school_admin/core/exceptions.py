class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist (or is outside the caller's school)."""


class ConflictError(DomainError):
    """Raised when the write would duplicate or race an existing record."""


class ProvisioningError(DomainError):
    """Raised when a dependent record could not be created after the identity was."""
