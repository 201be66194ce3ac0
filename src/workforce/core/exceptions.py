class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced task, attendance record or user does not exist."""


class ConflictError(DomainError):
    """Raised when a write would duplicate an existing record (double check-in, ...)."""


class InvalidStateError(DomainError):
    """Raised when a workflow transition is attempted from the wrong state."""
