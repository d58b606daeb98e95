class DomainError(Exception):
    """Base exception for business rule violations."""

    http_status = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""

    http_status = 404


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""

    http_status = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    http_status = 403


class InvalidStateError(DomainError):
    """Raised when an action does not fit the record's current state."""

    http_status = 409


class StoreError(DomainError):
    """Raised when the persistence layer fails."""

    http_status = 503
