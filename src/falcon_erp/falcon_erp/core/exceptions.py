from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidFormatError(ValidationError):
    """Raised when a snapshot document does not have the expected shape."""


class AuthenticationError(DomainError):
    """Raised when there is no verified caller (bad credentials or no session)."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class RestoreInProgressError(DomainError):
    """Raised when another restore holds the exclusive restore lock."""


class StoreFailure(DomainError):
    """Raised when the underlying data store rejects a read, write or delete."""

    def __init__(self, message: str, *, operation: str = "write"):
        super().__init__(message)
        self.operation = operation
