"""
Storage-layer exceptions.

Backends raise these regardless of what they are built on; infrastructure
failures are wrapped in ``UnexpectedStoreError`` with the original exception
chained as ``__cause__``.
"""


class StoreError(Exception):
    """Base exception for store errors."""
    pass


class UserAlreadyExistsError(StoreError):
    """Raised when adding a user whose email is already stored."""
    pass


class UserNotFoundError(StoreError):
    """Raised when no user is stored under an email."""
    pass


class InvalidPasswordError(StoreError):
    """Raised when a password does not verify against the stored hash."""
    pass


class LoginAttemptNotFoundError(StoreError):
    """Raised when no live two-factor challenge exists for an email."""
    pass


class UnexpectedStoreError(StoreError):
    """Raised when the backing storage fails."""
    pass


__all__ = [
    "StoreError",
    "UserAlreadyExistsError",
    "UserNotFoundError",
    "InvalidPasswordError",
    "LoginAttemptNotFoundError",
    "UnexpectedStoreError",
]
