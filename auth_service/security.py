"""
Security utilities for the authentication service.

This module provides password hashing and password strength validation.
Hashing uses argon2id through passlib and always runs in a worker thread,
so the event loop keeps serving other requests while a hash is computed.
"""
import asyncio
import logging
import re
from typing import List, Pattern, Tuple

from passlib.context import CryptContext
from passlib.exc import PasslibSecurityError, UnknownHashError

from auth_service.config.settings import Settings
from auth_service.domain import MIN_PASSWORD_LENGTH, Password

# Configure logging
logger = logging.getLogger(__name__)

# Argon2 defaults used when no settings are supplied
DEFAULT_MEMORY_COST = 15000
DEFAULT_TIME_COST = 2

MAX_PASSWORD_LENGTH = 128


class PasswordError(Exception):
    """Base exception for password-related errors."""
    pass


class WeakPasswordError(PasswordError):
    """Exception raised when a password does not meet strength requirements."""
    pass


class PasswordHashError(PasswordError):
    """Exception raised when a hash cannot be computed or a stored hash is unusable."""
    pass


class PasswordValidator:
    """
    Password strength validator.

    Validates passwords against configurable strength requirements.
    """

    def __init__(
        self,
        min_length: int = MIN_PASSWORD_LENGTH,
        max_length: int = MAX_PASSWORD_LENGTH,
        require_uppercase: bool = False,
        require_lowercase: bool = False,
        require_digit: bool = False,
        require_special: bool = False,
    ):
        """
        Initialize the password validator with configurable requirements.

        Args:
            min_length: Minimum password length.
            max_length: Maximum password length.
            require_uppercase: Whether to require uppercase letters.
            require_lowercase: Whether to require lowercase letters.
            require_digit: Whether to require at least one digit.
            require_special: Whether to require at least one special character.
        """
        self.min_length = min_length
        self.max_length = max_length
        self.require_uppercase = require_uppercase
        self.require_lowercase = require_lowercase
        self.require_digit = require_digit
        self.require_special = require_special

        # Regex patterns for validation
        self.uppercase_pattern: Pattern = re.compile(r"[A-Z]")
        self.lowercase_pattern: Pattern = re.compile(r"[a-z]")
        self.digit_pattern: Pattern = re.compile(r"\d")
        self.special_pattern: Pattern = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>\/?]")

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordValidator":
        return cls(
            min_length=settings.PASSWORD_MIN_LENGTH,
            require_uppercase=settings.PASSWORD_REQUIRE_UPPERCASE,
            require_lowercase=settings.PASSWORD_REQUIRE_LOWERCASE,
            require_digit=settings.PASSWORD_REQUIRE_DIGIT,
            require_special=settings.PASSWORD_REQUIRE_SPECIAL,
        )

    # PUBLIC_INTERFACE
    def validate(self, password: str) -> Tuple[bool, List[str]]:
        """
        Validate a password against the configured requirements.

        Args:
            password: Password to validate.

        Returns:
            Tuple containing:
                - Boolean indicating if the password is valid.
                - List of validation error messages (empty if valid).
        """
        errors = []

        if len(password) < self.min_length:
            errors.append(f"Password must be at least {self.min_length} characters long.")

        if len(password) > self.max_length:
            errors.append(f"Password must be at most {self.max_length} characters long.")

        if self.require_uppercase and not self.uppercase_pattern.search(password):
            errors.append("Password must contain at least one uppercase letter.")

        if self.require_lowercase and not self.lowercase_pattern.search(password):
            errors.append("Password must contain at least one lowercase letter.")

        if self.require_digit and not self.digit_pattern.search(password):
            errors.append("Password must contain at least one digit.")

        if self.require_special and not self.special_pattern.search(password):
            errors.append("Password must contain at least one special character.")

        return len(errors) == 0, errors

    # PUBLIC_INTERFACE
    def parse(self, password: str) -> Password:
        """
        Validate a raw password and wrap it.

        Raises:
            WeakPasswordError: If the password does not meet the requirements.
        """
        is_valid, errors = self.validate(password)
        if not is_valid:
            raise WeakPasswordError("\n".join(errors))
        return Password.parse(password, min_length=self.min_length)


class PasswordHasher:
    """
    Salted argon2id password hashing.

    Hashes are self-describing (algorithm, version and cost parameters are
    encoded in the string), so hashes made with older parameters still
    verify after the parameters change.
    """

    def __init__(
        self,
        memory_cost: int = DEFAULT_MEMORY_COST,
        time_cost: int = DEFAULT_TIME_COST,
    ):
        self.context = CryptContext(
            schemes=["argon2"],
            deprecated="auto",
            argon2__memory_cost=memory_cost,
            argon2__time_cost=time_cost,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordHasher":
        return cls(
            memory_cost=settings.PASSWORD_HASH_MEMORY_COST,
            time_cost=settings.PASSWORD_HASH_TIME_COST,
        )

    # PUBLIC_INTERFACE
    async def hash(self, password: Password) -> str:
        """
        Hash a password with a fresh random salt.

        Args:
            password: Password to hash.

        Returns:
            Encoded argon2id hash string.

        Raises:
            PasswordHashError: If hashing fails.
        """
        return await asyncio.to_thread(self._hash, password.expose_secret())

    # PUBLIC_INTERFACE
    def hash_blocking(self, password: Password) -> str:
        """Hash a password on the calling thread. Meant for startup, outside the event loop."""
        return self._hash(password.expose_secret())

    # PUBLIC_INTERFACE
    async def verify(self, password_hash: str, candidate: Password) -> bool:
        """
        Verify a candidate password against a stored hash.

        Returns:
            True if the candidate matches, False otherwise.

        Raises:
            PasswordHashError: If the stored hash is malformed.
        """
        return await asyncio.to_thread(self._verify, password_hash, candidate.expose_secret())

    # PUBLIC_INTERFACE
    def needs_rehash(self, password_hash: str) -> bool:
        """
        Check if a password hash was made with outdated parameters.

        Raises:
            PasswordHashError: If the hash is malformed.
        """
        try:
            return self.context.needs_update(password_hash)
        except (ValueError, TypeError) as e:
            raise PasswordHashError("Stored password hash is malformed") from e

    def _hash(self, raw: str) -> str:
        try:
            return self.context.hash(raw)
        except (ValueError, TypeError, PasslibSecurityError) as e:
            logger.error("Password hashing failed: %s", type(e).__name__)
            raise PasswordHashError("Failed to compute password hash") from e

    def _verify(self, password_hash: str, raw: str) -> bool:
        try:
            return self.context.verify(raw, password_hash)
        except UnknownHashError as e:
            raise PasswordHashError("Stored password hash is not recognised") from e
        except (ValueError, TypeError) as e:
            raise PasswordHashError("Stored password hash is malformed") from e
