"""
Store interfaces.

The authentication manager depends only on these classes; concrete
backends live in ``memory``, ``sql`` and ``redis_cache``.
"""
from abc import ABC, abstractmethod
from typing import Tuple

from pydantic import SecretStr

from auth_service.domain import Email, LoginAttemptId, Password, TwoFACode, User


class UserStore(ABC):
    """Credential store: identities and password verification."""

    @abstractmethod
    async def add_user(self, user: User) -> None:
        """
        Persist a new identity.

        Raises:
            UserAlreadyExistsError: If the email is already stored.
            UnexpectedStoreError: On storage failure.
        """

    @abstractmethod
    async def get_user(self, email: Email) -> User:
        """
        Raises:
            UserNotFoundError: If no identity exists for the email.
            UnexpectedStoreError: On storage failure.
        """

    @abstractmethod
    async def validate_user(self, email: Email, password: Password) -> None:
        """
        Check a password against the stored hash.

        Raises:
            UserNotFoundError: If no identity exists for the email.
            InvalidPasswordError: If the password does not verify.
            UnexpectedStoreError: On storage or hash failure.
        """


class BannedTokenStore(ABC):
    """Revocation store: a self-expiring denylist of session tokens."""

    @abstractmethod
    async def ban_token(self, token: SecretStr) -> None:
        """Add a token to the denylist. Banning twice is not an error."""

    @abstractmethod
    async def is_banned(self, token: SecretStr) -> bool:
        """Return whether the token is currently on the denylist."""


class TwoFACodeStore(ABC):
    """Challenge store: at most one live second-factor challenge per email."""

    @abstractmethod
    async def add_code(self, email: Email, login_attempt_id: LoginAttemptId, code: TwoFACode) -> None:
        """Store a challenge, replacing any existing one for the email."""

    @abstractmethod
    async def get_code(self, email: Email) -> Tuple[LoginAttemptId, TwoFACode]:
        """
        Raises:
            LoginAttemptNotFoundError: If no live challenge exists.
            UnexpectedStoreError: On storage failure.
        """

    @abstractmethod
    async def remove_code(self, email: Email) -> bool:
        """
        Delete the challenge for the email. Absence is not an error.

        Returns:
            True only for the call that actually deleted a live challenge.
            Concurrent callers racing on the same challenge see exactly one True.

        Raises:
            UnexpectedStoreError: On storage failure.
        """
