"""
In-memory store backends.

Each store keeps its state in a dict behind a single ``threading.Lock``.
The lock is only ever held around plain dict operations, never across an
``await``. Entries that need a lifetime carry an absolute expiry taken
from a monotonic clock; reads evict expired entries and ``purge_expired``
sweeps the whole map.
"""
import logging
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from pydantic import SecretStr

from auth_service.domain import Email, LoginAttemptId, Password, TwoFACode, User
from auth_service.security import PasswordHasher, PasswordHashError
from auth_service.stores.base import BannedTokenStore, TwoFACodeStore, UserStore
from auth_service.stores.errors import (
    InvalidPasswordError,
    LoginAttemptNotFoundError,
    UnexpectedStoreError,
    UserAlreadyExistsError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

TWO_FA_CODE_TTL_SECONDS = 600


class HashmapUserStore(UserStore):
    """Identities kept in a dict keyed by email."""

    def __init__(self, password_hasher: PasswordHasher):
        self.password_hasher = password_hasher
        self._users: Dict[Email, User] = {}
        self._lock = threading.Lock()

    async def add_user(self, user: User) -> None:
        with self._lock:
            if user.email in self._users:
                raise UserAlreadyExistsError(f"User already exists: {user.email}")
            self._users[user.email] = user
        logger.debug("Stored user %s", user.email)

    async def get_user(self, email: Email) -> User:
        with self._lock:
            user = self._users.get(email)
        if user is None:
            raise UserNotFoundError(f"User not found: {email}")
        return user

    async def validate_user(self, email: Email, password: Password) -> None:
        user = await self.get_user(email)
        try:
            verified = await self.password_hasher.verify(user.password_hash, password)
        except PasswordHashError as e:
            raise UnexpectedStoreError("Failed to verify password hash") from e
        if not verified:
            raise InvalidPasswordError("Invalid password")

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)


class HashsetBannedTokenStore(BannedTokenStore):
    """
    Denylist of raw token strings.

    Each entry lives for ``ttl_seconds``, which must be at least the session
    token lifetime.
    """

    def __init__(self, ttl_seconds: int, clock: Clock = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._banned: Dict[str, float] = {}
        self._lock = threading.Lock()

    async def ban_token(self, token: SecretStr) -> None:
        expires_at = self._clock() + self.ttl_seconds
        with self._lock:
            self._banned[token.get_secret_value()] = expires_at

    async def is_banned(self, token: SecretStr) -> bool:
        raw = token.get_secret_value()
        now = self._clock()
        with self._lock:
            expires_at = self._banned.get(raw)
            if expires_at is None:
                return False
            if expires_at <= now:
                del self._banned[raw]
                return False
            return True

    # PUBLIC_INTERFACE
    def purge_expired(self) -> int:
        """
        Drop every expired entry.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [raw for raw, expires_at in self._banned.items() if expires_at <= now]
            for raw in expired:
                del self._banned[raw]
        if expired:
            logger.debug("Purged %d expired banned tokens", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._banned)


class HashmapTwoFACodeStore(TwoFACodeStore):
    """One (login attempt id, code) pair per email, each with a lifetime."""

    def __init__(self, ttl_seconds: int = TWO_FA_CODE_TTL_SECONDS, clock: Clock = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._codes: Dict[Email, Tuple[LoginAttemptId, TwoFACode, float]] = {}
        self._lock = threading.Lock()

    async def add_code(self, email: Email, login_attempt_id: LoginAttemptId, code: TwoFACode) -> None:
        expires_at = self._clock() + self.ttl_seconds
        with self._lock:
            self._codes[email] = (login_attempt_id, code, expires_at)

    async def get_code(self, email: Email) -> Tuple[LoginAttemptId, TwoFACode]:
        now = self._clock()
        with self._lock:
            entry: Optional[Tuple[LoginAttemptId, TwoFACode, float]] = self._codes.get(email)
            if entry is not None and entry[2] <= now:
                del self._codes[email]
                entry = None
        if entry is None:
            raise LoginAttemptNotFoundError(f"No login attempt for {email}")
        login_attempt_id, code, _ = entry
        return login_attempt_id, code

    async def remove_code(self, email: Email) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._codes.pop(email, None)
        return entry is not None and entry[2] > now

    # PUBLIC_INTERFACE
    def purge_expired(self) -> int:
        """
        Drop every expired challenge.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [email for email, entry in self._codes.items() if entry[2] <= now]
            for email in expired:
                del self._codes[email]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)
