"""
Storage backends for identities, revoked tokens and two-factor challenges.
"""

from auth_service.stores.base import BannedTokenStore, TwoFACodeStore, UserStore
from auth_service.stores.errors import (
    InvalidPasswordError,
    LoginAttemptNotFoundError,
    StoreError,
    UnexpectedStoreError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from auth_service.stores.memory import (
    HashmapTwoFACodeStore,
    HashmapUserStore,
    HashsetBannedTokenStore,
)
from auth_service.stores.redis_cache import RedisBannedTokenStore, RedisTwoFACodeStore
from auth_service.stores.sql import SqlUserStore

__all__ = [
    "UserStore",
    "BannedTokenStore",
    "TwoFACodeStore",
    "StoreError",
    "UserAlreadyExistsError",
    "UserNotFoundError",
    "InvalidPasswordError",
    "LoginAttemptNotFoundError",
    "UnexpectedStoreError",
    "HashmapUserStore",
    "HashsetBannedTokenStore",
    "HashmapTwoFACodeStore",
    "SqlUserStore",
    "RedisBannedTokenStore",
    "RedisTwoFACodeStore",
]
