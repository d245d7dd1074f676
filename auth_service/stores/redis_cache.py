"""
Redis-backed revocation and challenge stores.

Both rely on Redis key expiry for lifetimes and on single-key commands for
atomicity. Keys are namespaced so they can share a database with other data.
"""
import json
import logging
from typing import Tuple

import redis.asyncio as aioredis
from pydantic import SecretStr
from redis.exceptions import RedisError

from auth_service.domain import Email, LoginAttemptId, TwoFACode
from auth_service.stores.base import BannedTokenStore, TwoFACodeStore
from auth_service.stores.errors import LoginAttemptNotFoundError, UnexpectedStoreError

logger = logging.getLogger(__name__)

BANNED_TOKEN_KEY_PREFIX = "banned_token:"
TWO_FA_CODE_PREFIX = "two_fa_code:"
TWO_FA_CODE_TTL_SECONDS = 600


def banned_token_key(token: str) -> str:
    return f"{BANNED_TOKEN_KEY_PREFIX}{token}"


def two_fa_code_key(email: Email) -> str:
    return f"{TWO_FA_CODE_PREFIX}{email}"


# PUBLIC_INTERFACE
def create_redis_client(redis_url: str, *, socket_timeout: float = 5.0) -> aioredis.Redis:
    """
    Create an asyncio Redis client.

    Args:
        redis_url: Redis connection URL.
        socket_timeout: Seconds to wait for connect and for each command.

    Returns:
        Redis client that decodes responses to ``str``.
    """
    return aioredis.from_url(
        redis_url,
        decode_responses=True,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
    )


class RedisBannedTokenStore(BannedTokenStore):
    """Denylist entries stored as ``banned_token:<token>`` with a TTL."""

    def __init__(self, client: aioredis.Redis, ttl_seconds: int):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.client = client
        self.ttl_seconds = ttl_seconds

    async def ban_token(self, token: SecretStr) -> None:
        key = banned_token_key(token.get_secret_value())
        try:
            await self.client.set(key, "1", ex=self.ttl_seconds)
        except RedisError as e:
            logger.error("Failed to store banned token: %s", type(e).__name__)
            raise UnexpectedStoreError("Failed to set banned token in Redis") from e

    async def is_banned(self, token: SecretStr) -> bool:
        key = banned_token_key(token.get_secret_value())
        try:
            return bool(await self.client.exists(key))
        except RedisError as e:
            logger.error("Failed to check banned token: %s", type(e).__name__)
            raise UnexpectedStoreError("Failed to check if token exists in Redis") from e


class RedisTwoFACodeStore(TwoFACodeStore):
    """Challenges stored as ``two_fa_code:<email>`` holding a JSON pair."""

    def __init__(self, client: aioredis.Redis, ttl_seconds: int = TWO_FA_CODE_TTL_SECONDS):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.client = client
        self.ttl_seconds = ttl_seconds

    async def add_code(self, email: Email, login_attempt_id: LoginAttemptId, code: TwoFACode) -> None:
        value = json.dumps([login_attempt_id.expose_secret(), code.expose_secret()])
        try:
            await self.client.set(two_fa_code_key(email), value, ex=self.ttl_seconds)
        except RedisError as e:
            logger.error("Failed to store 2FA code for %s: %s", email, type(e).__name__)
            raise UnexpectedStoreError("Failed to set 2FA code in Redis") from e

    async def get_code(self, email: Email) -> Tuple[LoginAttemptId, TwoFACode]:
        try:
            value = await self.client.get(two_fa_code_key(email))
        except RedisError as e:
            logger.error("Failed to read 2FA code for %s: %s", email, type(e).__name__)
            raise UnexpectedStoreError("Failed to get 2FA code from Redis") from e

        if value is None:
            raise LoginAttemptNotFoundError(f"No login attempt for {email}")

        try:
            raw_attempt_id, raw_code = json.loads(value)
            return LoginAttemptId.parse(raw_attempt_id), TwoFACode.parse(raw_code)
        except (ValueError, TypeError) as e:
            raise UnexpectedStoreError("Stored 2FA code is corrupt") from e

    async def remove_code(self, email: Email) -> bool:
        try:
            deleted = await self.client.delete(two_fa_code_key(email))
        except RedisError as e:
            logger.error("Failed to delete 2FA code for %s: %s", email, type(e).__name__)
            raise UnexpectedStoreError("Failed to delete 2FA code from Redis") from e
        return deleted == 1
