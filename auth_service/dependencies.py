"""
Dependency wiring for the authentication service.

``build_resources`` assembles the stores selected in settings into an
``AuthenticationManager``; the FastAPI dependency functions below hand that
manager (and the caller's identity) to the route handlers.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth_service.auth import AuthenticationManager, InvalidTokenError, UnexpectedAuthError
from auth_service.config.jwt_config import get_jwt_config
from auth_service.config.settings import Settings
from auth_service.database import Database, init_db
from auth_service.domain import Email
from auth_service.email_client import EmailClient, MockEmailClient
from auth_service.security import PasswordHasher, PasswordValidator
from auth_service.stores.base import BannedTokenStore, TwoFACodeStore, UserStore
from auth_service.stores.memory import (HashmapTwoFACodeStore, HashmapUserStore,
                                        HashsetBannedTokenStore)
from auth_service.stores.redis_cache import (RedisBannedTokenStore, RedisTwoFACodeStore,
                                             create_redis_client)
from auth_service.stores.sql import SqlUserStore
from auth_service.token import SessionTokenCodec

logger = logging.getLogger(__name__)

# Security scheme for session tokens sent as a bearer header
security = HTTPBearer(auto_error=False)


@dataclass
class AppResources:
    """The manager plus the connections that must be closed on shutdown."""
    auth_manager: AuthenticationManager
    database: Optional[Database] = None
    redis_client: Optional[Any] = None

    async def close(self) -> None:
        if self.redis_client is not None:
            await self.redis_client.aclose()
        if self.database is not None:
            self.database.dispose()


# PUBLIC_INTERFACE
def build_resources(settings: Settings, email_client: Optional[EmailClient] = None) -> AppResources:
    """
    Build the authentication manager and its backends from settings.

    Args:
        settings: Application settings selecting backends and parameters.
        email_client: Delivery client for 2FA codes. Defaults to MockEmailClient.

    Returns:
        AppResources holding the manager and any open connections.
    """
    password_hasher = PasswordHasher.from_settings(settings)
    token_codec = SessionTokenCodec(get_jwt_config(settings))

    database = None
    user_store: UserStore
    if settings.USER_STORE_BACKEND == "sql":
        database = init_db(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        user_store = SqlUserStore(database, password_hasher)
    else:
        user_store = HashmapUserStore(password_hasher)

    redis_client = None
    banned_token_store: BannedTokenStore
    two_fa_code_store: TwoFACodeStore
    if settings.TOKEN_STORE_BACKEND == "redis":
        redis_client = create_redis_client(settings.REDIS_URL)
        banned_token_store = RedisBannedTokenStore(redis_client, token_codec.ttl_seconds)
        two_fa_code_store = RedisTwoFACodeStore(redis_client, settings.TWO_FA_CODE_TTL_SECONDS)
    else:
        banned_token_store = HashsetBannedTokenStore(token_codec.ttl_seconds)
        two_fa_code_store = HashmapTwoFACodeStore(settings.TWO_FA_CODE_TTL_SECONDS)

    logger.info(
        "Using %s user store and %s token stores",
        settings.USER_STORE_BACKEND,
        settings.TOKEN_STORE_BACKEND,
    )

    manager = AuthenticationManager(
        user_store=user_store,
        banned_token_store=banned_token_store,
        two_fa_code_store=two_fa_code_store,
        token_codec=token_codec,
        password_hasher=password_hasher,
        email_client=email_client or MockEmailClient(),
        password_validator=PasswordValidator.from_settings(settings),
    )
    return AppResources(auth_manager=manager, database=database, redis_client=redis_client)


# PUBLIC_INTERFACE
def get_auth_manager(request: Request) -> AuthenticationManager:
    """Get the application's authentication manager."""
    return request.app.state.resources.auth_manager


# PUBLIC_INTERFACE
def get_settings_dependency(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


# PUBLIC_INTERFACE
async def get_current_user_email(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_manager: AuthenticationManager = Depends(get_auth_manager),
    settings: Settings = Depends(get_settings_dependency),
) -> Email:
    """
    Get the email of the caller from a bearer header or the session cookie.

    Raises:
        HTTPException: 401 if no usable token is presented.
    """
    token = credentials.credentials if credentials else request.cookies.get(settings.JWT_COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return await auth_manager.validate_token(token)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except UnexpectedAuthError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unexpected error",
        )
