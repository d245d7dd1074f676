"""
Authentication service.

This package provides:
- Credential storage with argon2id password hashing
- Signed, expiring JWT session tokens with a self-expiring revocation list
- Time-boxed, single-use second-factor challenges
- In-memory, SQL and Redis storage backends behind one set of interfaces
"""

__version__ = "0.1.0"

from auth_service.auth import (
    AuthError,
    AuthenticationManager,
    InvalidCredentialsError,
    InvalidTokenError,
    LoginResult,
    MalformedInputError,
    UnexpectedAuthError,
    UserExistsError,
)
from auth_service.config import JWTConfig, Settings, get_jwt_config, get_settings
from auth_service.domain import Email, LoginAttemptId, Password, TwoFACode, User
from auth_service.security import PasswordHasher, PasswordHashError, PasswordValidator
from auth_service.token import (
    SessionTokenCodec,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
)

__all__ = [
    # Orchestration
    "AuthenticationManager",
    "LoginResult",
    "AuthError",
    "MalformedInputError",
    "UserExistsError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "UnexpectedAuthError",

    # Domain values
    "Email",
    "Password",
    "LoginAttemptId",
    "TwoFACode",
    "User",

    # Password hashing
    "PasswordHasher",
    "PasswordHashError",
    "PasswordValidator",

    # Session tokens
    "SessionTokenCodec",
    "TokenError",
    "TokenExpiredError",
    "TokenInvalidError",

    # Configuration
    "JWTConfig",
    "Settings",
    "get_jwt_config",
    "get_settings",
]
