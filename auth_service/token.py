"""
JWT session token codec for the authentication service.

This module issues signed, expiring bearer tokens and verifies them. It
knows nothing about revocation; the authentication manager combines a
successful verification with the banned-token check.
"""
import datetime
import logging
import uuid
from typing import Any, Dict, Union

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError
from pydantic import SecretStr

from auth_service.config.jwt_config import JWTConfig
from auth_service.domain import Email

# Configure logger
logger = logging.getLogger(__name__)

TokenInput = Union[str, SecretStr]


class TokenError(Exception):
    """Base exception for token-related errors."""
    pass


class TokenExpiredError(TokenError):
    """Exception raised when a token has expired."""
    pass


class TokenInvalidError(TokenError):
    """Exception raised when a token is invalid."""
    pass


def _raw_token(token: TokenInput) -> str:
    if isinstance(token, SecretStr):
        return token.get_secret_value()
    return token


class SessionTokenCodec:
    """
    Issues and verifies session tokens.

    The signing key comes from the ``JWTConfig`` handed in at construction,
    so separate instances can use separate keys.
    """

    def __init__(self, config: JWTConfig):
        self.config = config

    @property
    def ttl_seconds(self) -> int:
        """Lifetime of issued tokens in seconds."""
        return self.config.ttl_seconds

    # PUBLIC_INTERFACE
    def issue(self, email: Email) -> SecretStr:
        """
        Create a new session token for an identity.

        Args:
            email: Email of the identity that owns the token.

        Returns:
            Signed JWT wrapped in a SecretStr.
        """
        now = datetime.datetime.now(datetime.timezone.utc)
        payload = {
            "sub": str(email),
            "jti": str(uuid.uuid4()),
            "iat": now,
            "exp": now + self.config.token_ttl,
        }
        encoded = jwt.encode(
            payload,
            self.config.secret_key.get_secret_value(),
            algorithm=self.config.algorithm,
        )
        logger.debug("Issued session token for %s", email)
        return SecretStr(encoded)

    # PUBLIC_INTERFACE
    def decode(self, token: TokenInput) -> Dict[str, Any]:
        """
        Verify a token's signature and expiry and return its claims.

        The signature is checked before any claim is read.

        Args:
            token: Encoded JWT.

        Returns:
            Dictionary containing the decoded token payload.

        Raises:
            TokenExpiredError: If the token is at or past its expiry.
            TokenInvalidError: If the token is malformed or the signature does not match.
        """
        try:
            return jwt.decode(
                _raw_token(token),
                self.config.secret_key.get_secret_value(),
                algorithms=[self.config.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except InvalidTokenError as e:
            raise TokenInvalidError(f"Invalid token: {e}") from e

    # PUBLIC_INTERFACE
    def verify(self, token: TokenInput) -> Email:
        """
        Verify a token and return the email it was issued to.

        Raises:
            TokenExpiredError: If the token has expired.
            TokenInvalidError: If the token is invalid.
        """
        payload = self.decode(token)
        try:
            return Email.parse(payload["sub"])
        except (ValueError, KeyError) as e:
            raise TokenInvalidError("Token subject is not a valid email") from e

    # PUBLIC_INTERFACE
    def get_token_expiration(self, token: TokenInput) -> datetime.datetime:
        """
        Get the expiration time of a valid token.

        Returns:
            Timezone-aware UTC datetime of the ``exp`` claim.

        Raises:
            TokenError: If the token does not verify.
        """
        payload = self.decode(token)
        return datetime.datetime.fromtimestamp(payload["exp"], tz=datetime.timezone.utc)
