"""
Authentication functionality for the authentication service.

This module provides the ``AuthenticationManager``, which drives the signup,
login, second-factor verification, logout and token validation protocols on
top of the credential, revocation and challenge stores and the session token
codec. Store and codec errors are translated into the ``AuthError``
hierarchy below and never reach callers raw.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import SecretStr

from auth_service.domain import Email, LoginAttemptId, Password, TwoFACode, User
from auth_service.email_client import EmailClient
from auth_service.security import (PasswordHasher, PasswordHashError,
                                   PasswordValidator, WeakPasswordError)
from auth_service.stores.base import BannedTokenStore, TwoFACodeStore, UserStore
from auth_service.stores.errors import (InvalidPasswordError,
                                        LoginAttemptNotFoundError,
                                        UnexpectedStoreError,
                                        UserAlreadyExistsError,
                                        UserNotFoundError)
from auth_service.token import SessionTokenCodec, TokenError

# Configure logging
logger = logging.getLogger(__name__)

TWO_FA_EMAIL_SUBJECT = "2FA Code"


class AuthError(Exception):
    """Base exception for authentication-related errors."""
    pass


class MalformedInputError(AuthError):
    """Exception raised when input fails format validation."""
    pass


class UserExistsError(AuthError):
    """Exception raised when trying to create a user that already exists."""
    pass


class InvalidCredentialsError(AuthError):
    """
    Exception raised when credentials are invalid.

    Covers unknown users, wrong passwords and wrong, missing or already
    consumed two-factor challenges alike.
    """
    pass


class InvalidTokenError(AuthError):
    """Exception raised when a session token is invalid, expired or banned."""
    pass


class UnexpectedAuthError(AuthError):
    """Exception raised when a backend fails. The cause is chained, never shown."""
    pass


@dataclass(frozen=True)
class LoginResult:
    """
    Outcome of a successful password check.

    Exactly one of ``token`` and ``login_attempt_id`` is set.
    """
    token: Optional[SecretStr] = None
    login_attempt_id: Optional[LoginAttemptId] = None

    @property
    def requires_2fa(self) -> bool:
        return self.login_attempt_id is not None


class AuthenticationManager:
    """
    Authentication manager for user registration and session management.

    Depends only on the store interfaces, so backends can be swapped without
    touching the protocol logic.
    """

    def __init__(
        self,
        user_store: UserStore,
        banned_token_store: BannedTokenStore,
        two_fa_code_store: TwoFACodeStore,
        token_codec: SessionTokenCodec,
        password_hasher: PasswordHasher,
        email_client: EmailClient,
        password_validator: Optional[PasswordValidator] = None,
    ):
        self.user_store = user_store
        self.banned_token_store = banned_token_store
        self.two_fa_code_store = two_fa_code_store
        self.token_codec = token_codec
        self.password_hasher = password_hasher
        self.email_client = email_client
        self.password_validator = password_validator or PasswordValidator()
        # Verified against on logins for unknown users
        self._dummy_hash = password_hasher.hash_blocking(Password.parse("dummy-password"))

    # PUBLIC_INTERFACE
    async def signup(self, email: str, password: str, requires_2fa: bool) -> User:
        """
        Register a new user.

        Args:
            email: Email address for the new user.
            password: Password for the new user.
            requires_2fa: Whether logins must pass a second factor.

        Returns:
            The stored user.

        Raises:
            MalformedInputError: If the email or password is malformed.
            UserExistsError: If a user with the same email already exists.
            UnexpectedAuthError: If a backend fails.
        """
        parsed_email = self._parse_email(email)
        try:
            parsed_password = self.password_validator.parse(password)
        except (WeakPasswordError, ValueError) as e:
            raise MalformedInputError(str(e)) from e

        try:
            await self.user_store.get_user(parsed_email)
        except UserNotFoundError:
            pass
        except UnexpectedStoreError as e:
            raise self._unexpected("Failed to look up user", e)
        else:
            raise UserExistsError(f"User already exists: {parsed_email}")

        try:
            password_hash = await self.password_hasher.hash(parsed_password)
        except PasswordHashError as e:
            raise self._unexpected("Failed to hash password", e)

        user = User(email=parsed_email, password_hash=password_hash, requires_2fa=requires_2fa)
        try:
            await self.user_store.add_user(user)
        except UserAlreadyExistsError as e:
            raise UserExistsError(f"User already exists: {parsed_email}") from e
        except UnexpectedStoreError as e:
            raise self._unexpected("Failed to add user", e)

        logger.info("User registered: %s", parsed_email)
        return user

    # PUBLIC_INTERFACE
    async def login(self, email: str, password: str) -> LoginResult:
        """
        Check a user's password and either issue a session token or start a
        second-factor challenge.

        Returns:
            LoginResult holding a token, or a login attempt id when the user
            requires a second factor. The code itself is only sent by email.

        Raises:
            MalformedInputError: If the email or password is malformed.
            InvalidCredentialsError: If the user does not exist or the password is wrong.
            UnexpectedAuthError: If a backend fails.
        """
        parsed_email = self._parse_email(email)
        try:
            parsed_password = Password.parse(password, min_length=self.password_validator.min_length)
        except ValueError as e:
            raise MalformedInputError(str(e)) from e

        try:
            await self.user_store.validate_user(parsed_email, parsed_password)
            user = await self.user_store.get_user(parsed_email)
        except UserNotFoundError as e:
            await self._equalize_timing(parsed_password)
            logger.warning("Failed login for %s", parsed_email)
            raise InvalidCredentialsError("Incorrect credentials") from e
        except InvalidPasswordError as e:
            logger.warning("Failed login for %s", parsed_email)
            raise InvalidCredentialsError("Incorrect credentials") from e
        except UnexpectedStoreError as e:
            raise self._unexpected("Failed to validate user", e)

        if not user.requires_2fa:
            logger.info("User logged in: %s", parsed_email)
            return LoginResult(token=self.token_codec.issue(user.email))

        login_attempt_id = LoginAttemptId.generate()
        code = TwoFACode.generate()
        try:
            await self.two_fa_code_store.add_code(user.email, login_attempt_id, code)
        except UnexpectedStoreError as e:
            raise self._unexpected("Failed to store 2FA code", e)

        try:
            await self.email_client.send_email(user.email, TWO_FA_EMAIL_SUBJECT, code.expose_secret())
        except Exception as e:
            raise self._unexpected("Failed to send 2FA code", e)

        logger.info("2FA challenge issued for %s", parsed_email)
        return LoginResult(login_attempt_id=login_attempt_id)

    # PUBLIC_INTERFACE
    async def verify_2fa(self, email: str, login_attempt_id: str, code: Union[str, int]) -> SecretStr:
        """
        Complete a second-factor challenge.

        A matching challenge is consumed before the token is issued, so the
        same code cannot be replayed, not even by concurrent requests.

        Returns:
            A new session token.

        Raises:
            MalformedInputError: If any argument is malformed.
            InvalidCredentialsError: If no live challenge exists or it does not match.
            UnexpectedAuthError: If a backend fails.
        """
        parsed_email = self._parse_email(email)
        try:
            claimed_attempt_id = LoginAttemptId.parse(login_attempt_id)
            claimed_code = TwoFACode.parse(code)
        except ValueError as e:
            raise MalformedInputError(str(e)) from e

        try:
            stored_attempt_id, stored_code = await self.two_fa_code_store.get_code(parsed_email)
        except LoginAttemptNotFoundError as e:
            raise InvalidCredentialsError("Incorrect credentials") from e
        except UnexpectedStoreError as e:
            raise self._unexpected("Failed to read 2FA code", e)

        attempt_matches = stored_attempt_id == claimed_attempt_id
        code_matches = stored_code == claimed_code
        if not (attempt_matches and code_matches):
            logger.warning("Failed 2FA verification for %s", parsed_email)
            raise InvalidCredentialsError("Incorrect credentials")

        try:
            consumed = await self.two_fa_code_store.remove_code(parsed_email)
        except UnexpectedStoreError as e:
            raise self._unexpected("Failed to remove 2FA code", e)

        # Only the caller that deleted the challenge may log in
        if not consumed:
            logger.warning("2FA challenge for %s was already used", parsed_email)
            raise InvalidCredentialsError("Incorrect credentials")

        logger.info("User logged in with 2FA: %s", parsed_email)
        return self.token_codec.issue(parsed_email)

    # PUBLIC_INTERFACE
    async def logout(self, token: Union[str, SecretStr]) -> None:
        """
        Revoke a session token. Revoking an already revoked token is not an error.

        Raises:
            InvalidTokenError: If the token does not verify.
            UnexpectedAuthError: If the revocation store fails.
        """
        secret = self._wrap_token(token)
        try:
            email = self.token_codec.verify(secret)
        except TokenError as e:
            raise InvalidTokenError(str(e)) from e

        try:
            await self.banned_token_store.ban_token(secret)
        except UnexpectedStoreError as e:
            raise self._unexpected("Failed to ban token", e)

        logger.info("User logged out: %s", email)

    # PUBLIC_INTERFACE
    async def validate_token(self, token: Union[str, SecretStr]) -> Email:
        """
        Check that a session token is usable: correctly signed, unexpired and
        not revoked.

        Returns:
            Email of the token's owner.

        Raises:
            InvalidTokenError: If the token is invalid, expired or banned.
            UnexpectedAuthError: If the revocation store fails.
        """
        secret = self._wrap_token(token)
        try:
            email = self.token_codec.verify(secret)
        except TokenError as e:
            raise InvalidTokenError(str(e)) from e

        try:
            banned = await self.banned_token_store.is_banned(secret)
        except UnexpectedStoreError as e:
            raise self._unexpected("Failed to check banned token", e)

        if banned:
            raise InvalidTokenError("Token has been revoked")
        return email

    @staticmethod
    def _parse_email(email: str) -> Email:
        try:
            return Email.parse(email)
        except ValueError as e:
            raise MalformedInputError(str(e)) from e

    @staticmethod
    def _wrap_token(token: Union[str, SecretStr]) -> SecretStr:
        if isinstance(token, SecretStr):
            return token
        return SecretStr(token)

    @staticmethod
    def _unexpected(message: str, cause: Exception) -> UnexpectedAuthError:
        logger.error("%s: %s", message, type(cause).__name__, exc_info=cause)
        error = UnexpectedAuthError(message)
        error.__cause__ = cause
        return error

    async def _equalize_timing(self, password: Password) -> None:
        # Unknown users cost one hash verification, like known ones
        try:
            await self.password_hasher.verify(self._dummy_hash, password)
        except PasswordHashError as e:
            raise self._unexpected("Failed to hash password", e)
