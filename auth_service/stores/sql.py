"""
Relational user store backed by SQLAlchemy.

Session work is blocking, so every operation runs in a worker thread. The
primary key on ``users.email`` is what serializes concurrent signups: the
loser of the race gets an ``IntegrityError`` and sees
``UserAlreadyExistsError``.
"""
import asyncio
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth_service.database import Database
from auth_service.domain import Email, Password, User
from auth_service.models import UserRecord
from auth_service.security import PasswordHasher, PasswordHashError
from auth_service.stores.base import UserStore
from auth_service.stores.errors import (
    InvalidPasswordError,
    UnexpectedStoreError,
    UserAlreadyExistsError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


class SqlUserStore(UserStore):
    """Identities stored in the ``users`` table."""

    def __init__(self, database: Database, password_hasher: PasswordHasher):
        self.database = database
        self.password_hasher = password_hasher

    async def add_user(self, user: User) -> None:
        await asyncio.to_thread(self._add_user, user)

    async def get_user(self, email: Email) -> User:
        return await asyncio.to_thread(self._get_user, email)

    async def validate_user(self, email: Email, password: Password) -> None:
        user = await self.get_user(email)
        try:
            verified = await self.password_hasher.verify(user.password_hash, password)
        except PasswordHashError as e:
            raise UnexpectedStoreError("Failed to verify password hash") from e
        if not verified:
            raise InvalidPasswordError("Invalid password")

    def _add_user(self, user: User) -> None:
        record = UserRecord(
            email=str(user.email),
            password_hash=user.password_hash,
            requires_2fa=user.requires_2fa,
        )
        try:
            with self.database.session_scope() as session:
                session.add(record)
        except IntegrityError as e:
            raise UserAlreadyExistsError(f"User already exists: {user.email}") from e
        except SQLAlchemyError as e:
            logger.error("Database error adding user %s: %s", user.email, type(e).__name__)
            raise UnexpectedStoreError("Failed to add user") from e
        logger.debug("Stored user %s", user.email)

    def _get_user(self, email: Email) -> User:
        try:
            with self.database.session_scope() as session:
                record = session.get(UserRecord, str(email))
                if record is None:
                    raise UserNotFoundError(f"User not found: {email}")
                return User(
                    email=Email.parse(record.email),
                    password_hash=record.password_hash,
                    requires_2fa=record.requires_2fa,
                )
        except SQLAlchemyError as e:
            logger.error("Database error reading user %s: %s", email, type(e).__name__)
            raise UnexpectedStoreError("Failed to read user") from e
        except ValueError as e:
            raise UnexpectedStoreError("Stored user record is invalid") from e
