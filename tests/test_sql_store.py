"""
Tests for the SQLAlchemy user store.
"""
import asyncio

import pytest

from auth_service.database import Database, init_db
from auth_service.domain import Email, Password, User
from auth_service.models import UserRecord
from auth_service.stores.errors import (InvalidPasswordError, UnexpectedStoreError,
                                        UserAlreadyExistsError, UserNotFoundError)
from auth_service.stores.sql import SqlUserStore

EMAIL = Email.parse("a@b.com")


@pytest.fixture
def sql_user_store(database, password_hasher):
    return SqlUserStore(database, password_hasher)


async def _make_user(password_hasher, email=EMAIL, requires_2fa=False):
    password_hash = await password_hasher.hash(Password.parse("password123"))
    return User(email=email, password_hash=password_hash, requires_2fa=requires_2fa)


@pytest.mark.asyncio
async def test_add_and_get_user(sql_user_store, password_hasher, database):
    await sql_user_store.add_user(await _make_user(password_hasher, requires_2fa=True))

    user = await sql_user_store.get_user(EMAIL)
    assert user.email == EMAIL
    assert user.requires_2fa is True
    assert await password_hasher.verify(user.password_hash, Password.parse("password123"))

    with database.session_scope() as session:
        record = session.get(UserRecord, "a@b.com")
        assert record.password_hash != "password123"
        assert record.created_at is not None


@pytest.mark.asyncio
async def test_add_duplicate_user(sql_user_store, password_hasher):
    user = await _make_user(password_hasher)
    await sql_user_store.add_user(user)

    with pytest.raises(UserAlreadyExistsError):
        await sql_user_store.add_user(user)


@pytest.mark.asyncio
async def test_email_is_case_sensitive(sql_user_store, password_hasher):
    await sql_user_store.add_user(await _make_user(password_hasher))

    with pytest.raises(UserNotFoundError):
        await sql_user_store.get_user(Email.parse("A@b.com"))


@pytest.mark.asyncio
async def test_get_missing_user(sql_user_store):
    with pytest.raises(UserNotFoundError):
        await sql_user_store.get_user(EMAIL)


@pytest.mark.asyncio
async def test_validate_user(sql_user_store, password_hasher):
    await sql_user_store.add_user(await _make_user(password_hasher))

    await sql_user_store.validate_user(EMAIL, Password.parse("password123"))

    with pytest.raises(InvalidPasswordError):
        await sql_user_store.validate_user(EMAIL, Password.parse("password124"))
    with pytest.raises(UserNotFoundError):
        await sql_user_store.validate_user(Email.parse("x@b.com"), Password.parse("password123"))


@pytest.mark.asyncio
async def test_database_failure_is_unexpected(sql_user_store, password_hasher, database):
    database.drop_all()

    with pytest.raises(UnexpectedStoreError) as exc_info:
        await sql_user_store.get_user(EMAIL)
    assert exc_info.value.__cause__ is not None

    with pytest.raises(UnexpectedStoreError):
        await sql_user_store.add_user(await _make_user(password_hasher))

    database.create_all()


@pytest.mark.asyncio
async def test_concurrent_duplicate_adds(tmp_path, password_hasher):
    database = init_db(f"sqlite:///{tmp_path / 'auth.db'}")
    store = SqlUserStore(database, password_hasher)
    user = await _make_user(password_hasher)

    try:
        results = await asyncio.gather(
            *(store.add_user(user) for _ in range(4)),
            return_exceptions=True,
        )
    finally:
        database.dispose()

    assert results.count(None) == 1
    assert sum(isinstance(r, UserAlreadyExistsError) for r in results) == 3


def test_in_memory_database_shares_one_connection():
    database = Database("sqlite:///:memory:")
    database.create_all()
    with database.session_scope() as session:
        session.add(UserRecord(email="a@b.com", password_hash="x", requires_2fa=False))
    with database.session_scope() as session:
        assert session.get(UserRecord, "a@b.com") is not None
    database.dispose()
