"""
Tests for the in-memory store backends.
"""
import asyncio

import pytest
from pydantic import SecretStr

from auth_service.domain import Email, LoginAttemptId, Password, TwoFACode, User
from auth_service.stores.errors import (InvalidPasswordError, LoginAttemptNotFoundError,
                                        UnexpectedStoreError, UserAlreadyExistsError,
                                        UserNotFoundError)
from auth_service.stores.memory import HashmapTwoFACodeStore, HashsetBannedTokenStore

EMAIL = Email.parse("rando@gmail.com")


async def _make_user(password_hasher, email=EMAIL, password="password123", requires_2fa=False):
    password_hash = await password_hasher.hash(Password.parse(password))
    return User(email=email, password_hash=password_hash, requires_2fa=requires_2fa)


@pytest.mark.asyncio
async def test_add_and_get_user(user_store, password_hasher):
    user = await _make_user(password_hasher, requires_2fa=True)
    await user_store.add_user(user)

    stored = await user_store.get_user(EMAIL)
    assert stored.email == EMAIL
    assert stored.requires_2fa is True
    assert stored.password_hash != "password123"
    assert await password_hasher.verify(stored.password_hash, Password.parse("password123"))


@pytest.mark.asyncio
async def test_add_duplicate_user(user_store, password_hasher):
    user = await _make_user(password_hasher)
    await user_store.add_user(user)

    with pytest.raises(UserAlreadyExistsError):
        await user_store.add_user(user)
    assert len(user_store) == 1


@pytest.mark.asyncio
async def test_concurrent_duplicate_adds(user_store, password_hasher):
    user = await _make_user(password_hasher)

    results = await asyncio.gather(
        *(user_store.add_user(user) for _ in range(10)),
        return_exceptions=True,
    )

    assert results.count(None) == 1
    assert sum(isinstance(r, UserAlreadyExistsError) for r in results) == 9


@pytest.mark.asyncio
async def test_get_missing_user(user_store):
    with pytest.raises(UserNotFoundError):
        await user_store.get_user(EMAIL)


@pytest.mark.asyncio
async def test_validate_user(user_store, password_hasher):
    await user_store.add_user(await _make_user(password_hasher))

    await user_store.validate_user(EMAIL, Password.parse("password123"))

    with pytest.raises(InvalidPasswordError):
        await user_store.validate_user(EMAIL, Password.parse("wrongpassword"))
    with pytest.raises(UserNotFoundError):
        await user_store.validate_user(Email.parse("other@gmail.com"), Password.parse("password123"))


@pytest.mark.asyncio
async def test_validate_user_with_corrupt_hash(user_store):
    await user_store.add_user(User(email=EMAIL, password_hash="corrupt", requires_2fa=False))

    with pytest.raises(UnexpectedStoreError):
        await user_store.validate_user(EMAIL, Password.parse("password123"))


@pytest.mark.asyncio
async def test_ban_token(banned_token_store):
    token = SecretStr("test_token")

    assert await banned_token_store.is_banned(token) is False
    await banned_token_store.ban_token(token)
    assert await banned_token_store.is_banned(token) is True

    # Banning twice is fine
    await banned_token_store.ban_token(token)
    assert await banned_token_store.is_banned(token) is True
    assert await banned_token_store.is_banned(SecretStr("other_token")) is False


@pytest.mark.asyncio
async def test_banned_token_expires(clock):
    store = HashsetBannedTokenStore(ttl_seconds=60, clock=clock)
    token = SecretStr("test_token")
    await store.ban_token(token)

    clock.advance(59)
    assert await store.is_banned(token) is True

    clock.advance(1)
    assert await store.is_banned(token) is False
    assert len(store) == 0


@pytest.mark.asyncio
async def test_banned_token_purge(clock):
    store = HashsetBannedTokenStore(ttl_seconds=60, clock=clock)
    await store.ban_token(SecretStr("old"))
    clock.advance(30)
    await store.ban_token(SecretStr("new"))
    clock.advance(30)

    assert store.purge_expired() == 1
    assert len(store) == 1
    assert await store.is_banned(SecretStr("new")) is True


def test_stores_reject_non_positive_ttl(clock):
    with pytest.raises(ValueError):
        HashsetBannedTokenStore(ttl_seconds=0, clock=clock)
    with pytest.raises(ValueError):
        HashmapTwoFACodeStore(ttl_seconds=-1, clock=clock)


@pytest.mark.asyncio
async def test_add_and_get_code(two_fa_code_store):
    login_attempt_id = LoginAttemptId.generate()
    code = TwoFACode.generate()

    await two_fa_code_store.add_code(EMAIL, login_attempt_id, code)

    assert await two_fa_code_store.get_code(EMAIL) == (login_attempt_id, code)
    # Reading does not consume
    assert await two_fa_code_store.get_code(EMAIL) == (login_attempt_id, code)


@pytest.mark.asyncio
async def test_add_code_supersedes(two_fa_code_store):
    first = (LoginAttemptId.generate(), TwoFACode.parse("111111"))
    second = (LoginAttemptId.generate(), TwoFACode.parse("222222"))

    await two_fa_code_store.add_code(EMAIL, *first)
    await two_fa_code_store.add_code(EMAIL, *second)

    assert await two_fa_code_store.get_code(EMAIL) == second
    assert len(two_fa_code_store) == 1


@pytest.mark.asyncio
async def test_get_missing_code(two_fa_code_store):
    with pytest.raises(LoginAttemptNotFoundError):
        await two_fa_code_store.get_code(EMAIL)


@pytest.mark.asyncio
async def test_remove_code(two_fa_code_store):
    await two_fa_code_store.add_code(EMAIL, LoginAttemptId.generate(), TwoFACode.generate())

    assert await two_fa_code_store.remove_code(EMAIL) is True
    with pytest.raises(LoginAttemptNotFoundError):
        await two_fa_code_store.get_code(EMAIL)

    # Removing again is not an error
    assert await two_fa_code_store.remove_code(EMAIL) is False


@pytest.mark.asyncio
async def test_code_expires_after_ttl(two_fa_code_store, clock):
    await two_fa_code_store.add_code(EMAIL, LoginAttemptId.generate(), TwoFACode.generate())

    clock.advance(599)
    await two_fa_code_store.get_code(EMAIL)

    clock.advance(1)
    with pytest.raises(LoginAttemptNotFoundError):
        await two_fa_code_store.get_code(EMAIL)


@pytest.mark.asyncio
async def test_superseding_code_resets_ttl(two_fa_code_store, clock):
    await two_fa_code_store.add_code(EMAIL, LoginAttemptId.generate(), TwoFACode.generate())
    clock.advance(500)
    second = (LoginAttemptId.generate(), TwoFACode.generate())
    await two_fa_code_store.add_code(EMAIL, *second)

    clock.advance(500)
    assert await two_fa_code_store.get_code(EMAIL) == second


@pytest.mark.asyncio
async def test_code_purge(two_fa_code_store, clock):
    await two_fa_code_store.add_code(EMAIL, LoginAttemptId.generate(), TwoFACode.generate())
    await two_fa_code_store.add_code(Email.parse("b@b.com"), LoginAttemptId.generate(), TwoFACode.generate())
    clock.advance(600)

    assert two_fa_code_store.purge_expired() == 2
    assert len(two_fa_code_store) == 0


@pytest.mark.asyncio
async def test_remove_expired_code_reports_nothing_removed(two_fa_code_store, clock):
    await two_fa_code_store.add_code(EMAIL, LoginAttemptId.generate(), TwoFACode.generate())
    clock.advance(600)

    assert await two_fa_code_store.remove_code(EMAIL) is False
    assert len(two_fa_code_store) == 0
