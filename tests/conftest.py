"""
Test fixtures for the authentication service.

This module provides pytest fixtures for password hashing, token codecs,
in-memory and SQL stores, the authentication manager and the FastAPI test
client.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from auth_service.auth import AuthenticationManager
from auth_service.config import JWTConfig, Settings
from auth_service.database import Database
from auth_service.email_client import MockEmailClient
from auth_service.security import PasswordHasher
from auth_service.stores.memory import (HashmapTwoFACodeStore, HashmapUserStore,
                                        HashsetBannedTokenStore)
from auth_service.token import SessionTokenCodec
from main import create_app

TEST_SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs256"

# Cheap argon2 parameters so the suite stays fast
TEST_MEMORY_COST = 1024
TEST_TIME_COST = 1


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def password_hasher():
    """Create a password hasher with low cost parameters."""
    return PasswordHasher(memory_cost=TEST_MEMORY_COST, time_cost=TEST_TIME_COST)


@pytest.fixture
def jwt_config():
    return JWTConfig(
        secret_key=SecretStr(TEST_SECRET_KEY),
        algorithm="HS256",
        token_ttl=timedelta(minutes=10),
    )


@pytest.fixture
def token_codec(jwt_config):
    return SessionTokenCodec(jwt_config)


@pytest.fixture
def user_store(password_hasher):
    return HashmapUserStore(password_hasher)


@pytest.fixture
def banned_token_store(token_codec, clock):
    return HashsetBannedTokenStore(token_codec.ttl_seconds, clock=clock)


@pytest.fixture
def two_fa_code_store(clock):
    return HashmapTwoFACodeStore(clock=clock)


@pytest.fixture
def email_client():
    return MockEmailClient()


@pytest.fixture
def auth_manager(user_store, banned_token_store, two_fa_code_store, token_codec,
                 password_hasher, email_client):
    """Create an authentication manager over in-memory stores."""
    return AuthenticationManager(
        user_store=user_store,
        banned_token_store=banned_token_store,
        two_fa_code_store=two_fa_code_store,
        token_codec=token_codec,
        password_hasher=password_hasher,
        email_client=email_client,
    )


@pytest.fixture
def database():
    """Create an in-memory SQLite database with all tables."""
    db = Database("sqlite:///:memory:")
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def test_settings():
    return Settings(
        JWT_SECRET_KEY=SecretStr(TEST_SECRET_KEY),
        JWT_ACCESS_TOKEN_EXPIRE_MINUTES=10,
        PASSWORD_HASH_MEMORY_COST=TEST_MEMORY_COST,
        PASSWORD_HASH_TIME_COST=TEST_TIME_COST,
        USER_STORE_BACKEND="memory",
        TOKEN_STORE_BACKEND="memory",
    )


@pytest.fixture
def client(test_settings, email_client):
    """Create a FastAPI test client over in-memory stores."""
    app = create_app(test_settings, email_client=email_client)
    with TestClient(app) as test_client:
        yield test_client
