"""
JWT configuration for the session token codec.

The codec never reads process-wide state; it is handed a ``JWTConfig``
built once at startup (or per test).
"""
from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, SecretStr, field_validator

from auth_service.config.settings import Settings, get_settings


class JWTConfig(BaseModel):
    """Signing key, algorithm and lifetime for session tokens."""

    model_config = ConfigDict(frozen=True)

    secret_key: SecretStr
    algorithm: str = "HS256"
    token_ttl: timedelta = timedelta(minutes=120)

    @field_validator("token_ttl")
    @classmethod
    def positive_ttl(cls, v: timedelta) -> timedelta:
        if v.total_seconds() <= 0:
            raise ValueError("token_ttl must be positive")
        return v

    @property
    def ttl_seconds(self) -> int:
        return int(self.token_ttl.total_seconds())


# PUBLIC_INTERFACE
def get_jwt_config(settings: Optional[Settings] = None) -> JWTConfig:
    """
    Build the JWT configuration from application settings.

    Args:
        settings: Settings to read from. Defaults to the cached settings.

    Returns:
        JWTConfig for constructing a SessionTokenCodec.
    """
    settings = settings or get_settings()
    return JWTConfig(
        secret_key=settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        token_ttl=timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES),
    )
