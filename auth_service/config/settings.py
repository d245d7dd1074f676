"""
Centralized configuration management for the authentication service.

This module provides a centralized configuration system using Pydantic BaseSettings
for managing all application settings including JWT, password hashing, storage
backends, and API settings.
"""
import os
import secrets
from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings class for all application configuration.

    Values are read from environment variables (matching the field names) and
    from an optional ``.env`` file.
    """
    # Application settings
    APP_NAME: str = "Authentication Service"
    APP_DESCRIPTION: str = "Credential, session token and two-factor authentication service"
    APP_VERSION: str = "0.1.0"
    APP_ENV: str = "development"
    DEBUG: bool = False

    # API settings
    API_PREFIX: str = "/auth"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    RELOAD: bool = False

    # Comma separated list of allowed origins
    CORS_ORIGINS: str = "*"

    # JWT settings
    JWT_SECRET_KEY: SecretStr = Field(
        default_factory=lambda: SecretStr(secrets.token_urlsafe(32))
    )
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=120, gt=0)
    JWT_COOKIE_NAME: str = "jwt"

    # Password policy
    PASSWORD_MIN_LENGTH: int = Field(default=8, ge=1)
    PASSWORD_REQUIRE_UPPERCASE: bool = False
    PASSWORD_REQUIRE_LOWERCASE: bool = False
    PASSWORD_REQUIRE_DIGIT: bool = False
    PASSWORD_REQUIRE_SPECIAL: bool = False

    # Argon2 cost parameters
    PASSWORD_HASH_MEMORY_COST: int = Field(default=15000, ge=8)
    PASSWORD_HASH_TIME_COST: int = Field(default=2, ge=1)

    # Two-factor challenge settings
    TWO_FA_CODE_TTL_SECONDS: int = Field(default=600, gt=0)

    # Storage backends
    USER_STORE_BACKEND: Literal["memory", "sql"] = "memory"
    TOKEN_STORE_BACKEND: Literal["memory", "redis"] = "memory"

    # Database settings
    DATABASE_URL: Optional[str] = None
    DATABASE_ECHO: bool = False

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_url(cls, v: Optional[str]) -> str:
        """Set default SQLite database URL if not provided."""
        if isinstance(v, str) and v:
            return v

        # Default to SQLite database in project root
        base_dir = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
        return f"sqlite:///{os.path.join(base_dir, 'auth.db')}"

    # Redis settings
    REDIS_URL: str = "redis://127.0.0.1:6379/0"

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        validate_default=True,
    )

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS_ORIGINS into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# PUBLIC_INTERFACE
@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings.

    Returns:
        Settings: The cached application settings instance.
    """
    return Settings()
