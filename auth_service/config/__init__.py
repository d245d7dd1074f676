"""
Configuration package for the authentication service.
"""

from auth_service.config.jwt_config import JWTConfig, get_jwt_config
from auth_service.config.settings import Settings, get_settings

__all__ = [
    "JWTConfig",
    "get_jwt_config",
    "Settings",
    "get_settings",
]
