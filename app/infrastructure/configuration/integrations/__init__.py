"""Integration settings __init__ - exports all integration settings."""

from infrastructure.configuration.integrations.email import EmailSettings
from infrastructure.configuration.integrations.redis import RedisSettings

__all__ = [
    "EmailSettings",
    "RedisSettings",
]
