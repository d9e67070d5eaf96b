"""Infrastructure configuration module - public API.

Centralized configuration management for the notification service using
Pydantic BaseSettings with domain-based organization.

Exports:
    Settings: Main settings class (for testing/overrides)

Example:
    ```python
    from infrastructure.services import get_settings

    settings = get_settings()

    redis_url = settings.redis.REDIS_URL
    max_attempts = settings.retry.max_attempts
    ```
"""

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.infrastructure import (
    PushSettings,
    RetrySettings,
    ServerSettings,
    StreamSettings,
)
from infrastructure.configuration.integrations import EmailSettings, RedisSettings

__all__ = [
    "Settings",
    "EmailSettings",
    "PushSettings",
    "RedisSettings",
    "RetrySettings",
    "ServerSettings",
    "StreamSettings",
]
