"""Infrastructure settings __init__ - exports all infrastructure settings."""

from infrastructure.configuration.infrastructure.push import PushSettings
from infrastructure.configuration.infrastructure.retry import RetrySettings
from infrastructure.configuration.infrastructure.server import ServerSettings
from infrastructure.configuration.infrastructure.streams import StreamSettings

__all__ = [
    "PushSettings",
    "RetrySettings",
    "ServerSettings",
    "StreamSettings",
]
