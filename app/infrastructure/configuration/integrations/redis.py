"""Redis integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class RedisSettings(IntegrationSettings):
    """Redis connection configuration.

    Environment Variables:
        REDIS_URL: Connection URL (default: redis://localhost:6379/0)
        REDIS_SOCKET_TIMEOUT_SECONDS: Socket timeout; must exceed the stream
            block time (default: 5s)
    """

    REDIS_URL: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    REDIS_SOCKET_TIMEOUT_SECONDS: float = Field(
        default=5.0, alias="REDIS_SOCKET_TIMEOUT_SECONDS"
    )
