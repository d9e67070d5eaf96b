"""Redis client for event streams."""

from infrastructure.clients.redis_streams.client import create_redis_client, healthcheck

__all__ = ["create_redis_client", "healthcheck"]
