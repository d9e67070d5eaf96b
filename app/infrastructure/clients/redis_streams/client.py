"""Redis client factory for stream consumption and publishing."""

from redis import Redis
from redis.exceptions import RedisError

from infrastructure.configuration import RedisSettings
from infrastructure.logging import get_module_logger

logger = get_module_logger()


def create_redis_client(settings: RedisSettings, block_ms: int = 1000) -> Redis:
    """Create a text-mode Redis client.

    The socket timeout is kept above the stream block time so a blocking
    XREADGROUP never trips it.

    Args:
        settings: RedisSettings with the connection URL
        block_ms: Longest XREADGROUP block the client will issue
    """
    socket_timeout = max(settings.REDIS_SOCKET_TIMEOUT_SECONDS, block_ms / 1000 + 1)
    client = Redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_timeout=socket_timeout,
        health_check_interval=30,
    )
    logger.info("redis_client_created", socket_timeout=socket_timeout)
    return client


def healthcheck(client: Redis) -> bool:
    try:
        return bool(client.ping())
    except RedisError as e:
        logger.error("redis_healthcheck_failed", error=str(e))
        return False
