"""Unit tests for the Redis client factory."""

from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from infrastructure.clients.redis_streams import create_redis_client, healthcheck
from infrastructure.configuration import RedisSettings


@pytest.mark.unit
class TestCreateRedisClient:
    @patch("infrastructure.clients.redis_streams.client.Redis")
    def test_text_mode_client(self, mock_redis):
        settings = RedisSettings(REDIS_URL="redis://cache:6379/1", REDIS_SOCKET_TIMEOUT_SECONDS=5)

        create_redis_client(settings, block_ms=1000)

        mock_redis.from_url.assert_called_once_with(
            "redis://cache:6379/1",
            decode_responses=True,
            socket_timeout=5,
            health_check_interval=30,
        )

    @patch("infrastructure.clients.redis_streams.client.Redis")
    def test_socket_timeout_exceeds_block_time(self, mock_redis):
        settings = RedisSettings(REDIS_SOCKET_TIMEOUT_SECONDS=2)

        create_redis_client(settings, block_ms=5000)

        assert mock_redis.from_url.call_args.kwargs["socket_timeout"] == 6


@pytest.mark.unit
class TestHealthcheck:
    def test_up(self):
        client = MagicMock()
        client.ping.return_value = True

        assert healthcheck(client) is True

    def test_down(self):
        client = MagicMock()
        client.ping.side_effect = RedisConnectionError("down")

        assert healthcheck(client) is False
