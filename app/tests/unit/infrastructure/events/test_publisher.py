"""Unit tests for the Redis stream publisher."""

from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from infrastructure.events.models import BulkCompleted
from infrastructure.events.publisher import RedisStreamPublisher


@pytest.fixture
def client():
    mock = MagicMock()
    mock.xadd.return_value = "1700000000000-0"
    return mock


@pytest.fixture
def event():
    return BulkCompleted(
        batch_id="b-1", total_recipients=2, success_count=2, failed_count=0, type="x"
    )


@pytest.mark.unit
class TestRedisStreamPublisher:
    def test_publish_to_default_stream(self, client, event):
        publisher = RedisStreamPublisher(client, "notification-events")

        entry_id = publisher.publish(event)

        assert entry_id == "1700000000000-0"
        stream, fields = client.xadd.call_args[0]
        assert stream == "notification-events"
        assert fields["eventType"] == "notification.bulk.completed"
        assert fields["batchId"] == "b-1"
        assert fields["totalRecipients"] == "2"
        assert client.xadd.call_args.kwargs == {"maxlen": None, "approximate": False}

    def test_publish_to_explicit_stream_with_cap(self, client, event):
        publisher = RedisStreamPublisher(client, "notification-events", maxlen=1000)

        publisher.publish(event, stream="other")

        assert client.xadd.call_args[0][0] == "other"
        assert client.xadd.call_args.kwargs == {"maxlen": 1000, "approximate": True}

    def test_publish_fields_flattens(self, client):
        publisher = RedisStreamPublisher(client, "s")

        publisher.publish_fields("s", {"proctorIds": ["p-1"], "flag": False})

        assert client.xadd.call_args[0][1] == {"proctorIds.[0]": "p-1", "flag": "false"}

    def test_redis_error_returns_none(self, client, event):
        client.xadd.side_effect = RedisConnectionError("down")
        publisher = RedisStreamPublisher(client, "s")

        assert publisher.publish(event) is None
