"""Unit tests for consumer-group stream ingestion."""

from unittest.mock import MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from infrastructure.configuration import StreamSettings
from infrastructure.events.ingestor import EventIngestor, _normalize_response
from tests.factories.events import (
    make_session_completed_fields,
    make_user_registered_fields,
)

STREAMS = ["user-events", "assessment-events", "proctoring-events"]


@pytest.fixture
def client():
    mock = MagicMock()
    mock.xreadgroup.return_value = []
    mock.xpending_range.return_value = []
    return mock


@pytest.fixture
def router():
    return MagicMock()


@pytest.fixture
def ingestor(client, router):
    return EventIngestor.from_settings(client, router, StreamSettings())


def _reads(pending, new):
    """xreadgroup side effect: pending read first, then new entries."""
    return [pending, new]


@pytest.mark.unit
class TestConsumerGroups:
    def test_creates_group_on_every_stream(self, ingestor, client):
        ingestor.ensure_consumer_groups()

        assert [c.args[0] for c in client.xgroup_create.call_args_list] == STREAMS
        for c in client.xgroup_create.call_args_list:
            assert c.args[1] == "notification-service-group"
            assert c.kwargs == {"id": "0", "mkstream": True}

    def test_existing_group_is_not_an_error(self, ingestor, client):
        client.xgroup_create.side_effect = ResponseError(
            "BUSYGROUP Consumer Group name already exists"
        )

        ingestor.ensure_consumer_groups()

        assert client.xgroup_create.call_count == 3

    def test_other_errors_propagate(self, ingestor, client):
        client.xgroup_create.side_effect = ResponseError("WRONGTYPE")

        with pytest.raises(ResponseError):
            ingestor.ensure_consumer_groups()


@pytest.mark.unit
class TestPollOnce:
    def test_reads_pending_then_new(self, ingestor, client):
        ingestor.poll_once()

        pending, new = client.xreadgroup.call_args_list
        assert pending.args[2] == {stream: "0" for stream in STREAMS}
        assert pending.kwargs["block"] is None
        assert new.args[2] == {stream: ">" for stream in STREAMS}
        assert new.kwargs["block"] == 1000
        assert new.kwargs["count"] == 10

    def test_handles_and_acks_entry(self, ingestor, client, router):
        client.xreadgroup.side_effect = _reads(
            [], [["user-events", [("1-0", make_user_registered_fields())]]]
        )

        stats = ingestor.poll_once()

        assert stats == {"read": 1, "handled": 1, "skipped": 0, "failed": 0, "abandoned": 0}
        router.route.assert_called_once()
        assert router.route.call_args.args[:2] == ("user.registered", "42")
        client.xack.assert_called_once_with(
            "user-events", "notification-service-group", "1-0"
        )

    def test_unparseable_entry_is_acked_without_routing(self, ingestor, client, router):
        client.xreadgroup.side_effect = _reads(
            [], [["assessment-events", [("2-0", {"unexpected": "shape"})]]]
        )

        stats = ingestor.poll_once()

        assert stats["skipped"] == 1
        router.route.assert_not_called()
        client.xack.assert_called_once_with(
            "assessment-events", "notification-service-group", "2-0"
        )

    def test_handler_failure_leaves_entry_pending(self, ingestor, client, router):
        router.route.side_effect = RuntimeError("store down")
        client.xreadgroup.side_effect = _reads(
            [], [["assessment-events", [("3-0", make_session_completed_fields())]]]
        )

        stats = ingestor.poll_once()

        assert stats["failed"] == 1
        client.xack.assert_not_called()

    def test_entry_failing_past_max_deliveries_is_dropped(self, ingestor, client, router):
        router.route.side_effect = RuntimeError("bad template data")
        client.xpending_range.return_value = [
            {"message_id": "3-0", "consumer": "notification-service-1", "times_delivered": 5}
        ]
        client.xreadgroup.side_effect = _reads(
            [["assessment-events", [("3-0", make_session_completed_fields())]]], []
        )

        stats = ingestor.poll_once()

        assert stats["abandoned"] == 1
        assert stats["failed"] == 0
        client.xpending_range.assert_called_once_with(
            "assessment-events",
            "notification-service-group",
            min="3-0",
            max="3-0",
            count=1,
            consumername="notification-service-1",
        )
        client.xack.assert_called_once_with(
            "assessment-events", "notification-service-group", "3-0"
        )

    def test_entry_below_max_deliveries_stays_pending(self, ingestor, client, router):
        router.route.side_effect = RuntimeError("store down")
        client.xpending_range.return_value = [{"message_id": "3-0", "times_delivered": 4}]
        client.xreadgroup.side_effect = _reads(
            [["assessment-events", [("3-0", make_session_completed_fields())]]], []
        )

        assert ingestor.poll_once()["failed"] == 1
        client.xack.assert_not_called()

    def test_pending_lookup_failure_keeps_entry(self, ingestor, client, router):
        router.route.side_effect = RuntimeError("store down")
        client.xpending_range.side_effect = RedisConnectionError("down")
        client.xreadgroup.side_effect = _reads(
            [], [["assessment-events", [("3-0", make_session_completed_fields())]]]
        )

        assert ingestor.poll_once()["failed"] == 1
        client.xack.assert_not_called()

    def test_unlimited_deliveries_never_drop(self, client, router):
        ingestor = EventIngestor.from_settings(
            client, router, StreamSettings(STREAM_MAX_DELIVERIES=0)
        )
        router.route.side_effect = RuntimeError("store down")
        client.xreadgroup.side_effect = _reads(
            [["assessment-events", [("3-0", make_session_completed_fields())]]], []
        )

        assert ingestor.poll_once()["failed"] == 1
        client.xpending_range.assert_not_called()

    def test_pending_entries_are_reprocessed(self, ingestor, client, router):
        client.xreadgroup.side_effect = _reads(
            [["user-events", [("1-0", make_user_registered_fields())]]], []
        )

        stats = ingestor.poll_once()

        assert stats["handled"] == 1
        client.xack.assert_called_once()

    def test_trimmed_pending_entry_is_acked(self, ingestor, client, router):
        client.xreadgroup.side_effect = _reads([["user-events", [("1-0", None)]]], [])

        stats = ingestor.poll_once()

        assert stats["skipped"] == 1
        router.route.assert_not_called()
        client.xack.assert_called_once_with(
            "user-events", "notification-service-group", "1-0"
        )

    def test_missing_group_is_recreated(self, ingestor, client):
        client.xreadgroup.side_effect = ResponseError("NOGROUP No such key")

        stats = ingestor.poll_once()

        assert stats["read"] == 0
        assert client.xgroup_create.call_count == 3

    def test_redis_outage_ends_poll_quietly(self, ingestor, client):
        client.xreadgroup.side_effect = RedisConnectionError("down")

        assert ingestor.poll_once() == {
            "read": 0,
            "handled": 0,
            "skipped": 0,
            "failed": 0,
            "abandoned": 0,
        }

    def test_ack_failure_is_logged(self, ingestor, client):
        client.xack.side_effect = RedisConnectionError("down")
        client.xreadgroup.side_effect = _reads(
            [], [["user-events", [("1-0", make_user_registered_fields())]]]
        )

        assert ingestor.poll_once()["handled"] == 1


@pytest.mark.unit
class TestNormalizeResponse:
    def test_empty(self):
        assert _normalize_response(None) == []
        assert _normalize_response([]) == []

    def test_resp2(self):
        response = [["user-events", [("1-0", {"a": "b"})]]]

        assert _normalize_response(response) == [("user-events", [("1-0", {"a": "b"})])]

    def test_resp3(self):
        response = {"user-events": [[("1-0", {"a": "b"})]]}

        assert _normalize_response(response) == [("user-events", [("1-0", {"a": "b"})])]

    def test_bytes_stream_names(self):
        assert _normalize_response([[b"s", []]]) == [("s", [])]
