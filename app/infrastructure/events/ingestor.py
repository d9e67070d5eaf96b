"""Consumer-group ingestion of inbound Redis streams.

Each poll first re-reads this consumer's pending entries (delivered but
never acknowledged), then reads new ones. An entry is acknowledged only
after its handler returns, giving at-least-once processing:

- decode failure: logged and acknowledged, the entry can never succeed
- handler failure: logged and left pending for the next poll, until the
  entry has been delivered ``max_deliveries`` times; then it is acknowledged
  and dropped
- Redis errors: logged, the poll ends early, the loop keeps running
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from redis import Redis
from redis.exceptions import RedisError, ResponseError

from infrastructure.configuration import StreamSettings
from infrastructure.events.decoding import EventDecoder, StreamKind
from infrastructure.events.handlers import dispatch_event
from infrastructure.logging import bind_event_context, get_module_logger
from infrastructure.notifications.errors import EventDecodeError
from infrastructure.notifications.router import NotificationRouter

logger = get_module_logger()

StreamEntries = List[Tuple[str, List[Tuple[str, Optional[Dict[str, Any]]]]]]


def _normalize_response(response: Any) -> StreamEntries:
    """XREADGROUP replies are a list under RESP2 and a dict under RESP3."""
    if not response:
        return []
    if isinstance(response, Mapping):
        # RESP3 wraps each stream's entry list in one more list
        items: Iterable[Any] = [
            (stream, entries[0] if entries and isinstance(entries[0], list) else entries)
            for stream, entries in response.items()
        ]
    else:
        items = response

    normalized: StreamEntries = []
    for stream, entries in items:
        if isinstance(stream, bytes):
            stream = stream.decode()
        normalized.append(
            (stream, [(entry[0], entry[1]) for entry in entries if entry[0] is not None])
        )
    return normalized


class EventIngestor:
    """Polls inbound streams through a consumer group.

    Attributes:
        client: Redis client (``decode_responses=True``)
        decoder: EventDecoder for the configured streams
        router: NotificationRouter handed to event handlers
        group: Consumer group name
        consumer: Consumer name within the group
        streams: Streams read on every poll, in order
        read_count: Max entries per stream per read
        block_ms: Max block time for the new-entry read
        max_deliveries: Deliveries before a failing entry is dropped (0 = never)
    """

    def __init__(
        self,
        client: Redis,
        decoder: EventDecoder,
        router: NotificationRouter,
        group: str,
        consumer: str,
        streams: List[str],
        read_count: int = 10,
        block_ms: int = 1000,
        max_deliveries: int = 5,
    ) -> None:
        self.client = client
        self.decoder = decoder
        self.router = router
        self.group = group
        self.consumer = consumer
        self.streams = streams
        self.read_count = read_count
        self.block_ms = block_ms
        self.max_deliveries = max_deliveries
        self.log = logger.bind(group=group, consumer=consumer)

    @classmethod
    def from_settings(
        cls, client: Redis, router: NotificationRouter, settings: StreamSettings
    ) -> "EventIngestor":
        decoder = EventDecoder(
            {
                settings.user_events: StreamKind.USER,
                settings.assessment_events: StreamKind.ASSESSMENT,
                settings.proctoring_events: StreamKind.PROCTORING,
            },
            base64_values=settings.base64_values,
        )
        return cls(
            client=client,
            decoder=decoder,
            router=router,
            group=settings.consumer_group,
            consumer=settings.consumer_name,
            streams=settings.inbound_streams,
            read_count=settings.read_count,
            block_ms=settings.block_ms,
            max_deliveries=settings.max_deliveries,
        )

    def ensure_consumer_groups(self) -> None:
        """Create the consumer group on every stream. Idempotent.

        Raises:
            RedisError: for anything other than an existing group
        """
        for stream in self.streams:
            try:
                self.client.xgroup_create(stream, self.group, id="0", mkstream=True)
                self.log.info("consumer_group_created", stream=stream)
            except ResponseError as e:
                if "BUSYGROUP" not in str(e):
                    raise
                self.log.debug("consumer_group_exists", stream=stream)

    def poll_once(self) -> dict:
        """Read and process one batch from every stream.

        Returns:
            Dictionary with poll statistics:
                - read: Entries read (pending and new)
                - handled: Entries handled and acknowledged
                - skipped: Undecodable entries acknowledged without handling
                - failed: Entries left pending after a handler error
                - abandoned: Failing entries dropped after max_deliveries
        """
        stats = {"read": 0, "handled": 0, "skipped": 0, "failed": 0, "abandoned": 0}

        try:
            batches = self._read("0") + self._read(">", block=self.block_ms)
        except ResponseError as e:
            if "NOGROUP" in str(e):
                self.log.warning("consumer_group_missing", error=str(e))
                self._recreate_groups()
            else:
                self.log.error("stream_read_failed", error=str(e))
            return stats
        except RedisError as e:
            self.log.error("stream_read_failed", error=str(e))
            return stats

        for stream, entries in batches:
            for entry_id, fields in entries:
                stats["read"] += 1
                outcome = self._process(stream, entry_id, fields)
                stats[outcome] += 1

        if stats["read"]:
            self.log.info("stream_poll_complete", **stats)
        return stats

    def _read(self, start_id: str, block: Optional[int] = None) -> StreamEntries:
        response = self.client.xreadgroup(
            self.group,
            self.consumer,
            {stream: start_id for stream in self.streams},
            count=self.read_count,
            block=block,
        )
        return _normalize_response(response)

    def _recreate_groups(self) -> None:
        try:
            self.ensure_consumer_groups()
        except RedisError as e:
            self.log.error("consumer_group_create_failed", error=str(e))

    def _process(
        self, stream: str, entry_id: str, fields: Optional[Dict[str, Any]]
    ) -> str:
        with bind_event_context(stream=stream, entry_id=entry_id):
            if not fields:
                # Pending entry trimmed or deleted from the stream
                self.log.warning("stream_entry_empty")
                self._ack(stream, entry_id)
                return "skipped"

            try:
                event = self.decoder.decode(stream, entry_id, fields)
            except EventDecodeError as e:
                self.log.warning("stream_entry_skipped", error=str(e))
                self._ack(stream, entry_id)
                return "skipped"

            try:
                dispatch_event(event, self.router)
            except Exception as e:
                self.log.error(
                    "stream_entry_handler_failed",
                    event_type=event.event_type,
                    error=str(e),
                    exc_info=True,
                )
                return self._give_up_or_retry(stream, entry_id)

            self._ack(stream, entry_id)
            return "handled"

    def _give_up_or_retry(self, stream: str, entry_id: str) -> str:
        if self.max_deliveries <= 0:
            return "failed"
        deliveries = self._delivery_count(stream, entry_id)
        if deliveries < self.max_deliveries:
            return "failed"
        self.log.error("stream_entry_abandoned", deliveries=deliveries)
        self._ack(stream, entry_id)
        return "abandoned"

    def _delivery_count(self, stream: str, entry_id: str) -> int:
        try:
            pending = self.client.xpending_range(
                stream,
                self.group,
                min=entry_id,
                max=entry_id,
                count=1,
                consumername=self.consumer,
            )
        except RedisError as e:
            self.log.error("stream_pending_lookup_failed", error=str(e))
            return 0
        if not pending:
            return 0
        return int(pending[0]["times_delivered"])

    def _ack(self, stream: str, entry_id: str) -> None:
        try:
            self.client.xack(stream, self.group, entry_id)
        except RedisError as e:
            # Unacknowledged entries are re-read from the pending list
            self.log.error("stream_ack_failed", error=str(e))
