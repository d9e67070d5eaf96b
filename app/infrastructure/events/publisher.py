"""Publishing events to Redis streams.

Outcome events are best-effort: a failed publish is logged and never
raised, so it can never roll back a delivery that already happened.
"""

from typing import Any, Mapping, Optional, Protocol

from redis import Redis
from redis.exceptions import RedisError

from infrastructure.events.decoding import flatten_fields
from infrastructure.events.models import EventEnvelope
from infrastructure.logging import get_module_logger

logger = get_module_logger()


class OutcomePublisher(Protocol):
    def publish(self, event: EventEnvelope) -> Optional[str]: ...


class RedisStreamPublisher:
    """XADD-based publisher.

    Attributes:
        client: Redis client (``decode_responses=True``)
        stream: Default stream for ``publish``
        base64_values: Encode field values as base64
        maxlen: Optional approximate stream cap
    """

    def __init__(
        self,
        client: Redis,
        stream: str,
        base64_values: bool = False,
        maxlen: Optional[int] = None,
    ) -> None:
        self.client = client
        self.stream = stream
        self.base64_values = base64_values
        self.maxlen = maxlen

    def publish(self, event: EventEnvelope, stream: Optional[str] = None) -> Optional[str]:
        """Publish a typed event.

        Returns:
            The new entry id, or None when the write failed.
        """
        return self.publish_fields(stream or self.stream, event.to_wire())

    def publish_fields(self, stream: str, data: Mapping[str, Any]) -> Optional[str]:
        fields = flatten_fields(data, base64_values=self.base64_values)
        try:
            entry_id = self.client.xadd(
                stream,
                fields,
                maxlen=self.maxlen,
                approximate=self.maxlen is not None,
            )
        except RedisError as e:
            logger.error(
                "stream_publish_failed",
                stream=stream,
                event_type=data.get("eventType"),
                error=str(e),
            )
            return None

        logger.debug(
            "stream_event_published",
            stream=stream,
            entry_id=entry_id,
            event_type=data.get("eventType"),
        )
        return entry_id
