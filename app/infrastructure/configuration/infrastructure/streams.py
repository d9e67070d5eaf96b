"""Event stream consumption settings."""

from typing import List

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class StreamSettings(InfrastructureSettings):
    """Redis stream consumer group configuration.

    Environment Variables:
        STREAM_INGESTION_ENABLED: Poll inbound streams (default: True)
        STREAM_CONSUMER_GROUP: Consumer group name
        STREAM_CONSUMER_NAME: Consumer name inside the group
        STREAM_POLL_INTERVAL_SECONDS: Delay between polls (default: 1s)
        STREAM_READ_COUNT: Max entries read per stream per poll (default: 10)
        STREAM_BLOCK_MS: Max time a read blocks waiting for entries (default: 1000)
        STREAM_USER_EVENTS: Stream carrying user registrations
        STREAM_ASSESSMENT_EVENTS: Stream carrying session and assessment events
        STREAM_PROCTORING_EVENTS: Stream carrying proctoring violations
        STREAM_NOTIFICATION_EVENTS: Outbound stream for delivery outcome events
        STREAM_BASE64_VALUES: Field values are base64 encoded (default: False)
        STREAM_MAX_DELIVERIES: Deliveries after which an entry whose handler keeps
            failing is acknowledged and dropped (default: 5, 0 = never)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        streams = settings.streams.inbound_streams
        ```
    """

    ingestion_enabled: bool = Field(default=True, alias="STREAM_INGESTION_ENABLED")
    consumer_group: str = Field(
        default="notification-service-group", alias="STREAM_CONSUMER_GROUP"
    )
    consumer_name: str = Field(
        default="notification-service-1", alias="STREAM_CONSUMER_NAME"
    )
    poll_interval_seconds: int = Field(default=1, alias="STREAM_POLL_INTERVAL_SECONDS")
    read_count: int = Field(default=10, alias="STREAM_READ_COUNT")
    block_ms: int = Field(default=1000, alias="STREAM_BLOCK_MS")
    user_events: str = Field(default="user-events", alias="STREAM_USER_EVENTS")
    assessment_events: str = Field(
        default="assessment-events", alias="STREAM_ASSESSMENT_EVENTS"
    )
    proctoring_events: str = Field(
        default="proctoring-events", alias="STREAM_PROCTORING_EVENTS"
    )
    notification_events: str = Field(
        default="notification-events", alias="STREAM_NOTIFICATION_EVENTS"
    )
    base64_values: bool = Field(default=False, alias="STREAM_BASE64_VALUES")
    max_deliveries: int = Field(default=5, alias="STREAM_MAX_DELIVERIES")

    @property
    def inbound_streams(self) -> List[str]:
        """Streams consumed by the ingestor, in read order."""
        return [self.user_events, self.assessment_events, self.proctoring_events]
