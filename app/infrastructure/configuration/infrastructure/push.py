"""Push connection (server-sent events) settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class PushSettings(InfrastructureSettings):
    """Long-lived push connection configuration.

    Environment Variables:
        PUSH_HEARTBEAT_INTERVAL_SECONDS: Heartbeat sweep interval (default: 30s)
        PUSH_CONNECTION_TIMEOUT_SECONDS: Idle timeout before a connection is
            force-completed (default: 86400s = 24h)
        PUSH_QUEUE_SIZE: Frames buffered per connection before writes fail
        PUSH_REPLAY_BUFFER_SIZE: Recent user events kept for Last-Event-ID replay
        PUSH_REPLAY_MAX_USERS: Users with a replay buffer; the least recently
            sent-to user is evicted past this
    """

    heartbeat_interval_seconds: int = Field(
        default=30, alias="PUSH_HEARTBEAT_INTERVAL_SECONDS"
    )
    connection_timeout_seconds: int = Field(
        default=86400, alias="PUSH_CONNECTION_TIMEOUT_SECONDS"
    )
    queue_size: int = Field(default=100, alias="PUSH_QUEUE_SIZE")
    replay_buffer_size: int = Field(default=50, alias="PUSH_REPLAY_BUFFER_SIZE")
    replay_max_users: int = Field(default=10000, alias="PUSH_REPLAY_MAX_USERS")
