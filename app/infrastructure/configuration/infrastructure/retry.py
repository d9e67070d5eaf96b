"""Retry sweep infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class RetrySettings(InfrastructureSettings):
    """Retry configuration for failed notification deliveries.

    Failed records are re-driven by a fixed-delay sweep. There is no
    backoff curve: every sweep picks up every retryable record until the
    attempt budget is exhausted.

    Environment Variables:
        RETRY_MAX_ATTEMPTS: Total delivery attempts per record (default: 3)
        RETRY_SWEEP_DELAY_SECONDS: Delay between sweeps (default: 60s)
        RETRY_BATCH_SIZE: Records re-driven per sweep (default: 100)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()
        max_attempts = settings.retry.max_attempts
        ```
    """

    max_attempts: int = Field(
        default=3,
        alias="RETRY_MAX_ATTEMPTS",
        description="Maximum delivery attempts before a record is permanently failed",
    )
    sweep_delay_seconds: int = Field(
        default=60,
        alias="RETRY_SWEEP_DELAY_SECONDS",
        description="Fixed delay between retry sweeps (seconds)",
    )
    batch_size: int = Field(
        default=100,
        alias="RETRY_BATCH_SIZE",
        description="Number of failed records re-driven per sweep",
    )
