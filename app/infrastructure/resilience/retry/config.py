"""Retry system configuration."""

from dataclasses import dataclass


@dataclass
class RetryConfig:
    """Configuration for the delivery retry sweep.

    There is no backoff curve: a failed record is re-driven on every sweep
    until it succeeds or its attempt budget is spent.

    Attributes:
        max_attempts: Total delivery attempts allowed per record
        sweep_delay_seconds: Fixed delay between sweeps
        batch_size: Maximum records re-driven per sweep

    Example:
        config = RetryConfig(max_attempts=3, batch_size=50)
    """

    max_attempts: int = 3
    sweep_delay_seconds: int = 60
    batch_size: int = 100

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.sweep_delay_seconds < 1:
            raise ValueError("sweep_delay_seconds must be at least 1")
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")

    @classmethod
    def from_settings(cls, settings) -> "RetryConfig":
        """Build from ``settings.retry`` (RetrySettings)."""
        return cls(
            max_attempts=settings.max_attempts,
            sweep_delay_seconds=settings.sweep_delay_seconds,
            batch_size=settings.batch_size,
        )
