"""Resilience patterns for notification delivery."""

from infrastructure.resilience.retry import (
    RetryConfig,
    RetryDispatcher,
    RetryPolicy,
    RetryWorker,
)

__all__ = [
    "RetryConfig",
    "RetryDispatcher",
    "RetryPolicy",
    "RetryWorker",
]
