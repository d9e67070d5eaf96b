"""Bounded-attempt retry for failed notification deliveries.

Architecture:
- RetryConfig: attempt budget, sweep delay and batch size
- RetryPolicy: failure state machine applied to notification records
- RetryWorker: fixed-delay sweep that re-drives retryable records

Usage:
    from infrastructure.resilience.retry import RetryConfig, RetryPolicy, RetryWorker

    config = RetryConfig(max_attempts=3)
    worker = RetryWorker(store, dispatcher, config)
    worker.process_batch()
"""

from infrastructure.resilience.retry.config import RetryConfig
from infrastructure.resilience.retry.policy import RetryPolicy
from infrastructure.resilience.retry.worker import RetryDispatcher, RetryWorker

__all__ = [
    "RetryConfig",
    "RetryPolicy",
    "RetryDispatcher",
    "RetryWorker",
]
