"""Delivery failure state machine.

Permanence is derived rather than stored: a FAILED record whose retry count
has reached ``max_attempts`` is terminal. Recording a permanent failure
therefore jumps the count straight to the budget.
"""

from infrastructure.notifications.models import NotificationRecord, NotificationStatus
from infrastructure.resilience.retry.config import RetryConfig


class RetryPolicy:
    """Applies failure outcomes to notification records.

    Methods mutate the record in place and are meant to run inside a
    store ``update`` so the read-modify-write stays atomic.
    """

    def __init__(self, config: RetryConfig | None = None) -> None:
        self.config = config or RetryConfig()

    @property
    def max_attempts(self) -> int:
        return self.config.max_attempts

    def record_failure(self, record: NotificationRecord, error: str) -> bool:
        """Count one failed attempt.

        Returns:
            True if the record may be retried again.
        """
        record.retry_count = min(record.retry_count + 1, self.max_attempts)
        record.error_message = error
        record.status = NotificationStatus.FAILED
        return self.is_retryable(record)

    def record_permanent_failure(self, record: NotificationRecord, error: str) -> None:
        record.retry_count = max(record.retry_count, self.max_attempts)
        record.error_message = error
        record.status = NotificationStatus.FAILED

    def is_retryable(self, record: NotificationRecord) -> bool:
        return (
            record.status == NotificationStatus.FAILED
            and record.retry_count < self.max_attempts
        )

    def is_permanently_failed(self, record: NotificationRecord) -> bool:
        return (
            record.status == NotificationStatus.FAILED
            and record.retry_count >= self.max_attempts
        )
