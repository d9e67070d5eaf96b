"""Retry sweep worker.

Re-drives FAILED notification records that still have attempts left. The
worker only selects and hands off; the dispatcher owns the state machine.
"""

from typing import Protocol

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import NotificationRecord
from infrastructure.notifications.stores import NotificationStore
from infrastructure.resilience.retry.config import RetryConfig

logger = get_module_logger()


class RetryDispatcher(Protocol):
    """What the worker needs from the delivery dispatcher."""

    def dispatch(self, record: NotificationRecord) -> None: ...

    def is_in_flight(self, record_id: str) -> bool: ...


class RetryWorker:
    """Fixed-delay sweep over retryable notification records.

    Attributes:
        store: NotificationStore holding the records
        dispatcher: Dispatcher used to re-send records
        config: RetryConfig controlling attempt budget and batch size
        worker_id: Identifier for this worker instance
    """

    def __init__(
        self,
        store: NotificationStore,
        dispatcher: RetryDispatcher,
        config: RetryConfig | None = None,
        worker_id: str = "retry-worker-1",
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.config = config or RetryConfig()
        self.worker_id = worker_id
        self.log = logger.bind(worker_id=worker_id)

    def process_batch(self) -> dict:
        """Re-dispatch one batch of retryable records.

        Returns:
            Dictionary with processing statistics:
                - processed: Records handed back to the dispatcher
                - skipped: Records still in flight from an earlier attempt
                - errors: Records whose re-dispatch raised

        Example:
            stats = worker.process_batch()
        """
        stats = {"processed": 0, "skipped": 0, "errors": 0}

        records = self.store.find_retryable(
            max_attempts=self.config.max_attempts,
            limit=self.config.batch_size,
        )
        if not records:
            self.log.debug("retry_batch_no_records")
            return stats

        self.log.info("retry_batch_start", record_count=len(records))

        for record in records:
            if self.dispatcher.is_in_flight(record.id):
                self.log.debug("retry_record_skipped_in_flight", record_id=record.id)
                stats["skipped"] += 1
                continue

            self.log.info(
                "retry_record_processing",
                record_id=record.id,
                channel=record.channel.value,
                attempt=record.retry_count + 1,
            )
            try:
                self.dispatcher.dispatch(record)
                stats["processed"] += 1
            except Exception as e:
                self.log.error(
                    "retry_processing_exception",
                    record_id=record.id,
                    error=str(e),
                    exc_info=True,
                )
                stats["errors"] += 1

        self.log.info("retry_batch_complete", **stats)
        return stats
