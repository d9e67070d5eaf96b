"""Storage interfaces for notification records, preferences and templates.

The protocol-based design lets persistent backends slot in without touching
the router or dispatcher. The in-memory implementations hand out copies so
callers can never mutate stored state outside ``update``.
"""

import threading
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import (
    NotificationRecord,
    NotificationStatus,
    Preference,
    Template,
)

logger = get_module_logger()

RecordMutator = Callable[[NotificationRecord], None]


class NotificationStore(Protocol):
    """Persistence for notification records.

    Methods:
        save: Persist a new record and return its id
        get: Fetch a record by id
        update: Atomically apply a mutation to one record
        find_retryable: FAILED records still inside the attempt budget
        list_for_recipient: Inbox view for a user, newest first
    """

    def save(self, record: NotificationRecord) -> str: ...

    def get(self, record_id: str) -> Optional[NotificationRecord]: ...

    def update(
        self, record_id: str, mutator: RecordMutator
    ) -> Optional[NotificationRecord]:
        """Apply ``mutator`` to the stored record as one read-modify-write.

        Returns:
            The updated record, or None if it does not exist.
        """
        ...

    def find_retryable(
        self, max_attempts: int, limit: int = 100
    ) -> List[NotificationRecord]: ...

    def list_for_recipient(
        self, recipient_id: str, limit: int = 50
    ) -> List[NotificationRecord]: ...


class PreferenceStore(Protocol):
    def get_preference(self, user_id: str) -> Optional[Preference]: ...


class TemplateStore(Protocol):
    def get_template(self, name: str) -> Optional[Template]: ...


class InMemoryNotificationStore:
    """Thread-safe in-memory notification store.

    A short global lock guards the id map; mutations run under a per-record
    lock so concurrent email callbacks on different records never contend.
    """

    def __init__(self) -> None:
        self._records: Dict[str, NotificationRecord] = {}
        self._lock = threading.Lock()
        self._record_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)

    def save(self, record: NotificationRecord) -> str:
        with self._lock:
            self._records[record.id] = record.model_copy(deep=True)
        logger.debug(
            "notification_record_saved",
            notification_id=record.id,
            channel=record.channel.value,
            status=record.status.value,
        )
        return record.id

    def get(self, record_id: str) -> Optional[NotificationRecord]:
        with self._lock:
            record = self._records.get(record_id)
        return record.model_copy(deep=True) if record else None

    def update(
        self, record_id: str, mutator: RecordMutator
    ) -> Optional[NotificationRecord]:
        with self._lock:
            if record_id not in self._records:
                return None
            record_lock = self._record_locks[record_id]

        with record_lock:
            with self._lock:
                current = self._records[record_id]
            working = current.model_copy(deep=True)
            mutator(working)
            with self._lock:
                self._records[record_id] = working
        return working.model_copy(deep=True)

    def find_retryable(
        self, max_attempts: int, limit: int = 100
    ) -> List[NotificationRecord]:
        with self._lock:
            candidates = [
                record
                for record in self._records.values()
                if record.status == NotificationStatus.FAILED
                and record.retry_count < max_attempts
            ]
        candidates.sort(key=lambda r: r.created_at)
        return [record.model_copy(deep=True) for record in candidates[:limit]]

    def list_for_recipient(
        self, recipient_id: str, limit: int = 50
    ) -> List[NotificationRecord]:
        with self._lock:
            records = [
                record
                for record in self._records.values()
                if record.recipient_id == recipient_id
            ]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return [record.model_copy(deep=True) for record in records[:limit]]

    def count(self) -> int:
        with self._lock:
            return len(self._records)


class InMemoryPreferenceStore:
    def __init__(self, preferences: Iterable[Preference] = ()) -> None:
        self._lock = threading.Lock()
        self._preferences: Dict[str, Preference] = {p.user_id: p for p in preferences}

    def get_preference(self, user_id: str) -> Optional[Preference]:
        with self._lock:
            preference = self._preferences.get(user_id)
        return preference.model_copy(deep=True) if preference else None

    def put(self, preference: Preference) -> None:
        with self._lock:
            self._preferences[preference.user_id] = preference.model_copy(deep=True)


class InMemoryTemplateStore:
    def __init__(self, templates: Iterable[Template] = ()) -> None:
        self._lock = threading.Lock()
        self._templates: Dict[str, Template] = {t.name: t for t in templates}

    def get_template(self, name: str) -> Optional[Template]:
        with self._lock:
            return self._templates.get(name)

    def put(self, template: Template) -> None:
        with self._lock:
            self._templates[template.name] = template
