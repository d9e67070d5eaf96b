"""A single long-lived push connection rendered as server-sent events.

Writers never block: frames go into a bounded queue that the HTTP response
drains through ``stream()``. A closed, expired or backed-up connection
rejects the write with ``ConnectionWriteError`` so the registry can prune it.

``stream()`` is an async generator served on the event loop. Writers on
worker threads wake it with ``call_soon_threadsafe``, so an open stream
holds no thread.
"""

import asyncio
import json
import queue
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Optional

from infrastructure.logging import get_module_logger
from infrastructure.notifications.errors import ConnectionWriteError

logger = get_module_logger()

_CLOSE = object()


def format_event(event: str, data: Any, event_id: Optional[str] = None) -> str:
    """Serialize one event as an SSE frame.

    Example:
        >>> format_event("connect", {"userId": "42"}, "7")
        'id: 7\\nevent: connect\\ndata: {"userId": "42"}\\n\\n'
    """
    payload = data if isinstance(data, str) else json.dumps(data, default=str)
    lines = []
    if event_id is not None:
        lines.append(f"id: {event_id}")
    lines.append(f"event: {event}")
    lines.extend(f"data: {line}" for line in payload.splitlines() or [""])
    return "\n".join(lines) + "\n\n"


def format_comment(text: str) -> str:
    return f": {text}\n\n"


class PushConnection:
    """Transport handle for one SSE client.

    Attributes:
        key: User id (user connections) or topic name (topic subscriptions)
        user_id: Owning user, when known
        connection_id: Unique id for logs
        created_at: Wall-clock creation time
        timeout_seconds: Idle timeout; heartbeats do not count as activity
    """

    def __init__(
        self,
        key: str,
        user_id: Optional[str] = None,
        queue_size: int = 100,
        timeout_seconds: float = 86400,
        on_close: Optional[Callable[["PushConnection"], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.key = key
        self.user_id = user_id
        self.connection_id = str(uuid.uuid4())
        self.created_at = datetime.now(timezone.utc)
        self.timeout_seconds = timeout_seconds
        self.close_reason: Optional[str] = None
        self._clock = clock
        self._last_activity = clock()
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=queue_size)
        self._closed = threading.Event()
        self._close_lock = threading.Lock()
        self._on_close = on_close
        self._wakeup: Optional[Callable[[], None]] = None

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    @property
    def last_activity(self) -> float:
        return self._last_activity

    def is_expired(self) -> bool:
        return self._clock() - self._last_activity >= self.timeout_seconds

    def send(
        self,
        event: str,
        data: Any,
        event_id: Optional[str] = None,
        refresh: bool = True,
    ) -> None:
        """Queue an event frame.

        Args:
            event: SSE event name
            data: JSON-serializable payload
            event_id: Optional SSE id (used by clients for Last-Event-ID)
            refresh: Count this write as activity for the idle timeout

        Raises:
            ConnectionWriteError: closed, expired or queue full
        """
        self._write(format_event(event, data, event_id))
        if refresh:
            self._last_activity = self._clock()

    def comment(self, text: str = "keep-alive") -> None:
        self._write(format_comment(text))

    def _write(self, frame: str) -> None:
        if self._closed.is_set():
            raise ConnectionWriteError(f"connection {self.connection_id} is closed")
        if self.is_expired():
            self.complete("timeout")
            raise ConnectionWriteError(f"connection {self.connection_id} timed out")
        try:
            self._queue.put_nowait(frame)
        except queue.Full as e:
            raise ConnectionWriteError(
                f"connection {self.connection_id} is not draining"
            ) from e
        self._wake()

    def _wake(self) -> None:
        wakeup = self._wakeup
        if wakeup is None:
            return
        try:
            wakeup()
        except RuntimeError:
            # The reader's event loop has already shut down
            pass

    def complete(self, reason: str = "completed") -> None:
        """Close the connection. Idempotent; on_close runs once."""
        with self._close_lock:
            if self._closed.is_set():
                return
            self._closed.set()
            self.close_reason = reason

        try:
            self._queue.put_nowait(_CLOSE)
        except queue.Full:
            # stream() notices the closed flag once the backlog drains
            pass
        self._wake()

        logger.debug(
            "push_connection_completed",
            key=self.key,
            connection_id=self.connection_id,
            reason=reason,
        )
        if self._on_close is not None:
            self._on_close(self)

    async def stream(self, poll_interval: float = 1.0) -> AsyncIterator[str]:
        """Yield queued frames until the connection completes.

        Args:
            poll_interval: Upper bound on how long the reader sleeps between
                checks of the closed flag when no wakeup arrives.
        """
        loop = asyncio.get_running_loop()
        ready = asyncio.Event()
        self._wakeup = lambda: loop.call_soon_threadsafe(ready.set)
        try:
            while True:
                try:
                    frame = self._queue.get_nowait()
                except queue.Empty:
                    if self._closed.is_set():
                        break
                    # A write racing this clear schedules set() after it
                    ready.clear()
                    try:
                        await asyncio.wait_for(ready.wait(), timeout=poll_interval)
                    except asyncio.TimeoutError:
                        pass
                    continue
                if frame is _CLOSE:
                    break
                yield frame
        finally:
            self._wakeup = None
            self.complete("client_disconnected")
