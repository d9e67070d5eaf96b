"""Registry of live push connections keyed by user and by topic.

The registry owns its lock; callers never synchronize. Writes to
connections happen outside the lock and never block, and any connection
that rejects a write is deregistered and completed.
"""

import itertools
import threading
import time
from collections import OrderedDict, deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional

from infrastructure.logging import get_module_logger
from infrastructure.notifications.errors import ConnectionWriteError
from infrastructure.push.connection import PushConnection

logger = get_module_logger()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class BufferedEvent:
    event_id: int
    event: str
    data: Any


class ConnectionRegistry:
    """Connection lifecycle for per-user and per-topic push streams.

    At most one user connection exists per user: connecting again
    supersedes and completes the previous one. A connection's close
    callback only removes it if it is still the registered instance, so a
    superseded connection can never evict its replacement.

    Attributes:
        queue_size: Frame buffer per connection
        connection_timeout_seconds: Idle timeout per connection
        replay_buffer_size: Recent events per user kept for Last-Event-ID replay
        replay_max_users: Users holding a replay buffer; least recently used
            buffers are evicted beyond this

    Example:
        registry = ConnectionRegistry()
        connection = registry.create_for_user("42")
        registry.send_to_user("42", "notification", {"content": "hi"})
        registry.disconnect_user("42")
    """

    def __init__(
        self,
        queue_size: int = 100,
        connection_timeout_seconds: float = 86400,
        replay_buffer_size: int = 50,
        replay_max_users: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.queue_size = queue_size
        self.connection_timeout_seconds = connection_timeout_seconds
        self.replay_buffer_size = replay_buffer_size
        self.replay_max_users = replay_max_users
        self._clock = clock
        self._lock = threading.RLock()
        self._user_connections: Dict[str, PushConnection] = {}
        self._topic_subscribers: Dict[str, List[PushConnection]] = {}
        self._replay: "OrderedDict[str, Deque[BufferedEvent]]" = OrderedDict()
        # Millisecond seed keeps ids increasing across restarts
        self._event_ids = itertools.count(int(time.time() * 1000))

    def _next_event_id(self) -> int:
        with self._lock:
            return next(self._event_ids)

    def _new_connection(
        self,
        key: str,
        user_id: Optional[str],
        on_close: Callable[[PushConnection], None],
    ) -> PushConnection:
        return PushConnection(
            key=key,
            user_id=user_id,
            queue_size=self.queue_size,
            timeout_seconds=self.connection_timeout_seconds,
            on_close=on_close,
            clock=self._clock,
        )

    # -- user connections -------------------------------------------------

    def create_for_user(
        self, user_id: str, last_event_id: Optional[str] = None
    ) -> PushConnection:
        """Register a user connection, superseding any previous one.

        Args:
            user_id: Connecting user
            last_event_id: Value of the client's Last-Event-ID header; buffered
                events with a larger id are replayed after the connect event.

        Returns:
            The new connection, already carrying the ``connect`` event.
        """
        connection = self._new_connection(
            user_id, user_id, lambda conn: self._remove_user_connection(user_id, conn)
        )
        with self._lock:
            previous = self._user_connections.get(user_id)
            self._user_connections[user_id] = connection

        if previous is not None:
            previous.complete("superseded")
            logger.info(
                "push_connection_superseded",
                user_id=user_id,
                previous_connection_id=previous.connection_id,
            )

        logger.info(
            "push_connection_registered",
            user_id=user_id,
            connection_id=connection.connection_id,
        )

        try:
            connection.send(
                "connect",
                {
                    "message": "Connected to notification service",
                    "userId": user_id,
                    "timestamp": _timestamp(),
                },
                event_id=str(self._next_event_id()),
            )
            if last_event_id:
                self._replay_events(user_id, connection, last_event_id)
        except ConnectionWriteError as e:
            logger.warning("push_connect_write_failed", user_id=user_id, error=str(e))
            connection.complete("errored")

        return connection

    def _replay_events(
        self, user_id: str, connection: PushConnection, last_event_id: str
    ) -> None:
        try:
            last_seen = int(last_event_id)
        except ValueError:
            logger.warning(
                "push_replay_invalid_last_event_id",
                user_id=user_id,
                last_event_id=last_event_id,
            )
            return

        with self._lock:
            pending = [
                buffered
                for buffered in self._replay.get(user_id, ())
                if buffered.event_id > last_seen
            ]

        for buffered in pending:
            connection.send(buffered.event, buffered.data, str(buffered.event_id))

        if pending:
            logger.info("push_events_replayed", user_id=user_id, count=len(pending))

    def _remember(self, user_id: str, event: BufferedEvent) -> None:
        if self.replay_buffer_size <= 0 or self.replay_max_users <= 0:
            return
        with self._lock:
            buffer = self._replay.get(user_id)
            if buffer is None:
                buffer = deque(maxlen=self.replay_buffer_size)
                self._replay[user_id] = buffer
            else:
                self._replay.move_to_end(user_id)
            buffer.append(event)
            while len(self._replay) > self.replay_max_users:
                self._replay.popitem(last=False)

    def replay_buffer_users(self) -> int:
        with self._lock:
            return len(self._replay)

    def _remove_user_connection(self, user_id: str, connection: PushConnection) -> None:
        with self._lock:
            if self._user_connections.get(user_id) is connection:
                del self._user_connections[user_id]
                logger.info(
                    "push_connection_removed",
                    user_id=user_id,
                    connection_id=connection.connection_id,
                    reason=connection.close_reason,
                )

    def send_to_user(self, user_id: str, event_name: str, payload: Any) -> bool:
        """Write one event to a user's connection.

        The event is buffered for replay whether or not the user is online.

        Returns:
            True if a live connection accepted the write.
        """
        event_id = self._next_event_id()
        self._remember(user_id, BufferedEvent(event_id, event_name, payload))

        with self._lock:
            connection = self._user_connections.get(user_id)
        if connection is None:
            logger.debug("push_user_not_connected", user_id=user_id, event_name=event_name)
            return False

        try:
            connection.send(event_name, payload, event_id=str(event_id))
        except ConnectionWriteError as e:
            logger.warning(
                "push_send_failed",
                user_id=user_id,
                event_name=event_name,
                error=str(e),
            )
            connection.complete("errored")
            return False
        return True

    def send_notification_to_user(
        self,
        user_id: str,
        notification_type: str,
        content: str,
        notification_id: Optional[str] = None,
    ) -> bool:
        payload = {
            "type": notification_type,
            "content": content,
            "timestamp": _timestamp(),
            "id": notification_id,
        }
        return self.send_to_user(user_id, "notification", payload)

    def disconnect_user(self, user_id: str) -> bool:
        """Complete and deregister a user's connection. Idempotent."""
        with self._lock:
            connection = self._user_connections.pop(user_id, None)
        if connection is None:
            return False
        connection.complete("disconnected")
        logger.info("push_user_disconnected", user_id=user_id)
        return True

    def is_user_connected(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._user_connections

    def active_user_connections(self) -> int:
        with self._lock:
            return len(self._user_connections)

    # -- topics -----------------------------------------------------------

    def subscribe_to_topic(
        self, topic: str, user_id: Optional[str] = None
    ) -> PushConnection:
        connection = self._new_connection(
            topic, user_id, lambda conn: self._remove_topic_subscriber(topic, conn)
        )
        with self._lock:
            self._topic_subscribers.setdefault(topic, []).append(connection)

        logger.info(
            "push_topic_subscribed",
            topic=topic,
            user_id=user_id,
            connection_id=connection.connection_id,
        )
        try:
            connection.send(
                "subscribed",
                {
                    "topic": topic,
                    "message": f"Subscribed to topic: {topic}",
                    "timestamp": _timestamp(),
                },
                event_id=str(self._next_event_id()),
            )
        except ConnectionWriteError as e:
            logger.warning("push_subscribe_write_failed", topic=topic, error=str(e))
            connection.complete("errored")
        return connection

    def _remove_topic_subscriber(self, topic: str, connection: PushConnection) -> None:
        with self._lock:
            subscribers = self._topic_subscribers.get(topic)
            if not subscribers:
                return
            remaining = [s for s in subscribers if s is not connection]
            if remaining:
                self._topic_subscribers[topic] = remaining
            else:
                del self._topic_subscribers[topic]

    def topic_subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._topic_subscribers.get(topic, ()))

    def broadcast_to_topic(self, topic: str, event_name: str, payload: Any) -> int:
        """Best-effort write to every subscriber of ``topic``.

        Subscribers that reject the write are pruned after the pass.

        Returns:
            Number of subscribers that accepted the write.
        """
        with self._lock:
            subscribers = list(self._topic_subscribers.get(topic, ()))

        event_id = str(self._next_event_id())
        failed: List[PushConnection] = []
        for connection in subscribers:
            try:
                connection.send(event_name, payload, event_id=event_id)
            except ConnectionWriteError:
                failed.append(connection)

        self._prune(failed)
        logger.info(
            "push_topic_broadcast",
            topic=topic,
            event_name=event_name,
            delivered=len(subscribers) - len(failed),
            pruned=len(failed),
        )
        return len(subscribers) - len(failed)

    def broadcast_to_all(self, event_name: str, payload: Any) -> int:
        """Best-effort write to every user connection."""
        with self._lock:
            connections = list(self._user_connections.values())

        event_id = str(self._next_event_id())
        failed: List[PushConnection] = []
        for connection in connections:
            try:
                connection.send(event_name, payload, event_id=event_id)
            except ConnectionWriteError:
                failed.append(connection)

        self._prune(failed)
        logger.info(
            "push_broadcast_all",
            event_name=event_name,
            delivered=len(connections) - len(failed),
            pruned=len(failed),
        )
        return len(connections) - len(failed)

    # -- maintenance ------------------------------------------------------

    def heartbeat_sweep(self) -> Dict[str, int]:
        """Heartbeat every connection and prune the dead or expired.

        User connections get a ``heartbeat`` event plus a keep-alive comment;
        topic subscribers get the comment only. Heartbeats are not activity,
        so they never extend a connection's idle timeout.

        Returns:
            Dictionary with sweep statistics (users, subscribers, pruned).
        """
        with self._lock:
            users = list(self._user_connections.values())
            subscribers = [
                conn for subs in self._topic_subscribers.values() for conn in subs
            ]

        failed: List[PushConnection] = []
        heartbeat = {"timestamp": _timestamp(), "type": "heartbeat"}
        for connection in users:
            try:
                connection.send("heartbeat", heartbeat, refresh=False)
                connection.comment("keep-alive")
            except ConnectionWriteError:
                failed.append(connection)

        for connection in subscribers:
            try:
                connection.comment("keep-alive")
            except ConnectionWriteError:
                failed.append(connection)

        self._prune(failed)
        stats = {
            "users": len(users),
            "subscribers": len(subscribers),
            "pruned": len(failed),
        }
        if failed:
            logger.info("push_heartbeat_pruned", **stats)
        else:
            logger.debug("push_heartbeat_complete", **stats)
        return stats

    def _prune(self, connections: List[PushConnection]) -> None:
        for connection in connections:
            # complete() fires on_close, which deregisters the connection
            connection.complete(connection.close_reason or "errored")

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "active_user_connections": len(self._user_connections),
                "topics": {
                    topic: len(subs) for topic, subs in self._topic_subscribers.items()
                },
            }

    def close_all(self) -> None:
        """Complete every connection (shutdown)."""
        with self._lock:
            connections = list(self._user_connections.values())
            connections += [
                conn for subs in self._topic_subscribers.values() for conn in subs
            ]
            self._user_connections.clear()
            self._topic_subscribers.clear()

        for connection in connections:
            connection.complete("shutdown")
        logger.info("push_connections_closed", count=len(connections))
