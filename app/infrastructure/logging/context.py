"""Context binding for structured logging.

Binds per-entry (stream ingestion) or per-request context so that every
log line emitted while handling it carries the same identifiers.

Usage:
    from infrastructure.logging import bind_event_context

    with bind_event_context(stream="user-events", entry_id="1700000000000-0"):
        logger.info("stream_entry_handled")

Dependencies:
    - structlog.contextvars
"""

import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional

import structlog


@contextmanager
def bind_event_context(
    stream: Optional[str] = None,
    entry_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
    **extra_context: Any,
) -> Generator[None, None, None]:
    """Bind stream-entry context to all logs within the block.

    Args:
        stream: Name of the stream the entry was read from.
        entry_id: Stream entry id (e.g. "1700000000000-0").
        correlation_id: Identifier shared by every log line for this unit of
            work. Auto-generated if not provided.
        **extra_context: Additional key-value pairs to include in logs.

    Yields:
        None - context is bound to structlog's context vars.
    """
    context: dict[str, Any] = {"correlation_id": correlation_id or str(uuid.uuid4())}

    if stream is not None:
        context["stream"] = stream

    if entry_id is not None:
        context["entry_id"] = entry_id

    context.update(extra_context)

    structlog.contextvars.bind_contextvars(**context)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*context.keys())


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from the logging context."""
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("correlation_id")


def clear_event_context() -> None:
    """Clear all bound context from the logging context."""
    structlog.contextvars.clear_contextvars()
