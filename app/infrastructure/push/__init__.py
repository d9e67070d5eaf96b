"""Real-time push delivery over server-sent events."""

from infrastructure.push.connection import PushConnection, format_comment, format_event
from infrastructure.push.registry import ConnectionRegistry

__all__ = [
    "ConnectionRegistry",
    "PushConnection",
    "format_comment",
    "format_event",
]
