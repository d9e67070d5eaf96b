"""Decoding of flat Redis stream entries into typed events.

Stream entries are flat string maps. Nested values arrive flattened with a
dotted path and bracketed list indexes::

    assignedUsers.[0].userId = "42"
    assignedUsers.[0].email  = "ann@example.com"
    proctorIds.[1]           = "p-2"

``flatten_fields`` produces that layout for publishers and
``unflatten_fields`` reverses it for the ingestor.
"""

import base64
import binascii
import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from infrastructure.events.models import INBOUND_EVENT_MODELS, EventEnvelope
from infrastructure.logging import get_module_logger
from infrastructure.notifications.errors import EventDecodeError

logger = get_module_logger()

_INDEX_PART = re.compile(r"^\[(\d+)\]$")

# Keys written by producers to create or annotate a stream, never payload
_RESERVED_KEYS = {"init"}


class StreamKind(str, Enum):
    """Logical inbound streams; the physical names come from settings."""

    USER = "user"
    ASSESSMENT = "assessment"
    PROCTORING = "proctoring"


def clean_fields(fields: Mapping[str, Any], base64_values: bool = False) -> Dict[str, str]:
    """Drop reserved keys and decode values to text.

    Raises:
        EventDecodeError: a value is not valid base64 (when enabled)
    """
    cleaned: Dict[str, str] = {}
    for raw_key, raw_value in fields.items():
        key = raw_key.decode() if isinstance(raw_key, bytes) else str(raw_key)
        if key in _RESERVED_KEYS or key.startswith("_"):
            continue
        value = raw_value.decode() if isinstance(raw_value, bytes) else str(raw_value)
        if base64_values:
            try:
                value = base64.b64decode(value, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as e:
                raise EventDecodeError(f"Field {key!r} is not valid base64: {e}") from e
        cleaned[key] = value
    return cleaned


def unflatten_fields(fields: Mapping[str, str]) -> Dict[str, Any]:
    """Rebuild nested dicts and index-ordered lists from dotted keys.

    Example:
        >>> unflatten_fields({"ids.[1]": "b", "ids.[0]": "a", "name": "x"})
        {'ids': ['a', 'b'], 'name': 'x'}
    """
    tree: Dict[Any, Any] = {}
    for key, value in fields.items():
        node = tree
        parts = key.split(".")
        for position, part in enumerate(parts):
            match = _INDEX_PART.match(part)
            segment: Any = int(match.group(1)) if match else part
            if position == len(parts) - 1:
                node[segment] = value
                break
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
    return _collapse_lists(tree)


def _collapse_lists(node: Any) -> Any:
    if not isinstance(node, dict):
        return node
    collapsed = {key: _collapse_lists(value) for key, value in node.items()}
    if collapsed and all(isinstance(key, int) for key in collapsed):
        return [collapsed[index] for index in sorted(collapsed)]
    return collapsed


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def flatten_fields(data: Mapping[str, Any], base64_values: bool = False) -> Dict[str, str]:
    """Flatten a nested mapping into stream fields.

    Booleans become ``true``/``false`` and None becomes an empty string.
    """
    flat: Dict[str, str] = {}

    def _walk(prefix: str, value: Any) -> None:
        if isinstance(value, Mapping):
            for key, child in value.items():
                _walk(f"{prefix}.{key}" if prefix else str(key), child)
        elif isinstance(value, (list, tuple)):
            for index, child in enumerate(value):
                _walk(f"{prefix}.[{index}]", child)
        else:
            flat[prefix] = _stringify(value)

    _walk("", data)
    if base64_values:
        return {
            key: base64.b64encode(value.encode("utf-8")).decode("ascii")
            for key, value in flat.items()
        }
    return flat


def detect_event_type(kind: StreamKind, data: Mapping[str, Any]) -> Optional[str]:
    """Pick the event type for an entry from its stream and shape.

    An explicit ``eventType`` field wins. The assessment stream carries two
    event types told apart by field presence.
    """
    explicit = data.get("eventType")
    if explicit:
        return explicit if explicit in INBOUND_EVENT_MODELS else None

    if kind == StreamKind.USER:
        return "user.registered"
    if kind == StreamKind.PROCTORING:
        return "proctoring.violation"
    if kind == StreamKind.ASSESSMENT:
        if "assignedUsers" in data:
            return "assessment.published"
        if "sessionId" in data:
            return "session.completed"
    return None


class EventDecoder:
    """Turns raw stream entries into typed inbound events.

    Attributes:
        stream_kinds: Physical stream name -> StreamKind
        base64_values: Field values are base64 encoded
    """

    def __init__(self, stream_kinds: Mapping[str, StreamKind], base64_values: bool = False):
        self.stream_kinds = dict(stream_kinds)
        self.base64_values = base64_values

    def decode(
        self, stream: str, entry_id: str, fields: Mapping[str, Any]
    ) -> EventEnvelope:
        """Decode one entry.

        Raises:
            EventDecodeError: unknown stream, undetectable type or invalid payload
        """
        kind = self.stream_kinds.get(stream)
        if kind is None:
            raise EventDecodeError(f"Unknown stream {stream!r}", stream, entry_id)

        try:
            data = unflatten_fields(clean_fields(fields, self.base64_values))
        except EventDecodeError as e:
            e.stream, e.entry_id = stream, entry_id
            raise

        event_type = detect_event_type(kind, data)
        if event_type is None:
            raise EventDecodeError(
                f"Cannot determine event type from fields {sorted(data)}",
                stream,
                entry_id,
            )

        model = INBOUND_EVENT_MODELS[event_type]
        try:
            event = model.model_validate(data)
        except ValidationError as e:
            raise EventDecodeError(
                f"Invalid {event_type} payload: {e.error_count()} error(s): "
                + "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ),
                stream,
                entry_id,
            ) from e

        logger.debug(
            "stream_entry_decoded",
            stream=stream,
            entry_id=entry_id,
            event_type=event_type,
        )
        return event
