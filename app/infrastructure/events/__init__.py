"""Inbound domain events and outbound delivery outcome events.

Submodules:
    models: Typed event payloads
    decoding: Flat stream fields <-> typed events
    publisher: XADD publishing of events
    handlers: Event type -> notification routing
    ingestor: Consumer-group polling with acknowledge-after-handoff
"""

from infrastructure.events.models import (
    AssessmentPublished,
    BulkCompleted,
    EventEnvelope,
    NotificationFailed,
    NotificationSent,
    ProctoringViolation,
    SessionCompleted,
    UserRegistered,
)

__all__ = [
    "AssessmentPublished",
    "BulkCompleted",
    "EventEnvelope",
    "NotificationFailed",
    "NotificationSent",
    "ProctoringViolation",
    "SessionCompleted",
    "UserRegistered",
]
