"""Handlers turning inbound domain events into routed notifications.

Handlers are registered per event type with ``register_event_handler`` and
receive the router explicitly. Exceptions propagate to the caller so the
ingestor can leave the entry unacknowledged.
"""

from typing import Callable, Dict, List

from infrastructure.events.models import (
    AssessmentPublished,
    EventEnvelope,
    ProctoringViolation,
    SessionCompleted,
    UserRegistered,
)
from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import NotificationChannel
from infrastructure.notifications.router import NotificationRouter

logger = get_module_logger()

EventHandler = Callable[[EventEnvelope, NotificationRouter], None]

# Event handler registry: event_type -> list of handlers
EVENT_HANDLERS: Dict[str, List[EventHandler]] = {}

PUSH_AND_EMAIL = [NotificationChannel.PUSH, NotificationChannel.EMAIL]


def register_event_handler(event_type: str):
    """Decorator to register a handler for an inbound event type."""

    def decorator(handler_func: EventHandler) -> EventHandler:
        EVENT_HANDLERS.setdefault(event_type, []).append(handler_func)
        logger.debug(
            "registered_event_handler",
            handler=getattr(handler_func, "__name__", "unknown"),
            event_type=event_type,
        )
        return handler_func

    return decorator


def dispatch_event(event: EventEnvelope, router: NotificationRouter) -> int:
    """Run every handler registered for the event's type.

    Returns:
        Number of handlers invoked.

    Raises:
        Exception: whatever a handler raised; remaining handlers are skipped.
    """
    handlers = EVENT_HANDLERS.get(event.event_type, [])
    if not handlers:
        logger.warning("event_handler_missing", event_type=event.event_type)
        return 0

    logger.info(
        "dispatching_event",
        event_type=event.event_type,
        event_id=event.event_id,
        handler_count=len(handlers),
    )
    for handler in handlers:
        handler(event, router)
    return len(handlers)


@register_event_handler(UserRegistered.event_type)
def handle_user_registered(event: UserRegistered, router: NotificationRouter) -> None:
    router.route(
        event.event_type,
        event.user_id,
        event.email,
        {
            "username": event.username,
            "email": event.email,
            "firstName": event.first_name,
            "lastName": event.last_name,
        },
        channels=[NotificationChannel.EMAIL],
    )


@register_event_handler(SessionCompleted.event_type)
def handle_session_completed(event: SessionCompleted, router: NotificationRouter) -> None:
    router.route(
        event.event_type,
        event.user_id,
        event.email,
        {
            "username": event.username,
            "assessmentName": event.assessment_name,
            "completionTime": event.completion_time,
            "score": event.score,
            "status": event.status,
        },
        channels=[NotificationChannel.EMAIL],
    )


@register_event_handler(AssessmentPublished.event_type)
def handle_assessment_published(
    event: AssessmentPublished, router: NotificationRouter
) -> None:
    if not event.assigned_users:
        logger.warning(
            "assessment_published_without_users",
            assessment_id=event.assessment_id,
        )
        return

    for user in event.assigned_users:
        router.route(
            event.event_type,
            user.user_id,
            user.email,
            {
                "assessmentName": event.assessment_name,
                "duration": event.duration,
                "dueDate": event.due_date,
                "username": user.username,
            },
            channels=PUSH_AND_EMAIL,
        )


@register_event_handler(ProctoringViolation.event_type)
def handle_proctoring_violation(
    event: ProctoringViolation, router: NotificationRouter
) -> None:
    if not event.proctor_ids:
        logger.warning(
            "proctoring_violation_without_proctors",
            session_id=event.session_id,
        )
        return

    data = {
        "username": event.username,
        "sessionId": event.session_id,
        "violationType": event.violation_type,
        "timestamp": event.timestamp,
        "severity": event.severity,
    }
    for proctor_id in event.proctor_ids:
        # Proctor email addresses are not carried on the event
        router.route(event.event_type, proctor_id, None, data, channels=PUSH_AND_EMAIL)
