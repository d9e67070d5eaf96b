"""Development endpoints publishing sample inbound events to the streams.

Disabled unless ENABLE_TEST_ENDPOINTS is set.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies.auth import AdminIdentity
from infrastructure.events.models import (
    AssessmentPublished,
    EventEnvelope,
    ProctoringViolation,
    SessionCompleted,
    UserRegistered,
)
from infrastructure.services import ServicesDep, SettingsDep
from infrastructure.services.container import ServiceContainer


def require_test_endpoints(settings: SettingsDep) -> None:
    if not settings.server.ENABLE_TEST_ENDPOINTS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


router = APIRouter(
    prefix="/streams/test",
    tags=["Streams (development)"],
    dependencies=[Depends(require_test_endpoints)],
)


def _publish(services: ServiceContainer, event: EventEnvelope, stream: str) -> dict:
    entry_id = services.publisher.publish(event, stream=stream)
    if entry_id is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Could not publish to stream {stream}",
        )
    return {
        "stream": stream,
        "entryId": entry_id,
        "eventId": event.event_id,
        "eventType": event.event_type,
    }


@router.post("/user-registered")
def publish_user_registered(
    event: UserRegistered,
    identity: AdminIdentity,  # pylint: disable=unused-argument
    services: ServicesDep,
):
    return _publish(services, event, services.settings.streams.user_events)


@router.post("/session-completed")
def publish_session_completed(
    event: SessionCompleted,
    identity: AdminIdentity,  # pylint: disable=unused-argument
    services: ServicesDep,
):
    return _publish(services, event, services.settings.streams.assessment_events)


@router.post("/assessment-published")
def publish_assessment_published(
    event: AssessmentPublished,
    identity: AdminIdentity,  # pylint: disable=unused-argument
    services: ServicesDep,
):
    return _publish(services, event, services.settings.streams.assessment_events)


@router.post("/proctoring-violation")
def publish_proctoring_violation(
    event: ProctoringViolation,
    identity: AdminIdentity,  # pylint: disable=unused-argument
    services: ServicesDep,
):
    return _publish(services, event, services.settings.streams.proctoring_events)
