"""Push (server-sent events) endpoints."""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Header, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from api.dependencies.auth import AdminIdentity, CurrentIdentity
from api.dependencies.rate_limits import get_limiter
from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import (
    NotificationChannel,
    NotificationRecord,
    NotificationStatus,
    utc_now,
)
from infrastructure.push import PushConnection
from infrastructure.services import ServicesDep

logger = get_module_logger()
router = APIRouter(prefix="/push", tags=["Push"])
limiter = get_limiter()

SSE_HEADERS = {
    "Cache-Control": "no-store",
    "X-Accel-Buffering": "no",
}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SendToUserRequest(CamelModel):
    user_id: str
    type: str = "test"
    content: str = Field(..., min_length=1)


class BroadcastRequest(CamelModel):
    topic: Optional[str] = None
    event: str = "announcement"
    payload: Dict[str, Any] = Field(default_factory=dict)


def _event_stream(connection: PushConnection) -> StreamingResponse:
    return StreamingResponse(
        connection.stream(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


def _require_self_or_admin(identity, user_id: str) -> None:
    if not identity.can_act_for(user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to act for another user",
        )


@router.get("/connect")
@limiter.limit("30/minute")
def connect(
    request: Request,  # pylint: disable=unused-argument
    identity: CurrentIdentity,
    services: ServicesDep,
    last_event_id: Annotated[Optional[str], Header(alias="Last-Event-ID")] = None,
):
    """Open the caller's notification stream, replacing any previous one."""
    connection = services.registry.create_for_user(
        identity.user_id, last_event_id=last_event_id
    )
    return _event_stream(connection)


@router.get("/subscribe/{topic}")
@limiter.limit("30/minute")
def subscribe(
    request: Request,  # pylint: disable=unused-argument
    topic: str,
    identity: CurrentIdentity,
    services: ServicesDep,
):
    """Open a stream receiving broadcasts for ``topic``."""
    connection = services.registry.subscribe_to_topic(topic, user_id=identity.user_id)
    return _event_stream(connection)


@router.post("/test/send-to-user")
def send_to_user(body: SendToUserRequest, identity: AdminIdentity, services: ServicesDep):
    """Persist a PUSH notification as sent and push it to the user."""
    record = NotificationRecord(
        recipient_id=body.user_id,
        type=body.type,
        channel=NotificationChannel.PUSH,
        content=body.content,
        status=NotificationStatus.SENT,
        sent_at=utc_now(),
    )
    services.notification_store.save(record)
    delivered = services.registry.send_notification_to_user(
        body.user_id, body.type, body.content, notification_id=record.id
    )
    logger.info(
        "push_test_notification_sent",
        admin_id=identity.user_id,
        user_id=body.user_id,
        notification_id=record.id,
        delivered=delivered,
    )
    return {"notificationId": record.id, "userId": body.user_id, "delivered": delivered}


@router.post("/test/broadcast")
def broadcast(body: BroadcastRequest, identity: AdminIdentity, services: ServicesDep):
    """Broadcast to a topic's subscribers, or to every connected user."""
    if body.topic:
        delivered = services.registry.broadcast_to_topic(body.topic, body.event, body.payload)
    else:
        delivered = services.registry.broadcast_to_all(body.event, body.payload)
    logger.info(
        "push_test_broadcast",
        admin_id=identity.user_id,
        topic=body.topic,
        delivered=delivered,
    )
    return {"topic": body.topic, "event": body.event, "delivered": delivered}


@router.get("/stats")
def stats(identity: AdminIdentity, services: ServicesDep):  # pylint: disable=unused-argument
    registry_stats = services.registry.stats()
    return {
        "activeUserConnections": registry_stats["active_user_connections"],
        "topics": registry_stats["topics"],
        "replayBufferUsers": services.registry.replay_buffer_users(),
        "inFlightDeliveries": services.dispatcher.in_flight_count(),
    }


@router.get("/status/{user_id}")
def connection_status(user_id: str, identity: CurrentIdentity, services: ServicesDep):
    _require_self_or_admin(identity, user_id)
    return {"userId": user_id, "connected": services.registry.is_user_connected(user_id)}


@router.post("/disconnect/{user_id}")
def disconnect(user_id: str, identity: CurrentIdentity, services: ServicesDep):
    _require_self_or_admin(identity, user_id)
    disconnected = services.registry.disconnect_user(user_id)
    return {"userId": user_id, "disconnected": disconnected}
