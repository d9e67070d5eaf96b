"""Event models for inbound domain events and outbound delivery outcomes.

Field names travel as camelCase on the wire (``userId``, ``assignedUsers``)
and are snake_case in Python through an alias generator.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class EventEnvelope(BaseModel):
    """Common envelope carried by every event.

    Attributes:
        event_id: Unique event id, generated when absent
        timestamp: ISO 8601 timestamp, generated when absent
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    event_type: ClassVar[str] = "event"

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = Field(default_factory=_utc_timestamp)

    def to_wire(self) -> Dict[str, Any]:
        """camelCase payload including the event type discriminator."""
        payload = self.model_dump(by_alias=True, mode="json")
        payload["eventType"] = self.event_type
        return payload


# Inbound events


class UserRegistered(EventEnvelope):
    event_type: ClassVar[str] = "user.registered"

    user_id: str
    username: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class SessionCompleted(EventEnvelope):
    event_type: ClassVar[str] = "session.completed"

    user_id: str
    username: Optional[str] = None
    email: Optional[str] = None
    session_id: str
    assessment_name: Optional[str] = None
    completion_time: Optional[str] = None
    score: Optional[str] = None
    status: Optional[str] = None

    @field_validator("score", mode="before")
    @classmethod
    def stringify_score(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)


class ProctoringViolation(EventEnvelope):
    """Violation raised during a proctored session.

    ``proctor_ids`` arrives as a list, a JSON array string, a comma separated
    string or flattened ``proctorIds.[n]`` fields (unflattened upstream).
    """

    event_type: ClassVar[str] = "proctoring.violation"

    user_id: Optional[str] = None
    username: Optional[str] = None
    session_id: str
    violation_type: str
    severity: Optional[str] = None
    proctor_ids: List[str] = Field(default_factory=list)

    @field_validator("proctor_ids", mode="before")
    @classmethod
    def parse_proctor_ids(cls, v: Any) -> Any:
        if v is None or v == "":
            return []
        if isinstance(v, str):
            text = v.strip()
            if text.startswith("["):
                try:
                    v = json.loads(text)
                except json.JSONDecodeError as e:
                    raise ValueError(f"proctorIds is not a JSON array: {e}") from e
            else:
                v = [part.strip() for part in text.split(",") if part.strip()]
        if isinstance(v, list):
            return [str(item) for item in v]
        return v


class AssignedUser(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    user_id: str
    username: Optional[str] = None
    email: Optional[str] = None


class AssessmentPublished(EventEnvelope):
    event_type: ClassVar[str] = "assessment.published"

    assessment_id: Optional[str] = None
    assessment_name: str
    duration: Optional[str] = None
    due_date: Optional[str] = None
    assigned_users: List[AssignedUser] = Field(default_factory=list)

    @field_validator("duration", mode="before")
    @classmethod
    def stringify_duration(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("assigned_users", mode="before")
    @classmethod
    def parse_assigned_users(cls, v: Any) -> Any:
        if isinstance(v, str):
            try:
                return json.loads(v) if v.strip() else []
            except json.JSONDecodeError as e:
                raise ValueError(f"assignedUsers is not a JSON array: {e}") from e
        return v


INBOUND_EVENT_MODELS: Dict[str, type[EventEnvelope]] = {
    model.event_type: model
    for model in (UserRegistered, SessionCompleted, ProctoringViolation, AssessmentPublished)
}


# Outbound outcome events


class NotificationSent(EventEnvelope):
    event_type: ClassVar[str] = "notification.sent"

    notification_id: str
    recipient_id: str
    channel: str
    type: str
    status: str = "sent"
    delivery_time: str = Field(default_factory=_utc_timestamp)


class NotificationFailed(EventEnvelope):
    event_type: ClassVar[str] = "notification.failed"

    notification_id: str
    recipient_id: str
    channel: str
    error_message: Optional[str] = None
    retry_count: int
    will_retry: bool


class BulkCompleted(EventEnvelope):
    event_type: ClassVar[str] = "notification.bulk.completed"

    batch_id: str
    total_recipients: int
    success_count: int
    failed_count: int
    type: str
