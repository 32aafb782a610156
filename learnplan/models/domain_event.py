"""Domain event models for learnplan.

Each event kind is its own model with a fixed field set and a literal `type`
tag, so payloads survive the trip through the `events` table without becoming
free-form dictionaries.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Literal, Optional, Type, Union

from pydantic import BaseModel, Field


class DomainEventType(str, Enum):
    """Domain event type enumeration."""
    SESSION_STARTED = "session_started"
    SESSION_COMPLETED = "session_completed"
    STREAK_UPDATED = "streak_updated"
    CREDITS_CHARGED = "credits_charged"


class SessionStartedEvent(BaseModel):
    type: Literal["session_started"] = "session_started"
    session_id: str
    source: str
    plan_id: Optional[str] = None
    todo_id: Optional[str] = None


class SessionCompletedEvent(BaseModel):
    type: Literal["session_completed"] = "session_completed"
    session_id: str
    duration_ms: int = Field(..., ge=0)
    plan_id: Optional[str] = None
    todo_id: Optional[str] = None


class StreakUpdatedEvent(BaseModel):
    type: Literal["streak_updated"] = "streak_updated"
    current_streak: int = Field(..., ge=0)
    longest_streak: int = Field(..., ge=0)
    active_date: str = Field(..., description="UTC calendar date (YYYY-MM-DD)")


class CreditsChargedEvent(BaseModel):
    type: Literal["credits_charged"] = "credits_charged"
    amount: int = Field(..., gt=0)
    reason: str
    remaining: int = Field(..., ge=0)


EventPayload = Union[
    SessionStartedEvent,
    SessionCompletedEvent,
    StreakUpdatedEvent,
    CreditsChargedEvent,
]

EVENT_PAYLOAD_TYPES: Dict[str, Type[BaseModel]] = {
    DomainEventType.SESSION_STARTED.value: SessionStartedEvent,
    DomainEventType.SESSION_COMPLETED.value: SessionCompletedEvent,
    DomainEventType.STREAK_UPDATED.value: StreakUpdatedEvent,
    DomainEventType.CREDITS_CHARGED.value: CreditsChargedEvent,
}


def parse_event_payload(event_type: str, payload: dict) -> EventPayload:
    """Rebuild a typed payload from its stored `type` tag and JSON body.

    Raises:
        ValueError: If the event type is unknown
    """
    model = EVENT_PAYLOAD_TYPES.get(event_type)
    if model is None:
        raise ValueError(f"Unknown event type: {event_type}")
    return model(**{**(payload or {}), "type": event_type})


class DomainEvent(BaseModel):
    """A recorded domain event, as read back from the event sink."""

    id: str = Field(..., description="Unique event identifier")
    user_id: Optional[str] = Field(None, description="User the event relates to")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Event timestamp")
    payload: EventPayload = Field(..., discriminator="type", description="Typed event payload")

    @property
    def type(self) -> str:
        return self.payload.type
