"""LearningSession data model for learnplan."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class SessionSource(str, Enum):
    """How a learning session was started."""
    MANUAL = "manual"
    TIMER = "timer"
    AUTO = "auto"


class LearningSession(BaseModel):
    """A bounded interval of learning activity.

    A session is open while `ended_at` is null and closes exactly once.
    """

    id: str = Field(..., description="Unique session identifier")
    user_id: str = Field(..., description="Owning user ID")
    plan_id: Optional[str] = Field(None, description="Plan being studied, if any")
    todo_id: Optional[str] = Field(None, description="Todo being studied, if any")
    started_at: datetime = Field(..., description="Session start timestamp (UTC)")
    ended_at: Optional[datetime] = Field(None, description="Session end timestamp (null while open)")
    duration_ms: Optional[int] = Field(None, ge=0, description="Closed session duration in milliseconds")
    source: SessionSource = Field(SessionSource.MANUAL, description="How the session was started")
    created_at: datetime = Field(..., description="Row creation timestamp")

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
