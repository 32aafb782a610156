"""Badge data model for learnplan."""

from datetime import datetime
from pydantic import BaseModel, Field


class Badge(BaseModel):
    """A badge held by a user. Names are unique per user."""

    id: str = Field(..., description="Unique badge identifier")
    user_id: str = Field(..., description="User holding the badge")
    name: str = Field(..., description="Badge name (unique per user)")
    description: str = Field("", description="Human-readable description")
    icon_url: str = Field("", description="Icon URL")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Award timestamp")
