"""Leaderboard data model for learnplan."""

from datetime import datetime
from enum import Enum
from typing import List
from pydantic import BaseModel, Field


class LeaderboardType(str, Enum):
    """Which stat a leaderboard ranks."""
    WEEKLY_TIME = "weekly_time"
    MONTHLY_TIME = "monthly_time"
    STREAK = "streak"


class LeaderboardEntry(BaseModel):
    user_id: str
    score: int = Field(..., ge=0)
    rank: int = Field(..., ge=1)


class Leaderboard(BaseModel):
    """A ranked snapshot for one (type, period)."""

    id: str = Field(..., description="Unique leaderboard identifier")
    type: LeaderboardType = Field(..., description="Leaderboard type")
    period: str = Field(..., description='Period key, e.g. "2026-W05", "2026-01" or "current"')
    entries: List[LeaderboardEntry] = Field(default_factory=list, description="Entries ordered by rank")
    generated_at: datetime = Field(..., description="Generation timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
