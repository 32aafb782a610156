"""UserStats data model for learnplan."""

from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class UserStats(BaseModel):
    """Per-user streak and learning-time counters (one row per user)."""

    id: str = Field(..., description="Unique stats identifier")
    user_id: str = Field(..., description="Owning user ID")
    current_streak: int = Field(0, ge=0, description="Consecutive active days ending at last_active_date")
    longest_streak: int = Field(0, ge=0, description="Longest streak ever reached")
    last_active_date: Optional[date] = Field(
        None,
        description="UTC calendar date of the last counted activity (null if never active)",
    )
    total_learning_time_ms: int = Field(0, ge=0, description="All-time learning time in milliseconds")
    weekly_learning_time_ms: int = Field(0, ge=0, description="Learning time since the last weekly reset")
    monthly_learning_time_ms: int = Field(0, ge=0, description="Learning time since the last monthly reset")
    updated_at: datetime = Field(..., description="Last update timestamp")
