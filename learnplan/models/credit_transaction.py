"""CreditTransaction data model for learnplan."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class CreditReason(str, Enum):
    """Why a user's balance changed."""
    SIGNUP_BONUS = "signup_bonus"
    CHAT = "chat"
    YOUTUBE_PLAYLIST = "youtube_playlist"
    PURCHASE = "purchase"
    ADJUSTMENT = "adjustment"


class CreditTransaction(BaseModel):
    """Append-only record of a balance change.

    `User.credits` is the balance of record; transactions are an audit trail.
    """

    id: str = Field(..., description="Unique transaction identifier")
    user_id: str = Field(..., description="User whose balance changed")
    amount: int = Field(..., description="Negative for charges, positive for grants")
    reason: CreditReason = Field(..., description="Reason for the change")
    balance_after: Optional[int] = Field(None, description="Balance after applying this transaction")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Token counts, video counts, etc.")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Transaction timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
