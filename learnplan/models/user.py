"""User data model for learnplan."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class User(BaseModel):
    """User model for learnplan."""
    
    id: str = Field(..., description="Unique user identifier (UUID v4)")
    email: str = Field(..., description="User email address (upsert key at sign-in)")
    name: Optional[str] = Field(None, description="User display name")
    image_url: Optional[str] = Field(None, description="Profile picture URL")
    credits: int = Field(0, ge=0, description="Current credit balance")
    created_at: datetime = Field(..., description="User creation timestamp")
    updated_at: datetime = Field(..., description="User last update timestamp")
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True
