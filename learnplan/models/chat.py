"""Chat, message and upload data models for learnplan."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    """Who authored a message."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Chat(BaseModel):
    """A conversation between a user and the assistant."""

    id: str = Field(..., description="Unique chat identifier")
    user_id: str = Field(..., description="Owning user ID")
    title: str = Field(..., description="Chat title (derived from the first question)")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last activity timestamp")


class Message(BaseModel):
    """A single chat message."""

    id: str = Field(..., description="Unique message identifier")
    chat_id: str = Field(..., description="Chat this message belongs to")
    role: MessageRole = Field(..., description="Message author role")
    content: str = Field(..., description="Message text")
    created_at: datetime = Field(..., description="Creation timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class Upload(BaseModel):
    """Metadata for a stored file attachment."""

    id: str = Field(..., description="Unique upload identifier")
    user_id: str = Field(..., description="Owning user ID")
    chat_id: Optional[str] = Field(None, description="Chat the file was attached to")
    file_name: str = Field(..., description="Original file name")
    file_type: str = Field(..., description="MIME type")
    file_size: int = Field(..., ge=0, description="Size in bytes")
    storage_id: str = Field(..., description="Blob store key")
    created_at: datetime = Field(..., description="Upload timestamp")
