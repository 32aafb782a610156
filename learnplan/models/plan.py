"""Learning plan and todo data models for learnplan."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class PlanDifficulty(str, Enum):
    """Plan difficulty enumeration."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class PlanStatus(str, Enum):
    """Plan lifecycle status."""
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TodoPriority(str, Enum):
    """Todo priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TodoStatus(str, Enum):
    """Todo status enumeration."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Todo(BaseModel):
    """A single step of a learning plan."""

    id: str = Field(..., description="Unique todo identifier")
    plan_id: str = Field(..., description="Plan this todo belongs to")
    title: str = Field(..., description="Todo title")
    description: Optional[str] = Field(None, description="Todo description")
    order: int = Field(0, ge=0, description="Position within the plan")
    priority: Optional[TodoPriority] = Field(TodoPriority.MEDIUM, description="Todo priority")
    status: TodoStatus = Field(TodoStatus.PENDING, description="Todo status")
    due_date: Optional[datetime] = Field(None, description="When the todo is due")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
    estimated_time: Optional[int] = Field(None, ge=0, description="Estimated time in minutes")
    resources: List[str] = Field(default_factory=list, description="Links or references")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class Plan(BaseModel):
    """A structured learning plan owned by a user."""

    id: str = Field(..., description="Unique plan identifier")
    user_id: str = Field(..., description="Owning user ID")
    chat_id: Optional[str] = Field(None, description="Chat the plan was generated from")
    title: str = Field(..., description="Plan title")
    description: Optional[str] = Field(None, description="Plan description")
    difficulty: PlanDifficulty = Field(PlanDifficulty.MEDIUM, description="Plan difficulty")
    estimated_duration: Optional[int] = Field(None, ge=0, description="Estimated duration in days")
    status: PlanStatus = Field(PlanStatus.ACTIVE, description="Plan status")
    is_forked: bool = Field(False, description="Whether the plan was forked from another plan")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    todos: List[Todo] = Field(default_factory=list, description="Plan todos ordered by position")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
