"""Request/response models for the learnplan API."""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from learnplan.models.learning_session import SessionSource
from learnplan.models.plan import PlanDifficulty, PlanStatus, TodoPriority, TodoStatus


class AttachmentIn(BaseModel):
    """A file sent with a question (base64 encoded)."""
    file_name: str = Field(..., min_length=1)
    file_type: str = Field(..., description="MIME type, e.g. application/pdf")
    data: str = Field(..., description="Base64-encoded file content")


class AskRequest(BaseModel):
    question: str = Field(..., description="Question for the assistant")
    chat_id: Optional[str] = Field(None, description="Existing chat to continue; a new chat is created when omitted")
    attachments: List[AttachmentIn] = Field(default_factory=list)


class CostEstimateRequest(BaseModel):
    question: str
    chat_id: Optional[str] = None
    has_attachments: bool = False


class TodoIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)
    priority: Optional[TodoPriority] = TodoPriority.MEDIUM
    due_date: Optional[datetime] = None
    estimated_time: Optional[int] = Field(None, ge=0)
    resources: List[str] = Field(default_factory=list)


class PlanCreateRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    chat_id: Optional[str] = None
    difficulty: PlanDifficulty = PlanDifficulty.MEDIUM
    estimated_duration: Optional[int] = Field(None, ge=0)
    status: PlanStatus = PlanStatus.ACTIVE
    todos: List[TodoIn] = Field(default_factory=list)


class PlaylistPlanRequest(BaseModel):
    playlist_url: str = Field(..., description="Playlist URL or bare playlist ID")
    title: Optional[str] = None
    description: Optional[str] = None
    difficulty: PlanDifficulty = PlanDifficulty.MEDIUM
    dry_run: bool = Field(False, description="Only report the price, charge nothing")


class TodoStatusUpdate(BaseModel):
    status: TodoStatus


class ShiftTodosRequest(BaseModel):
    days: int = Field(..., description="Days to move due dates by (negative moves earlier)")
    plan_id: Optional[str] = None


class SessionStartRequest(BaseModel):
    source: SessionSource = SessionSource.MANUAL
    plan_id: Optional[str] = None
    todo_id: Optional[str] = None


class LearningTimeRequest(BaseModel):
    duration_ms: int = Field(..., ge=0)


class PlanUpdateRequest(BaseModel):
    """Partial plan update; omitted fields are left unchanged."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    difficulty: Optional[PlanDifficulty] = None
    estimated_duration: Optional[int] = Field(None, ge=0)
    status: Optional[PlanStatus] = None


class UploadFilesRequest(BaseModel):
    files: List[AttachmentIn] = Field(default_factory=list)
