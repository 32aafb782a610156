"""SQLAlchemy database models for learnplan."""

from datetime import datetime
import uuid
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, JSON, ForeignKey, UniqueConstraint, Index

from typing import Union, TypeVar, Type
from learnplan.database.database import Base
from learnplan.models.learning_session import SessionSource
from learnplan.models.credit_transaction import CreditReason
from learnplan.models.plan import PlanDifficulty, PlanStatus, TodoPriority, TodoStatus
from learnplan.models.chat import MessageRole
from learnplan.models.leaderboard import LeaderboardType

T = TypeVar('T')


def _new_id() -> str:
    return str(uuid.uuid4())


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_new_id)

    # User profile (email is the sign-in upsert key)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=True)
    image_url = Column(String, nullable=True)

    # Balance of record; never negative
    credits = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from learnplan.models.user import User
        return User(
            id=self.id,
            email=self.email,
            name=self.name,
            image_url=self.image_url,
            credits=self.credits or 0,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            image_url=user.image_url,
            credits=user.credits,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserStatsDB(Base):
    """Database model for UserStats (one row per user)."""

    __tablename__ = "user_stats"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    # UTC calendar date, null until the first counted activity
    last_active_date = Column(Date, nullable=True)

    total_learning_time_ms = Column(Integer, nullable=False, default=0)
    weekly_learning_time_ms = Column(Integer, nullable=False, default=0)
    monthly_learning_time_ms = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from learnplan.models.user_stats import UserStats
        return UserStats(
            id=self.id,
            user_id=self.user_id,
            current_streak=self.current_streak or 0,
            longest_streak=self.longest_streak or 0,
            last_active_date=self.last_active_date,
            total_learning_time_ms=self.total_learning_time_ms or 0,
            weekly_learning_time_ms=self.weekly_learning_time_ms or 0,
            monthly_learning_time_ms=self.monthly_learning_time_ms or 0,
            updated_at=self.updated_at,
        )


class LearningSessionDB(Base):
    """Database model for LearningSession."""

    __tablename__ = "learning_sessions"
    __table_args__ = (
        Index("ix_learning_sessions_user_started_at", "user_id", "started_at"),
    )

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_id = Column(String, ForeignKey("plans.id", ondelete="SET NULL"), nullable=True)
    todo_id = Column(String, ForeignKey("todos.id", ondelete="SET NULL"), nullable=True)

    started_at = Column(DateTime, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    duration_ms = Column(Integer, nullable=True)
    source = Column(String, nullable=False, default=SessionSource.MANUAL.value)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from learnplan.models.learning_session import LearningSession
        return LearningSession(
            id=self.id,
            user_id=self.user_id,
            plan_id=self.plan_id,
            todo_id=self.todo_id,
            started_at=self.started_at,
            ended_at=self.ended_at,
            duration_ms=self.duration_ms,
            source=value_to_enum(self.source, SessionSource, SessionSource.MANUAL),
            created_at=self.created_at,
        )

    @classmethod
    def from_pydantic(cls, session):
        """Create database model from Pydantic model."""
        return cls(
            id=session.id,
            user_id=session.user_id,
            plan_id=session.plan_id,
            todo_id=session.todo_id,
            started_at=session.started_at,
            ended_at=session.ended_at,
            duration_ms=session.duration_ms,
            source=enum_to_value(session.source),
            created_at=session.created_at,
        )


class CreditTransactionDB(Base):
    """Append-only credit audit log."""

    __tablename__ = "credit_transactions"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Negative for charges, positive for grants
    amount = Column(Integer, nullable=False)
    reason = Column(String, nullable=False)
    balance_after = Column(Integer, nullable=True)
    # `metadata` is reserved on declarative classes
    details = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from learnplan.models.credit_transaction import CreditTransaction
        return CreditTransaction(
            id=self.id,
            user_id=self.user_id,
            amount=self.amount,
            reason=value_to_enum(self.reason, CreditReason, CreditReason.ADJUSTMENT),
            balance_after=self.balance_after,
            metadata=self.details or {},
            created_at=self.created_at,
        )


class EventDB(Base):
    """Domain event sink (append-only)."""

    __tablename__ = "events"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    type = Column(String, nullable=False, index=True)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from learnplan.models.domain_event import DomainEvent, parse_event_payload
        return DomainEvent(
            id=self.id,
            user_id=self.user_id,
            created_at=self.created_at,
            payload=parse_event_payload(self.type, self.payload),
        )


class BadgeDB(Base):
    """Database model for Badge."""

    __tablename__ = "badges"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_badge_user_name"),
    )

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    icon_url = Column(String, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from learnplan.models.badge import Badge
        return Badge(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            description=self.description or "",
            icon_url=self.icon_url or "",
            created_at=self.created_at,
        )


class ChatDB(Base):
    """Database model for Chat."""

    __tablename__ = "chats"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from learnplan.models.chat import Chat
        return Chat(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class MessageDB(Base):
    """Database model for Message."""

    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=_new_id)
    chat_id = Column(String, ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String, nullable=False)
    content = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from learnplan.models.chat import Message
        return Message(
            id=self.id,
            chat_id=self.chat_id,
            role=value_to_enum(self.role, MessageRole, MessageRole.USER),
            content=self.content,
            created_at=self.created_at,
        )


class UploadDB(Base):
    """Database model for Upload metadata (blob lives in the file store)."""

    __tablename__ = "uploads"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    chat_id = Column(String, ForeignKey("chats.id", ondelete="SET NULL"), nullable=True, index=True)
    file_name = Column(String, nullable=False)
    file_type = Column(String, nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    storage_id = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from learnplan.models.chat import Upload
        return Upload(
            id=self.id,
            user_id=self.user_id,
            chat_id=self.chat_id,
            file_name=self.file_name,
            file_type=self.file_type,
            file_size=self.file_size,
            storage_id=self.storage_id,
            created_at=self.created_at,
        )


class PlanDB(Base):
    """Database model for Plan."""

    __tablename__ = "plans"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    chat_id = Column(String, ForeignKey("chats.id", ondelete="SET NULL"), nullable=True)

    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    difficulty = Column(String, nullable=False, default=PlanDifficulty.MEDIUM.value)
    estimated_duration = Column(Integer, nullable=True)
    status = Column(String, nullable=False, default=PlanStatus.ACTIVE.value)
    is_forked = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self, todos=None):
        """Convert database model to Pydantic model."""
        from learnplan.models.plan import Plan
        return Plan(
            id=self.id,
            user_id=self.user_id,
            chat_id=self.chat_id,
            title=self.title,
            description=self.description,
            difficulty=value_to_enum(self.difficulty, PlanDifficulty, PlanDifficulty.MEDIUM),
            estimated_duration=self.estimated_duration,
            status=value_to_enum(self.status, PlanStatus, PlanStatus.ACTIVE),
            is_forked=self.is_forked,
            created_at=self.created_at,
            updated_at=self.updated_at,
            todos=[todo_db.to_pydantic() for todo_db in (todos or [])],
        )


class TodoDB(Base):
    """Database model for Todo."""

    __tablename__ = "todos"

    id = Column(String, primary_key=True, default=_new_id)
    plan_id = Column(String, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    priority = Column(String, nullable=True, default=TodoPriority.MEDIUM.value)
    status = Column(String, nullable=False, default=TodoStatus.PENDING.value)
    due_date = Column(DateTime, nullable=True, index=True)
    completed_at = Column(DateTime, nullable=True)
    estimated_time = Column(Integer, nullable=True)
    resources = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from learnplan.models.plan import Todo
        return Todo(
            id=self.id,
            plan_id=self.plan_id,
            title=self.title,
            description=self.description,
            order=self.order or 0,
            priority=value_to_enum(self.priority, TodoPriority, None) if self.priority else None,
            status=value_to_enum(self.status, TodoStatus, TodoStatus.PENDING),
            due_date=self.due_date,
            completed_at=self.completed_at,
            estimated_time=self.estimated_time,
            resources=self.resources or [],
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class LeaderboardDB(Base):
    """Database model for a generated leaderboard snapshot."""

    __tablename__ = "leaderboards"
    __table_args__ = (
        UniqueConstraint("type", "period", name="uq_leaderboard_type_period"),
    )

    id = Column(String, primary_key=True, default=_new_id)
    type = Column(String, nullable=False)
    period = Column(String, nullable=False)
    # [{"user_id": ..., "score": ..., "rank": ...}, ...]
    entries = Column(JSON, nullable=False, default=list)
    generated_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from learnplan.models.leaderboard import Leaderboard, LeaderboardEntry
        return Leaderboard(
            id=self.id,
            type=value_to_enum(self.type, LeaderboardType, LeaderboardType.STREAK),
            period=self.period,
            entries=[LeaderboardEntry(**entry) for entry in (self.entries or [])],
            generated_at=self.generated_at,
        )
