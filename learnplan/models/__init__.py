"""Data models for learnplan."""

from learnplan.models.user import User
from learnplan.models.user_stats import UserStats
from learnplan.models.learning_session import LearningSession, SessionSource
from learnplan.models.credit_transaction import CreditTransaction, CreditReason
from learnplan.models.domain_event import (
    DomainEvent,
    DomainEventType,
    SessionStartedEvent,
    SessionCompletedEvent,
    StreakUpdatedEvent,
    CreditsChargedEvent,
)
from learnplan.models.badge import Badge
from learnplan.models.plan import Plan, PlanDifficulty, PlanStatus, Todo, TodoPriority, TodoStatus
from learnplan.models.chat import Chat, Message, MessageRole, Upload
from learnplan.models.leaderboard import Leaderboard, LeaderboardEntry, LeaderboardType

__all__ = [
    "User",
    "UserStats",
    "LearningSession",
    "SessionSource",
    "CreditTransaction",
    "CreditReason",
    "DomainEvent",
    "DomainEventType",
    "SessionStartedEvent",
    "SessionCompletedEvent",
    "StreakUpdatedEvent",
    "CreditsChargedEvent",
    "Badge",
    "Plan",
    "PlanDifficulty",
    "PlanStatus",
    "Todo",
    "TodoPriority",
    "TodoStatus",
    "Chat",
    "Message",
    "MessageRole",
    "Upload",
    "Leaderboard",
    "LeaderboardEntry",
    "LeaderboardType",
]
