"""Learning session accumulator.

Sessions open with `start_session` and close exactly once with `end_session`.
Closing folds the session's duration into the user's total, weekly and
monthly counters and counts the day towards the streak, all in one commit.
"""

import logging
from datetime import datetime
from typing import List, Optional
import uuid
from sqlalchemy.orm import Session

from learnplan.accounting.errors import NotFoundError, SessionAlreadyEndedError
from learnplan.accounting.events import emit_event, notify_stats_changed
from learnplan.accounting.streaks import apply_streak
from learnplan.database.models import LearningSessionDB, UserStatsDB
from learnplan.database.session_repository import LearningSessionRepository
from learnplan.engine.badges import StatsObserver
from learnplan.engine.streaks import StreakState, utc_today
from learnplan.models.constants import DEFAULT_SESSION_LIST_LIMIT
from learnplan.models.domain_event import SessionCompletedEvent, SessionStartedEvent, StreakUpdatedEvent
from learnplan.models.learning_session import LearningSession, SessionSource
from learnplan.models.user_stats import UserStats

logger = logging.getLogger(__name__)


def _fold_duration(stats_db: UserStatsDB, duration_ms: int) -> None:
    stats_db.total_learning_time_ms = (stats_db.total_learning_time_ms or 0) + duration_ms
    stats_db.weekly_learning_time_ms = (stats_db.weekly_learning_time_ms or 0) + duration_ms
    stats_db.monthly_learning_time_ms = (stats_db.monthly_learning_time_ms or 0) + duration_ms


def _emit_streak(db: Session, user_id: str, state: StreakState) -> None:
    if state.changed:
        emit_event(db, user_id, StreakUpdatedEvent(
            current_streak=state.current_streak,
            longest_streak=state.longest_streak,
            active_date=state.last_active_date.isoformat(),
        ))


def start_session(
    db: Session,
    user_id: str,
    source: SessionSource = SessionSource.MANUAL,
    plan_id: Optional[str] = None,
    todo_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LearningSession:
    """Open a learning session.

    Ownership of plan_id/todo_id must already be checked by the caller.
    """
    now = now or datetime.utcnow()
    session = LearningSession(
        id=str(uuid.uuid4()),
        user_id=user_id,
        plan_id=plan_id,
        todo_id=todo_id,
        started_at=now,
        ended_at=None,
        duration_ms=None,
        source=source,
        created_at=now,
    )
    created = LearningSessionRepository(db).create(session)
    emit_event(db, user_id, SessionStartedEvent(
        session_id=created.id,
        source=created.source,
        plan_id=plan_id,
        todo_id=todo_id,
    ))
    return created


def end_session(
    db: Session,
    user_id: str,
    session_id: str,
    now: Optional[datetime] = None,
    observer: Optional[StatsObserver] = None,
) -> LearningSession:
    """Close a session and fold its duration into the user's stats.

    Raises:
        NotFoundError: If the session does not exist or belongs to another user
        SessionAlreadyEndedError: If the session was already closed
    """
    now = now or datetime.utcnow()
    session_db = db.query(LearningSessionDB).filter(
        LearningSessionDB.id == session_id,
        LearningSessionDB.user_id == user_id,
    ).first()
    if not session_db:
        raise NotFoundError(f"Session {session_id} not found")
    if session_db.ended_at is not None:
        raise SessionAlreadyEndedError(session_id)

    stats_db = db.query(UserStatsDB).filter(UserStatsDB.user_id == user_id).first()
    if not stats_db:
        raise NotFoundError(f"Stats for user {user_id} not found")

    # Clock skew must never produce a negative duration
    duration_ms = max(0, int((now - session_db.started_at).total_seconds() * 1000))

    try:
        session_db.ended_at = now
        session_db.duration_ms = duration_ms
        _fold_duration(stats_db, duration_ms)
        streak_state = apply_streak(stats_db, utc_today(now))
        db.commit()
        db.refresh(session_db)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to end session {session_id}: {type(e).__name__}: {str(e)}")
        raise

    ended = session_db.to_pydantic()
    logger.debug(f"Ended session {session_id} for user {user_id} after {duration_ms} ms")

    emit_event(db, user_id, SessionCompletedEvent(
        session_id=ended.id,
        duration_ms=duration_ms,
        plan_id=ended.plan_id,
        todo_id=ended.todo_id,
    ))
    _emit_streak(db, user_id, streak_state)
    notify_stats_changed(db, user_id, observer)
    return ended


def add_learning_time(
    db: Session,
    user_id: str,
    duration_ms: int,
    observer: Optional[StatsObserver] = None,
) -> UserStats:
    """Fold learning time recorded outside a session into the user's stats.

    Raises:
        ValueError: If duration_ms is negative
        NotFoundError: If the user has no stats row
    """
    if duration_ms < 0:
        raise ValueError("Learning time must not be negative")

    stats_db = db.query(UserStatsDB).filter(UserStatsDB.user_id == user_id).first()
    if not stats_db:
        raise NotFoundError(f"Stats for user {user_id} not found")
    try:
        _fold_duration(stats_db, duration_ms)
        db.commit()
        db.refresh(stats_db)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to add learning time for user {user_id}: {type(e).__name__}: {str(e)}")
        raise

    stats = stats_db.to_pydantic()
    notify_stats_changed(db, user_id, observer)
    return stats


def list_sessions(db: Session, user_id: str, limit: int = DEFAULT_SESSION_LIST_LIMIT) -> List[LearningSession]:
    return LearningSessionRepository(db).list_for_user(user_id, limit=limit)


def get_active_session(db: Session, user_id: str) -> Optional[LearningSession]:
    return LearningSessionRepository(db).get_active(user_id)


def sessions_in_range(db: Session, user_id: str, start: datetime, end: datetime) -> List[LearningSession]:
    return LearningSessionRepository(db).list_in_range(user_id, start, end)


def total_learning_time(db: Session, user_id: str) -> int:
    """Sum of closed session durations in milliseconds."""
    return LearningSessionRepository(db).total_duration_ms(user_id)
