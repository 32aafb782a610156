"""Persisted streak updates."""

import logging
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from learnplan.accounting.errors import NotFoundError
from learnplan.accounting.events import emit_event, notify_stats_changed
from learnplan.database.models import UserStatsDB
from learnplan.engine.badges import StatsObserver
from learnplan.engine.streaks import StreakState, next_streak, utc_today
from learnplan.models.domain_event import StreakUpdatedEvent
from learnplan.models.user_stats import UserStats

logger = logging.getLogger(__name__)


def apply_streak(stats_db: UserStatsDB, today: date) -> StreakState:
    """Apply today's activity to a stats row in place (caller commits)."""
    state = next_streak(
        stats_db.last_active_date,
        stats_db.current_streak or 0,
        stats_db.longest_streak or 0,
        today,
    )
    if state.changed:
        stats_db.current_streak = state.current_streak
        stats_db.longest_streak = state.longest_streak
        stats_db.last_active_date = state.last_active_date
    return state


def update_streak(
    db: Session,
    user_id: str,
    today: Optional[date] = None,
    observer: Optional[StatsObserver] = None,
) -> UserStats:
    """Count today as an active day for the user.

    A second call on the same UTC day changes nothing.

    Raises:
        NotFoundError: If the user has no stats row
    """
    today = today or utc_today()
    stats_db = db.query(UserStatsDB).filter(UserStatsDB.user_id == user_id).first()
    if not stats_db:
        raise NotFoundError(f"Stats for user {user_id} not found")

    state = apply_streak(stats_db, today)
    if state.changed:
        try:
            db.commit()
            db.refresh(stats_db)
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to update streak for user {user_id}: {type(e).__name__}: {str(e)}")
            raise
        logger.debug(f"Streak for user {user_id} is now {state.current_streak}")
        emit_event(db, user_id, StreakUpdatedEvent(
            current_streak=state.current_streak,
            longest_streak=state.longest_streak,
            active_date=today.isoformat(),
        ))

    stats = stats_db.to_pydantic()
    notify_stats_changed(db, user_id, observer)
    return stats
