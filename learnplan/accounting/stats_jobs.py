"""Scheduled stats maintenance: counter resets and leaderboard snapshots."""

import logging
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from learnplan.database.leaderboard_repository import LeaderboardRepository
from learnplan.database.stats_repository import UserStatsRepository
from learnplan.engine.leaderboards import STREAK_PERIOD, month_period, rank_scores, week_period
from learnplan.engine.streaks import utc_today
from learnplan.models.leaderboard import Leaderboard, LeaderboardType

logger = logging.getLogger(__name__)


def reset_weekly_learning_time(db: Session) -> int:
    """Zero every user's weekly counter. Returns the number of users reset."""
    return UserStatsRepository(db).reset_weekly()


def reset_monthly_learning_time(db: Session) -> int:
    """Zero every user's monthly counter. Returns the number of users reset."""
    return UserStatsRepository(db).reset_monthly()


def generate_leaderboard(db: Session, leaderboard_type: LeaderboardType, today: Optional[date] = None) -> Leaderboard:
    """Rank users for one leaderboard type and store the snapshot.

    Weekly and monthly boards are keyed by the period containing `today`
    (ISO week / calendar month); the streak board is always "current".
    """
    leaderboard_type = LeaderboardType(leaderboard_type)
    today = today or utc_today()
    all_stats = UserStatsRepository(db).get_all()

    if leaderboard_type == LeaderboardType.WEEKLY_TIME:
        period = week_period(today)
        scores = [(s.user_id, s.weekly_learning_time_ms) for s in all_stats]
    elif leaderboard_type == LeaderboardType.MONTHLY_TIME:
        period = month_period(today)
        scores = [(s.user_id, s.monthly_learning_time_ms) for s in all_stats]
    elif leaderboard_type == LeaderboardType.STREAK:
        period = STREAK_PERIOD
        scores = [(s.user_id, s.current_streak) for s in all_stats]
    else:
        raise ValueError(f"Unknown leaderboard type: {leaderboard_type}")

    entries = rank_scores(scores)
    logger.info(f"Generated {leaderboard_type.value} leaderboard for {period}: {len(entries)} ranked users")
    return LeaderboardRepository(db).upsert(leaderboard_type, period, entries)


def get_user_rank(db: Session, leaderboard_type: LeaderboardType, period: str, user_id: str) -> Optional[int]:
    """User's rank on a stored leaderboard, or None if unranked or not generated."""
    board = LeaderboardRepository(db).get(leaderboard_type, period)
    if board is None:
        return None
    for entry in board.entries:
        if entry.user_id == user_id:
            return entry.rank
    return None
