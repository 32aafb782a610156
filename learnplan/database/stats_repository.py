"""Repository for UserStats database operations."""

import logging
from datetime import datetime
from typing import List, Optional
import uuid
from sqlalchemy.orm import Session
from sqlalchemy import desc

from learnplan.models.user_stats import UserStats
from learnplan.database.models import UserStatsDB

logger = logging.getLogger(__name__)


class UserStatsRepository:
    """Repository for UserStats database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[UserStats]:
        """Get stats for a user."""
        row = self.db.query(UserStatsDB).filter(UserStatsDB.user_id == user_id).first()
        return row.to_pydantic() if row else None

    def get_or_create(self, user_id: str) -> UserStats:
        """Return the user's stats, creating a zeroed row on first use."""
        row = self.db.query(UserStatsDB).filter(UserStatsDB.user_id == user_id).first()
        if row:
            return row.to_pydantic()
        try:
            row = UserStatsDB(
                id=str(uuid.uuid4()),
                user_id=user_id,
                current_streak=0,
                longest_streak=0,
                last_active_date=None,
                total_learning_time_ms=0,
                weekly_learning_time_ms=0,
                monthly_learning_time_ms=0,
                updated_at=datetime.utcnow(),
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Initialized stats for user {user_id}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to initialize stats for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def get_all(self) -> List[UserStats]:
        """Get stats for every user."""
        return [row.to_pydantic() for row in self.db.query(UserStatsDB).all()]

    def top_streaks(self, limit: int = 10) -> List[UserStats]:
        """Get stats ordered by current streak, highest first."""
        rows = (
            self.db.query(UserStatsDB)
            .order_by(desc(UserStatsDB.current_streak))
            .limit(limit)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def _reset_column(self, column, label: str) -> int:
        try:
            affected = (
                self.db.query(UserStatsDB)
                .update({column: 0, UserStatsDB.updated_at: datetime.utcnow()}, synchronize_session=False)
            )
            self.db.commit()
            logger.info(f"Reset {label} learning time for {affected} users")
            return int(affected)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to reset {label} learning time: {type(e).__name__}: {str(e)}")
            raise

    def reset_weekly(self) -> int:
        """Zero weekly learning time for all users. Returns affected row count."""
        return self._reset_column(UserStatsDB.weekly_learning_time_ms, "weekly")

    def reset_monthly(self) -> int:
        """Zero monthly learning time for all users. Returns affected row count."""
        return self._reset_column(UserStatsDB.monthly_learning_time_ms, "monthly")
