"""Repository for LearningSession database operations."""

import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc, func

from learnplan.models.constants import ACTIVE_SESSION_LOOKBACK, DEFAULT_SESSION_LIST_LIMIT
from learnplan.models.learning_session import LearningSession
from learnplan.database.models import LearningSessionDB

logger = logging.getLogger(__name__)


class LearningSessionRepository:
    """Repository for LearningSession database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, session: LearningSession) -> LearningSession:
        """Create a new (open) learning session."""
        try:
            row = LearningSessionDB.from_pydantic(session)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Started learning session {session.id} for user {session.user_id}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create learning session {session.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, user_id: str, session_id: str) -> Optional[LearningSession]:
        """Get a session by ID for a specific user."""
        row = self.db.query(LearningSessionDB).filter(
            LearningSessionDB.id == session_id,
            LearningSessionDB.user_id == user_id,
        ).first()
        return row.to_pydantic() if row else None

    def list_for_user(self, user_id: str, limit: int = DEFAULT_SESSION_LIST_LIMIT) -> List[LearningSession]:
        """Get a user's sessions, most recently started first."""
        rows = (
            self.db.query(LearningSessionDB)
            .filter(LearningSessionDB.user_id == user_id)
            .order_by(desc(LearningSessionDB.started_at))
            .limit(limit)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def get_active(self, user_id: str) -> Optional[LearningSession]:
        """Most recent open session among the user's latest sessions, if any."""
        for session in self.list_for_user(user_id, limit=ACTIVE_SESSION_LOOKBACK):
            if session.ended_at is None:
                return session
        return None

    def list_in_range(self, user_id: str, start: datetime, end: datetime) -> List[LearningSession]:
        """Sessions started within [start, end], oldest first."""
        rows = (
            self.db.query(LearningSessionDB)
            .filter(
                LearningSessionDB.user_id == user_id,
                LearningSessionDB.started_at >= start,
                LearningSessionDB.started_at <= end,
            )
            .order_by(LearningSessionDB.started_at)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def total_duration_ms(self, user_id: str) -> int:
        """Sum of closed session durations for a user."""
        total = (
            self.db.query(func.coalesce(func.sum(LearningSessionDB.duration_ms), 0))
            .filter(LearningSessionDB.user_id == user_id)
            .scalar()
        )
        return int(total or 0)
