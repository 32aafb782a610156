"""Repository for generated leaderboards."""

import logging
from datetime import datetime
from typing import List, Optional
import uuid
from sqlalchemy.orm import Session

from learnplan.models.leaderboard import Leaderboard, LeaderboardEntry
from learnplan.database.models import LeaderboardDB, enum_to_value

logger = logging.getLogger(__name__)


class LeaderboardRepository:
    """Repository for Leaderboard database operations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, leaderboard_type, period: str) -> Optional[Leaderboard]:
        """Get the leaderboard for a (type, period), if generated."""
        row = self.db.query(LeaderboardDB).filter(
            LeaderboardDB.type == enum_to_value(leaderboard_type),
            LeaderboardDB.period == period,
        ).first()
        return row.to_pydantic() if row else None

    def upsert(self, leaderboard_type, period: str, entries: List[LeaderboardEntry]) -> Leaderboard:
        """Store entries for a (type, period), replacing any earlier snapshot."""
        type_value = enum_to_value(leaderboard_type)
        payload = [entry.dict() for entry in entries]
        now = datetime.utcnow()
        try:
            row = self.db.query(LeaderboardDB).filter(
                LeaderboardDB.type == type_value,
                LeaderboardDB.period == period,
            ).first()
            if row:
                row.entries = payload
                row.generated_at = now
            else:
                row = LeaderboardDB(
                    id=str(uuid.uuid4()),
                    type=type_value,
                    period=period,
                    entries=payload,
                    generated_at=now,
                )
                self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.info(f"Stored {type_value} leaderboard for {period} with {len(entries)} entries")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to store {type_value} leaderboard for {period}: {type(e).__name__}: {str(e)}")
            raise
