"""Repository for Badge database operations."""

import logging
from datetime import datetime
from typing import List, Optional
import uuid
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from learnplan.models.badge import Badge
from learnplan.database.models import BadgeDB

logger = logging.getLogger(__name__)


class BadgeRepository:
    """Repository for Badge database operations."""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str) -> List[Badge]:
        """Get a user's badges in award order."""
        rows = (
            self.db.query(BadgeDB)
            .filter(BadgeDB.user_id == user_id)
            .order_by(BadgeDB.created_at)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def has_badge(self, user_id: str, name: str) -> bool:
        return self.db.query(BadgeDB.id).filter(
            BadgeDB.user_id == user_id,
            BadgeDB.name == name,
        ).first() is not None

    def award(self, user_id: str, name: str, description: str = "", icon_url: str = "") -> Optional[Badge]:
        """Award a badge. Returns None if the user already holds a badge with this name."""
        if self.has_badge(user_id, name):
            return None
        try:
            row = BadgeDB(
                id=str(uuid.uuid4()),
                user_id=user_id,
                name=name,
                description=description,
                icon_url=icon_url,
                created_at=datetime.utcnow(),
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.info(f"Awarded badge '{name}' to user {user_id}")
            return row.to_pydantic()
        except IntegrityError:
            # Lost a race against a concurrent award of the same badge
            self.db.rollback()
            return None
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to award badge '{name}' to user {user_id}: {type(e).__name__}: {str(e)}")
            raise
