"""Repository for User database operations."""

import logging
from datetime import datetime
from typing import Optional, Tuple
import uuid
from sqlalchemy.orm import Session

from learnplan.models.constants import SIGNUP_CREDITS
from learnplan.models.credit_transaction import CreditReason
from learnplan.models.user import User
from learnplan.database.models import UserDB, UserStatsDB, CreditTransactionDB

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User database operations."""
    
    def __init__(self, db: Session):
        self.db = db
    
    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        return user_db.to_pydantic() if user_db else None
    
    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        user_db = self.db.query(UserDB).filter(UserDB.email == email).first()
        return user_db.to_pydantic() if user_db else None

    def _ensure_stats_row(self, user_id: str, now: datetime) -> bool:
        """Add an empty stats row if the user has none. Returns True if added."""
        exists = self.db.query(UserStatsDB.id).filter(UserStatsDB.user_id == user_id).first()
        if exists:
            return False
        self.db.add(UserStatsDB(
            id=str(uuid.uuid4()),
            user_id=user_id,
            current_streak=0,
            longest_streak=0,
            last_active_date=None,
            total_learning_time_ms=0,
            weekly_learning_time_ms=0,
            monthly_learning_time_ms=0,
            updated_at=now,
        ))
        return True
    
    def upsert_from_sign_in(
        self,
        email: str,
        name: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Tuple[User, bool]:
        """Create or update a user keyed by email.

        New users get the sign-up credit grant and an initialized stats row in
        the same transaction. Existing users get their profile refreshed and a
        stats row only if one is missing; credits are never re-granted.

        Returns:
            Tuple of (user, created)
        """
        now = datetime.utcnow()
        user_db = self.db.query(UserDB).filter(UserDB.email == email).first()

        if user_db:
            # Update existing user
            try:
                if name is not None:
                    user_db.name = name
                if image_url is not None:
                    user_db.image_url = image_url
                user_db.updated_at = now
                if self._ensure_stats_row(user_db.id, now):
                    logger.debug(f"Initialized missing stats for user {user_db.id}")
                self.db.commit()
                self.db.refresh(user_db)
                logger.debug(f"Updated user {user_db.id}")
                return user_db.to_pydantic(), False
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to update user {user_db.id}: {type(e).__name__}: {str(e)}")
                raise

        # Create new user
        try:
            user_id = str(uuid.uuid4())
            user_db = UserDB(
                id=user_id,
                email=email,
                name=name,
                image_url=image_url,
                credits=SIGNUP_CREDITS,
                created_at=now,
                updated_at=now,
            )
            self.db.add(user_db)
            self.db.flush()
            self._ensure_stats_row(user_id, now)
            self.db.add(CreditTransactionDB(
                id=str(uuid.uuid4()),
                user_id=user_id,
                amount=SIGNUP_CREDITS,
                reason=CreditReason.SIGNUP_BONUS.value,
                balance_after=SIGNUP_CREDITS,
                details={},
                created_at=now,
            ))
            self.db.commit()
            self.db.refresh(user_db)
            logger.debug(f"Created user {user_id} with {SIGNUP_CREDITS} sign-up credits")
            return user_db.to_pydantic(), True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create user for sign-in: {type(e).__name__}: {str(e)}")
            raise

    def update_profile(self, user_id: str, name: Optional[str] = None, image_url: Optional[str] = None) -> Optional[User]:
        """Update display name and/or picture. Returns None if the user does not exist."""
        user_db = self.db.query(UserDB).filter(UserDB.id == user_id).first()
        if not user_db:
            return None
        try:
            if name is not None:
                user_db.name = name
            if image_url is not None:
                user_db.image_url = image_url
            self.db.commit()
            self.db.refresh(user_db)
            return user_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update profile for user {user_id}: {type(e).__name__}: {str(e)}")
            raise
