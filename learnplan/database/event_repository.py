"""Event sink backed by the `events` table."""

import logging
from datetime import datetime
from typing import List, Optional
import uuid
from sqlalchemy.orm import Session
from sqlalchemy import desc

from learnplan.models.domain_event import DomainEvent, EventPayload
from learnplan.database.models import EventDB

logger = logging.getLogger(__name__)


class EventRepository:
    """Append and read domain events."""

    def __init__(self, db: Session):
        self.db = db

    def record(self, user_id: Optional[str], payload: EventPayload, now: Optional[datetime] = None) -> DomainEvent:
        """Append an event and commit it."""
        try:
            row = EventDB(
                id=str(uuid.uuid4()),
                user_id=user_id,
                type=payload.type,
                payload=payload.dict(exclude={"type"}),
                created_at=now or datetime.utcnow(),
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Recorded {payload.type} event for user {user_id}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to record {payload.type} event: {type(e).__name__}: {str(e)}")
            raise

    def list_for_user(self, user_id: str, limit: int = 50) -> List[DomainEvent]:
        """Get a user's events, newest first."""
        rows = (
            self.db.query(EventDB)
            .filter(EventDB.user_id == user_id)
            .order_by(desc(EventDB.created_at))
            .limit(limit)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def list_by_type(self, event_type: str, user_id: Optional[str] = None) -> List[DomainEvent]:
        """Get events of one type, oldest first, optionally for one user."""
        query = self.db.query(EventDB).filter(EventDB.type == event_type)
        if user_id is not None:
            query = query.filter(EventDB.user_id == user_id)
        return [row.to_pydantic() for row in query.order_by(EventDB.created_at).all()]
