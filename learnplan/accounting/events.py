"""Best-effort event emission and stats-change notification.

Both run after the owning write has committed. A failure here is logged and
swallowed so it can never undo or fail the write that triggered it.
"""

import logging
from typing import Optional
from sqlalchemy.orm import Session

from learnplan.accounting.badges import get_stats_observer
from learnplan.database.event_repository import EventRepository
from learnplan.engine.badges import StatsObserver
from learnplan.models.domain_event import EventPayload

logger = logging.getLogger(__name__)


def emit_event(db: Session, user_id: Optional[str], payload: EventPayload) -> None:
    """Append an event to the sink, logging instead of raising on failure."""
    try:
        EventRepository(db).record(user_id, payload)
    except Exception as e:
        logger.warning(f"Dropped {payload.type} event for user {user_id}: {type(e).__name__}: {str(e)}")


def notify_stats_changed(db: Session, user_id: str, observer: Optional[StatsObserver] = None) -> None:
    """Tell the stats observer that a user's stats changed."""
    if observer is None:
        observer = get_stats_observer()
    try:
        observer.on_stats_changed(db, user_id)
    except Exception as e:
        logger.warning(f"Stats observer {type(observer).__name__} failed for user {user_id}: {type(e).__name__}: {str(e)}")
