"""Badge awarding as a stats observer."""

import logging
import os
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session
from dotenv import load_dotenv

from learnplan.accounting.errors import BadgeAlreadyAwardedError, NotFoundError
from learnplan.database.badge_repository import BadgeRepository
from learnplan.database.stats_repository import UserStatsRepository
from learnplan.engine.badges import BadgeRule, DEFAULT_BADGE_RULES, NoOpStatsObserver, StatsObserver
from learnplan.models.badge import Badge

load_dotenv()

logger = logging.getLogger(__name__)


def award_badge(db: Session, user_id: str, name: str, description: str = "", icon_url: str = "") -> Badge:
    """Award a named badge once per user.

    Raises:
        BadgeAlreadyAwardedError: If the user already holds a badge with this name
    """
    badge = BadgeRepository(db).award(user_id, name, description=description, icon_url=icon_url)
    if badge is None:
        raise BadgeAlreadyAwardedError(f"User {user_id} already has badge '{name}'")
    return badge


class BadgeEvaluator(StatsObserver):
    """Awards every rule the user's stats satisfy and the user does not hold yet.

    Re-running with unchanged stats awards nothing.
    """

    def __init__(self, rules: Optional[Iterable[BadgeRule]] = None):
        self.rules = tuple(rules) if rules is not None else DEFAULT_BADGE_RULES

    def evaluate(self, db: Session, user_id: str) -> List[Badge]:
        """Award newly earned badges. Returns the badges awarded by this call."""
        stats = UserStatsRepository(db).get(user_id)
        if stats is None:
            raise NotFoundError(f"Stats for user {user_id} not found")

        repo = BadgeRepository(db)
        awarded: List[Badge] = []
        for rule in self.rules:
            if not rule.is_earned(stats) or repo.has_badge(user_id, rule.name):
                continue
            badge = repo.award(user_id, rule.name, description=rule.description, icon_url=rule.icon_url)
            if badge is not None:
                awarded.append(badge)
        return awarded

    def on_stats_changed(self, db: Session, user_id: str) -> None:
        self.evaluate(db, user_id)


def get_stats_observer() -> StatsObserver:
    """Observer configured by BADGES_ENABLED (off by default)."""
    if os.getenv("BADGES_ENABLED", "false").lower() == "true":
        return BadgeEvaluator()
    return NoOpStatsObserver()
