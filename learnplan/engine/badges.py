"""Badge rules and the stats-observer seam for learnplan.

Stats mutations call `StatsObserver.on_stats_changed` after they commit. The
default observer does nothing; `learnplan.accounting.badges.BadgeEvaluator`
is the observer that awards badges from the rules below.
"""

from dataclasses import dataclass
from typing import Callable, Tuple

from learnplan.models.user_stats import UserStats

HOUR_MS = 60 * 60 * 1000


@dataclass(frozen=True)
class BadgeRule:
    """A badge and the stats condition that earns it."""
    name: str
    description: str
    predicate: Callable[[UserStats], bool]
    icon_url: str = ""

    def is_earned(self, stats: UserStats) -> bool:
        return bool(self.predicate(stats))


DEFAULT_BADGE_RULES: Tuple[BadgeRule, ...] = (
    BadgeRule(
        name="First Steps",
        description="Completed your first learning session",
        predicate=lambda s: s.total_learning_time_ms > 0,
    ),
    BadgeRule(
        name="On a Roll",
        description="Reached a 3-day learning streak",
        predicate=lambda s: s.longest_streak >= 3,
    ),
    BadgeRule(
        name="Week Warrior",
        description="Reached a 7-day learning streak",
        predicate=lambda s: s.longest_streak >= 7,
    ),
    BadgeRule(
        name="Monthly Master",
        description="Reached a 30-day learning streak",
        predicate=lambda s: s.longest_streak >= 30,
    ),
    BadgeRule(
        name="Ten Hours",
        description="Logged 10 hours of learning",
        predicate=lambda s: s.total_learning_time_ms >= 10 * HOUR_MS,
    ),
)


class StatsObserver:
    """Consumer of stats-change notifications."""

    def on_stats_changed(self, db, user_id: str) -> None:
        raise NotImplementedError


class NoOpStatsObserver(StatsObserver):
    """Observer used until a real consumer is configured."""

    def on_stats_changed(self, db, user_id: str) -> None:
        return None
