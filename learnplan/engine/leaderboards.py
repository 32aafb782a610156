"""Leaderboard ranking for learnplan.

Ranks users by a single stat. Users with a zero score are left off, ties keep
the input order, and ranks are 1..n.
"""

from datetime import date
from typing import Iterable, List, Tuple

from learnplan.models.leaderboard import LeaderboardEntry

STREAK_PERIOD = "current"


def rank_scores(scores: Iterable[Tuple[str, int]]) -> List[LeaderboardEntry]:
    """Rank (user_id, score) pairs, highest score first.

    Args:
        scores: Iterable of (user_id, score)

    Returns:
        LeaderboardEntry list with ranks starting at 1
    """
    positive = [(user_id, int(score)) for user_id, score in scores if score and score > 0]
    # sorted() is stable, so equal scores keep their input order
    ordered = sorted(positive, key=lambda pair: -pair[1])
    return [
        LeaderboardEntry(user_id=user_id, score=score, rank=index + 1)
        for index, (user_id, score) in enumerate(ordered)
    ]


def week_period(day: date) -> str:
    """ISO week key, e.g. "2026-W05"."""
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def month_period(day: date) -> str:
    """Calendar month key, e.g. "2026-01"."""
    return f"{day.year}-{day.month:02d}"
