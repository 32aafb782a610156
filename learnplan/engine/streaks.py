"""Streak transitions for learnplan.

A streak counts consecutive UTC calendar days with at least one qualifying
activity. The transition is applied at most once per day: re-entry on the
same day is a no-op.
"""

from datetime import date, datetime
from typing import NamedTuple, Optional


class StreakState(NamedTuple):
    """Result of applying a day's activity to a streak."""
    current_streak: int
    longest_streak: int
    last_active_date: Optional[date]
    changed: bool


def utc_today(now: Optional[datetime] = None) -> date:
    """Today's calendar date in UTC (the fixed zone used for day boundaries)."""
    return (now or datetime.utcnow()).date()


def next_streak(
    last_active_date: Optional[date],
    current_streak: int,
    longest_streak: int,
    today: date,
) -> StreakState:
    """Compute the streak after activity on `today`.

    - same day as last activity: unchanged
    - the day after: extend by one
    - any other gap (including clock going backwards) or no prior activity: restart at 1

    Returns:
        StreakState; `changed` is False only for the same-day no-op
    """
    if last_active_date is not None:
        diff_days = (today - last_active_date).days
        if diff_days == 0:
            return StreakState(current_streak, longest_streak, last_active_date, False)
        if diff_days == 1:
            new_streak = current_streak + 1
        else:
            new_streak = 1
    else:
        new_streak = 1

    return StreakState(
        current_streak=new_streak,
        longest_streak=max(longest_streak, new_streak),
        last_active_date=today,
        changed=True,
    )
