"""Pure accounting engine for learnplan."""

from learnplan.engine.credit_costs import (
    ChatCostEstimate,
    attachment_flat_charge,
    build_history_sample,
    compute_credits_from_tokens,
    estimate_chat_cost,
    estimate_youtube_playlist_cost,
)
from learnplan.engine.streaks import StreakState, next_streak, utc_today
from learnplan.engine.leaderboards import rank_scores, week_period, month_period
from learnplan.engine.badges import BadgeRule, DEFAULT_BADGE_RULES, StatsObserver, NoOpStatsObserver

__all__ = [
    "ChatCostEstimate",
    "attachment_flat_charge",
    "build_history_sample",
    "compute_credits_from_tokens",
    "estimate_chat_cost",
    "estimate_youtube_playlist_cost",
    "StreakState",
    "next_streak",
    "utc_today",
    "rank_scores",
    "week_period",
    "month_period",
    "BadgeRule",
    "DEFAULT_BADGE_RULES",
    "StatsObserver",
    "NoOpStatsObserver",
]
