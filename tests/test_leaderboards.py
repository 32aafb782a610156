"""Tests for leaderboard ranking, stats resets and the jobs CLI."""

import pytest
from datetime import date

from learnplan.accounting.stats_jobs import (
    generate_leaderboard,
    get_user_rank,
    reset_monthly_learning_time,
    reset_weekly_learning_time,
)
from learnplan.database.models import UserStatsDB
from learnplan.database.stats_repository import UserStatsRepository
from learnplan.engine.leaderboards import month_period, rank_scores, week_period
from learnplan.jobs import run_job
from learnplan.models.leaderboard import LeaderboardType

TODAY = date(2026, 1, 28)


def _set_stats(db_session, user_id, **values):
    updates = {getattr(UserStatsDB, key): value for key, value in values.items()}
    db_session.query(UserStatsDB).filter(UserStatsDB.user_id == user_id).update(updates)
    db_session.commit()


class TestRankScores:
    """Test pure ranking."""

    def test_descending_with_dense_ranks(self):
        entries = rank_scores([("a", 10), ("b", 30), ("c", 20)])
        assert [(e.user_id, e.rank) for e in entries] == [("b", 1), ("c", 2), ("a", 3)]

    def test_zero_scores_filtered(self):
        entries = rank_scores([("a", 0), ("b", 5)])
        assert [e.user_id for e in entries] == ["b"]

    def test_ties_keep_input_order(self):
        entries = rank_scores([("a", 5), ("b", 5)])
        assert [(e.user_id, e.rank) for e in entries] == [("a", 1), ("b", 2)]

    def test_empty(self):
        assert rank_scores([]) == []


class TestPeriods:
    """Test period keys."""

    def test_week_period(self):
        assert week_period(TODAY) == "2026-W05"

    def test_week_period_uses_iso_year(self):
        assert week_period(date(2027, 1, 1)) == "2026-W53"

    def test_month_period(self):
        assert month_period(TODAY) == "2026-01"


class TestGenerateLeaderboard:
    """Test leaderboard generation against stored stats."""

    def test_weekly_leaderboard(self, db_session, test_user_id, other_user_id):
        _set_stats(db_session, test_user_id, weekly_learning_time_ms=1000)
        _set_stats(db_session, other_user_id, weekly_learning_time_ms=5000)

        board = generate_leaderboard(db_session, LeaderboardType.WEEKLY_TIME, today=TODAY)

        assert board.period == "2026-W05"
        assert [(e.user_id, e.score, e.rank) for e in board.entries] == [
            (other_user_id, 5000, 1),
            (test_user_id, 1000, 2),
        ]

    def test_streak_leaderboard_skips_zero(self, db_session, test_user_id):
        _set_stats(db_session, test_user_id, current_streak=4, longest_streak=4)

        board = generate_leaderboard(db_session, LeaderboardType.STREAK, today=TODAY)

        assert board.period == "current"
        assert [e.user_id for e in board.entries] == [test_user_id]

    def test_regeneration_replaces_entries(self, db_session, test_user_id, other_user_id):
        _set_stats(db_session, test_user_id, monthly_learning_time_ms=100)
        first = generate_leaderboard(db_session, LeaderboardType.MONTHLY_TIME, today=TODAY)

        _set_stats(db_session, other_user_id, monthly_learning_time_ms=900)
        second = generate_leaderboard(db_session, LeaderboardType.MONTHLY_TIME, today=TODAY)

        assert second.id == first.id
        assert [e.user_id for e in second.entries] == [other_user_id, test_user_id]

    def test_user_rank(self, db_session, test_user_id, other_user_id):
        _set_stats(db_session, test_user_id, weekly_learning_time_ms=10)
        _set_stats(db_session, other_user_id, weekly_learning_time_ms=20)
        generate_leaderboard(db_session, LeaderboardType.WEEKLY_TIME, today=TODAY)

        assert get_user_rank(db_session, LeaderboardType.WEEKLY_TIME, "2026-W05", test_user_id) == 2
        assert get_user_rank(db_session, LeaderboardType.WEEKLY_TIME, "2026-W05", "nobody") is None
        assert get_user_rank(db_session, LeaderboardType.WEEKLY_TIME, "2020-W01", test_user_id) is None


class TestResets:
    """Test weekly and monthly counter resets."""

    def test_reset_weekly_keeps_other_counters(self, db_session, test_user_id):
        _set_stats(
            db_session,
            test_user_id,
            total_learning_time_ms=900,
            weekly_learning_time_ms=300,
            monthly_learning_time_ms=600,
        )

        assert reset_weekly_learning_time(db_session) == 2

        stats = UserStatsRepository(db_session).get(test_user_id)
        assert stats.weekly_learning_time_ms == 0
        assert stats.monthly_learning_time_ms == 600
        assert stats.total_learning_time_ms == 900

    def test_reset_monthly(self, db_session, test_user_id):
        _set_stats(db_session, test_user_id, weekly_learning_time_ms=300, monthly_learning_time_ms=600)

        reset_monthly_learning_time(db_session)

        stats = UserStatsRepository(db_session).get(test_user_id)
        assert stats.monthly_learning_time_ms == 0
        assert stats.weekly_learning_time_ms == 300


class TestJobs:
    """Test the scheduled job dispatcher."""

    def test_run_reset_job(self, db_session, test_user_id):
        _set_stats(db_session, test_user_id, weekly_learning_time_ms=300)
        summary = run_job("reset-weekly", db_session)
        assert "2 users" in summary
        assert UserStatsRepository(db_session).get(test_user_id).weekly_learning_time_ms == 0

    def test_run_leaderboard_job(self, db_session, test_user_id):
        _set_stats(db_session, test_user_id, current_streak=2, longest_streak=2)
        summary = run_job("leaderboard-streak", db_session)
        assert "streak leaderboard for current: 1 entries" == summary

    def test_unknown_job(self, db_session):
        with pytest.raises(ValueError):
            run_job("nope", db_session)
