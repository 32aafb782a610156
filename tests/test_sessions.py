"""Tests for the learning session accumulator."""

import pytest
from datetime import date, datetime, timedelta
from unittest.mock import MagicMock

from learnplan.accounting import sessions
from learnplan.accounting.errors import NotFoundError, SessionAlreadyEndedError
from learnplan.database.event_repository import EventRepository
from learnplan.database.stats_repository import UserStatsRepository
from learnplan.engine.badges import StatsObserver
from learnplan.models.learning_session import SessionSource

START = datetime(2024, 3, 15, 9, 0, 0)


class TestStartSession:
    """Test opening sessions."""

    def test_start_creates_open_session(self, db_session, test_user_id):
        session = sessions.start_session(db_session, test_user_id, SessionSource.TIMER, now=START)
        assert session.user_id == test_user_id
        assert session.source == "timer"
        assert session.started_at == START
        assert session.ended_at is None
        assert session.duration_ms is None

    def test_start_emits_event(self, db_session, test_user_id):
        session = sessions.start_session(db_session, test_user_id, now=START)
        events = EventRepository(db_session).list_by_type("session_started", test_user_id)
        assert len(events) == 1
        assert events[0].payload.session_id == session.id
        assert events[0].payload.source == "manual"


class TestEndSession:
    """Test closing sessions and folding durations into stats."""

    def test_end_computes_duration_and_folds_stats(self, db_session, test_user_id):
        session = sessions.start_session(db_session, test_user_id, now=START)
        ended = sessions.end_session(db_session, test_user_id, session.id, now=START + timedelta(minutes=30))

        assert ended.ended_at == START + timedelta(minutes=30)
        assert ended.duration_ms == 30 * 60 * 1000

        stats = UserStatsRepository(db_session).get(test_user_id)
        assert stats.total_learning_time_ms == 30 * 60 * 1000
        assert stats.weekly_learning_time_ms == 30 * 60 * 1000
        assert stats.monthly_learning_time_ms == 30 * 60 * 1000

    def test_end_updates_streak_for_end_day(self, db_session, test_user_id):
        session = sessions.start_session(db_session, test_user_id, now=START)
        sessions.end_session(db_session, test_user_id, session.id, now=START + timedelta(minutes=5))

        stats = UserStatsRepository(db_session).get(test_user_id)
        assert stats.current_streak == 1
        assert stats.last_active_date == date(2024, 3, 15)

    def test_two_sessions_same_day_count_once_for_streak(self, db_session, test_user_id):
        for offset in (0, 2):
            session = sessions.start_session(db_session, test_user_id, now=START + timedelta(hours=offset))
            sessions.end_session(db_session, test_user_id, session.id, now=START + timedelta(hours=offset, minutes=10))

        stats = UserStatsRepository(db_session).get(test_user_id)
        assert stats.current_streak == 1
        assert stats.total_learning_time_ms == 2 * 10 * 60 * 1000

    def test_immediate_end_has_non_negative_duration(self, db_session, test_user_id):
        session = sessions.start_session(db_session, test_user_id)
        ended = sessions.end_session(db_session, test_user_id, session.id)
        assert ended.duration_ms >= 0

    def test_clock_skew_clamps_to_zero(self, db_session, test_user_id):
        session = sessions.start_session(db_session, test_user_id, now=START)
        ended = sessions.end_session(db_session, test_user_id, session.id, now=START - timedelta(minutes=1))
        assert ended.duration_ms == 0

    def test_double_end_fails_and_does_not_double_count(self, db_session, test_user_id):
        session = sessions.start_session(db_session, test_user_id, now=START)
        sessions.end_session(db_session, test_user_id, session.id, now=START + timedelta(minutes=20))

        with pytest.raises(SessionAlreadyEndedError):
            sessions.end_session(db_session, test_user_id, session.id, now=START + timedelta(hours=3))

        stats = UserStatsRepository(db_session).get(test_user_id)
        assert stats.total_learning_time_ms == 20 * 60 * 1000
        reloaded = sessions.list_sessions(db_session, test_user_id)[0]
        assert reloaded.duration_ms == 20 * 60 * 1000
        assert reloaded.ended_at == START + timedelta(minutes=20)

    def test_end_missing_session(self, db_session, test_user_id):
        with pytest.raises(NotFoundError):
            sessions.end_session(db_session, test_user_id, "missing-session")

    def test_end_other_users_session_is_not_found(self, db_session, test_user_id, other_user_id):
        session = sessions.start_session(db_session, other_user_id, now=START)
        with pytest.raises(NotFoundError):
            sessions.end_session(db_session, test_user_id, session.id)

    def test_end_emits_completed_event(self, db_session, test_user_id):
        session = sessions.start_session(db_session, test_user_id, now=START)
        sessions.end_session(db_session, test_user_id, session.id, now=START + timedelta(seconds=90))

        events = EventRepository(db_session).list_by_type("session_completed", test_user_id)
        assert len(events) == 1
        payload = events[0].payload
        assert payload.session_id == session.id
        assert payload.duration_ms == 90_000
        assert payload.plan_id is None
        assert payload.todo_id is None

    def test_end_notifies_observer(self, db_session, test_user_id):
        observer = MagicMock(spec=StatsObserver)
        session = sessions.start_session(db_session, test_user_id, now=START)
        sessions.end_session(db_session, test_user_id, session.id, now=START, observer=observer)
        observer.on_stats_changed.assert_called_once_with(db_session, test_user_id)

    def test_observer_failure_does_not_fail_end(self, db_session, test_user_id):
        observer = MagicMock(spec=StatsObserver)
        observer.on_stats_changed.side_effect = RuntimeError("boom")
        session = sessions.start_session(db_session, test_user_id, now=START)

        ended = sessions.end_session(
            db_session, test_user_id, session.id, now=START + timedelta(minutes=1), observer=observer
        )

        assert ended.duration_ms == 60_000
        assert UserStatsRepository(db_session).get(test_user_id).total_learning_time_ms == 60_000


class TestLearningTimeAndQueries:
    """Test explicit learning time and session queries."""

    def test_add_learning_time(self, db_session, test_user_id):
        stats = sessions.add_learning_time(db_session, test_user_id, 1500)
        assert stats.total_learning_time_ms == 1500
        assert stats.weekly_learning_time_ms == 1500
        assert stats.monthly_learning_time_ms == 1500

    def test_add_negative_learning_time_rejected(self, db_session, test_user_id):
        with pytest.raises(ValueError):
            sessions.add_learning_time(db_session, test_user_id, -1)

    def test_list_sessions_newest_first(self, db_session, test_user_id):
        first = sessions.start_session(db_session, test_user_id, now=START)
        second = sessions.start_session(db_session, test_user_id, now=START + timedelta(hours=1))
        listed = sessions.list_sessions(db_session, test_user_id)
        assert [s.id for s in listed] == [second.id, first.id]

    def test_list_sessions_limit(self, db_session, test_user_id):
        for minute in range(3):
            sessions.start_session(db_session, test_user_id, now=START + timedelta(minutes=minute))
        assert len(sessions.list_sessions(db_session, test_user_id, limit=2)) == 2

    def test_active_session(self, db_session, test_user_id):
        closed = sessions.start_session(db_session, test_user_id, now=START)
        sessions.end_session(db_session, test_user_id, closed.id, now=START + timedelta(minutes=1))
        assert sessions.get_active_session(db_session, test_user_id) is None

        open_session = sessions.start_session(db_session, test_user_id, now=START + timedelta(hours=1))
        assert sessions.get_active_session(db_session, test_user_id).id == open_session.id

    def test_sessions_in_range_and_total(self, db_session, test_user_id):
        early = sessions.start_session(db_session, test_user_id, now=START)
        sessions.end_session(db_session, test_user_id, early.id, now=START + timedelta(minutes=10))
        late = sessions.start_session(db_session, test_user_id, now=START + timedelta(days=2))
        sessions.end_session(db_session, test_user_id, late.id, now=START + timedelta(days=2, minutes=5))

        in_range = sessions.sessions_in_range(db_session, test_user_id, START, START + timedelta(days=1))
        assert [s.id for s in in_range] == [early.id]
        assert sessions.total_learning_time(db_session, test_user_id) == 15 * 60 * 1000
