"""Tests for PlanRepository, including due-date shifting."""

import pytest
from datetime import date, datetime, timedelta
import uuid

from learnplan.database.plan_repository import PlanRepository
from learnplan.accounting.sessions import start_session
from learnplan.database.models import LearningSessionDB, TodoDB
from learnplan.models.plan import Plan, PlanStatus, Todo, TodoStatus

DUE = datetime(2024, 3, 20, 12, 0, 0)


def _plan(user_id, todo_rows):
    """Build a plan with todos from (title, due_date, status) tuples."""
    now = datetime.utcnow()
    plan_id = str(uuid.uuid4())
    todos = [
        Todo(
            id=str(uuid.uuid4()),
            plan_id=plan_id,
            title=title,
            order=index,
            status=status,
            due_date=due_date,
            created_at=now,
            updated_at=now,
        )
        for index, (title, due_date, status) in enumerate(todo_rows)
    ]
    return Plan(
        id=plan_id,
        user_id=user_id,
        title="Learn Python",
        created_at=now,
        updated_at=now,
        todos=todos,
    )


@pytest.fixture
def plan_repository(db_session):
    return PlanRepository(db_session)


class TestPlanRepository:
    """Test plan CRUD."""

    def test_create_and_get_with_ordered_todos(self, plan_repository, test_user_id):
        plan = _plan(test_user_id, [
            ("Basics", DUE, TodoStatus.PENDING),
            ("Functions", DUE + timedelta(days=1), TodoStatus.PENDING),
        ])
        plan_repository.create(plan)

        fetched = plan_repository.get(test_user_id, plan.id)
        assert fetched.title == "Learn Python"
        assert [t.title for t in fetched.todos] == ["Basics", "Functions"]
        assert fetched.difficulty == "medium"

    def test_get_is_user_scoped(self, plan_repository, test_user_id, other_user_id):
        plan = _plan(test_user_id, [])
        plan_repository.create(plan)
        assert plan_repository.get(other_user_id, plan.id) is None
        assert plan_repository.get_owner(plan.id) == test_user_id

    def test_todo_owner_lookup(self, plan_repository, test_user_id):
        plan = _plan(test_user_id, [("Basics", None, TodoStatus.PENDING)])
        plan_repository.create(plan)

        todo, owner_id = plan_repository.get_todo_with_owner(plan.todos[0].id)
        assert todo.plan_id == plan.id
        assert owner_id == test_user_id
        assert plan_repository.get_todo_with_owner("missing") is None

    def test_update_todo_status_sets_completed_at(self, plan_repository, test_user_id, other_user_id):
        plan = _plan(test_user_id, [("Basics", None, TodoStatus.PENDING)])
        plan_repository.create(plan)
        todo_id = plan.todos[0].id

        assert plan_repository.update_todo_status(other_user_id, todo_id, TodoStatus.COMPLETED) is None

        updated = plan_repository.update_todo_status(test_user_id, todo_id, TodoStatus.COMPLETED)
        assert updated.status == "completed"
        assert updated.completed_at is not None

    def test_update_plan_partial(self, plan_repository, test_user_id, other_user_id):
        plan = _plan(test_user_id, [])
        plan_repository.create(plan)

        assert plan_repository.update_plan(other_user_id, plan.id, {"title": "Stolen"}) is None

        updated = plan_repository.update_plan(test_user_id, plan.id, {"title": "Learn Rust", "status": PlanStatus.COMPLETED})
        assert updated.title == "Learn Rust"
        assert updated.status == "completed"
        assert updated.difficulty == "medium"

    def test_update_plan_rejects_unknown_field(self, plan_repository, test_user_id):
        plan = _plan(test_user_id, [])
        plan_repository.create(plan)
        with pytest.raises(ValueError):
            plan_repository.update_plan(test_user_id, plan.id, {"user_id": "someone-else"})

    def test_delete_plan_removes_todos_and_keeps_sessions(self, plan_repository, db_session, test_user_id):
        plan = _plan(test_user_id, [("Basics", DUE, TodoStatus.PENDING)])
        plan_repository.create(plan)
        todo_id = plan.todos[0].id
        session = start_session(db_session, test_user_id, plan_id=plan.id, todo_id=todo_id)

        assert plan_repository.delete_plan(test_user_id, plan.id) is True

        assert plan_repository.get(test_user_id, plan.id) is None
        assert db_session.query(TodoDB).filter(TodoDB.id == todo_id).first() is None
        session_db = db_session.query(LearningSessionDB).filter(LearningSessionDB.id == session.id).one()
        db_session.refresh(session_db)
        assert session_db.plan_id is None
        assert session_db.todo_id is None
        assert plan_repository.delete_plan(test_user_id, plan.id) is False

    def test_delete_todo_is_user_scoped(self, plan_repository, test_user_id, other_user_id):
        plan = _plan(test_user_id, [("Basics", DUE, TodoStatus.PENDING), ("Next", DUE, TodoStatus.PENDING)])
        plan_repository.create(plan)
        todo_id = plan.todos[0].id

        assert plan_repository.delete_todo(other_user_id, todo_id) is False
        assert plan_repository.delete_todo(test_user_id, todo_id) is True
        assert [t.title for t in plan_repository.get(test_user_id, plan.id).todos] == ["Next"]

    def test_todos_due_on_day(self, plan_repository, test_user_id, other_user_id):
        plan = _plan(test_user_id, [
            ("Morning", datetime(2024, 3, 20, 0, 0, 0), TodoStatus.PENDING),
            ("Night", datetime(2024, 3, 20, 23, 59, 59), TodoStatus.COMPLETED),
            ("Tomorrow", datetime(2024, 3, 21, 0, 0, 0), TodoStatus.PENDING),
            ("Undated", None, TodoStatus.PENDING),
        ])
        plan_repository.create(plan)
        plan_repository.create(_plan(other_user_id, [("Theirs", DUE, TodoStatus.PENDING)]))

        due = plan_repository.todos_due_on(test_user_id, date(2024, 3, 20))

        assert [(todo.title, plan_title) for todo, plan_title in due] == [
            ("Morning", "Learn Python"),
            ("Night", "Learn Python"),
        ]


class TestShiftDueDates:
    """Test shifting due dates of pending todos."""

    def test_shift_moves_only_pending_dated_todos(self, plan_repository, test_user_id):
        plan = _plan(test_user_id, [
            ("Pending", DUE, TodoStatus.PENDING),
            ("In progress", DUE, TodoStatus.IN_PROGRESS),
            ("Done", DUE, TodoStatus.COMPLETED),
            ("Undated", None, TodoStatus.PENDING),
        ])
        plan_repository.create(plan)

        shifted = plan_repository.shift_due_dates(test_user_id, 2)

        assert [t.title for t in shifted] == ["Pending"]
        todos = {t.title: t for t in plan_repository.get(test_user_id, plan.id).todos}
        assert todos["Pending"].due_date == DUE + timedelta(days=2)
        assert todos["In progress"].due_date == DUE
        assert todos["Done"].due_date == DUE
        assert todos["Undated"].due_date is None

    def test_shift_backwards(self, plan_repository, test_user_id):
        plan = _plan(test_user_id, [("Pending", DUE, TodoStatus.PENDING)])
        plan_repository.create(plan)

        plan_repository.shift_due_dates(test_user_id, -1)

        assert plan_repository.get(test_user_id, plan.id).todos[0].due_date == DUE - timedelta(days=1)

    def test_shift_limited_to_plan(self, plan_repository, test_user_id):
        first = _plan(test_user_id, [("First", DUE, TodoStatus.PENDING)])
        second = _plan(test_user_id, [("Second", DUE, TodoStatus.PENDING)])
        plan_repository.create(first)
        plan_repository.create(second)

        shifted = plan_repository.shift_due_dates(test_user_id, 1, plan_id=first.id)

        assert [t.title for t in shifted] == ["First"]
        assert plan_repository.get(test_user_id, second.id).todos[0].due_date == DUE

    def test_shift_does_not_touch_other_users(self, plan_repository, test_user_id, other_user_id):
        theirs = _plan(other_user_id, [("Theirs", DUE, TodoStatus.PENDING)])
        plan_repository.create(theirs)

        assert plan_repository.shift_due_dates(test_user_id, 3) == []
        assert plan_repository.get(other_user_id, theirs.id).todos[0].due_date == DUE
