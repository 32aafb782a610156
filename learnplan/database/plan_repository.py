"""Repository for Plan and Todo database operations."""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import desc

from learnplan.models.plan import Plan, Todo, TodoStatus
from learnplan.database.models import LearningSessionDB, PlanDB, TodoDB, enum_to_value

logger = logging.getLogger(__name__)

PLAN_UPDATABLE_FIELDS = ("title", "description", "difficulty", "estimated_duration", "status")


class PlanRepository:
    """Repository for Plan and Todo database operations."""

    def __init__(self, db: Session):
        self.db = db

    def _todos_for(self, plan_id: str) -> List[TodoDB]:
        return (
            self.db.query(TodoDB)
            .filter(TodoDB.plan_id == plan_id)
            .order_by(TodoDB.order)
            .all()
        )

    def create(self, plan: Plan, todos: Optional[List[Todo]] = None) -> Plan:
        """Create a plan together with its todos in one transaction."""
        todos = todos if todos is not None else list(plan.todos)
        try:
            plan_db = PlanDB(
                id=plan.id,
                user_id=plan.user_id,
                chat_id=plan.chat_id,
                title=plan.title,
                description=plan.description,
                difficulty=enum_to_value(plan.difficulty),
                estimated_duration=plan.estimated_duration,
                status=enum_to_value(plan.status),
                is_forked=plan.is_forked,
                created_at=plan.created_at,
                updated_at=plan.updated_at,
            )
            self.db.add(plan_db)
            for todo in todos:
                self.db.add(TodoDB(
                    id=todo.id,
                    plan_id=plan.id,
                    title=todo.title,
                    description=todo.description,
                    order=todo.order,
                    priority=enum_to_value(todo.priority) if todo.priority else None,
                    status=enum_to_value(todo.status),
                    due_date=todo.due_date,
                    completed_at=todo.completed_at,
                    estimated_time=todo.estimated_time,
                    resources=list(todo.resources),
                    created_at=todo.created_at,
                    updated_at=todo.updated_at,
                ))
            self.db.commit()
            self.db.refresh(plan_db)
            logger.debug(f"Created plan {plan.id} with {len(todos)} todos: {plan.title[:50]}")
            return plan_db.to_pydantic(todos=self._todos_for(plan.id))
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create plan {plan.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, user_id: str, plan_id: str) -> Optional[Plan]:
        """Get plan by ID for a specific user."""
        plan_db = self.db.query(PlanDB).filter(
            PlanDB.id == plan_id,
            PlanDB.user_id == user_id,
        ).first()
        return plan_db.to_pydantic(todos=self._todos_for(plan_id)) if plan_db else None

    def get_owner(self, plan_id: str) -> Optional[str]:
        """Owning user ID of a plan regardless of caller, or None if missing."""
        row = self.db.query(PlanDB.user_id).filter(PlanDB.id == plan_id).first()
        return row[0] if row else None

    def get_all(self, user_id: str) -> List[Plan]:
        """Get all plans for a user (newest first)."""
        plans_db = (
            self.db.query(PlanDB)
            .filter(PlanDB.user_id == user_id)
            .order_by(desc(PlanDB.created_at))
            .all()
        )
        return [plan_db.to_pydantic(todos=self._todos_for(plan_db.id)) for plan_db in plans_db]

    def update_plan(self, user_id: str, plan_id: str, fields: Dict[str, Any]) -> Optional[Plan]:
        """Apply a partial update to a plan. Returns None when missing or not owned."""
        plan_db = self.db.query(PlanDB).filter(
            PlanDB.id == plan_id,
            PlanDB.user_id == user_id,
        ).first()
        if not plan_db:
            return None
        try:
            for name, value in fields.items():
                if name not in PLAN_UPDATABLE_FIELDS:
                    raise ValueError(f"Plan field {name} cannot be updated")
                setattr(plan_db, name, enum_to_value(value) if name in ("difficulty", "status") else value)
            plan_db.updated_at = datetime.utcnow()
            self.db.commit()
            self.db.refresh(plan_db)
            logger.debug(f"Updated plan {plan_id}: {sorted(fields)}")
            return plan_db.to_pydantic(todos=self._todos_for(plan_id))
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update plan {plan_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete_plan(self, user_id: str, plan_id: str) -> bool:
        """Delete a plan and its todos. Sessions that referenced them keep their time."""
        plan_db = self.db.query(PlanDB).filter(
            PlanDB.id == plan_id,
            PlanDB.user_id == user_id,
        ).first()
        if not plan_db:
            return False
        try:
            todo_ids = [row[0] for row in self.db.query(TodoDB.id).filter(TodoDB.plan_id == plan_id).all()]
            if todo_ids:
                self.db.query(LearningSessionDB).filter(LearningSessionDB.todo_id.in_(todo_ids)).update(
                    {LearningSessionDB.todo_id: None}, synchronize_session=False
                )
            self.db.query(LearningSessionDB).filter(LearningSessionDB.plan_id == plan_id).update(
                {LearningSessionDB.plan_id: None}, synchronize_session=False
            )
            self.db.query(TodoDB).filter(TodoDB.plan_id == plan_id).delete(synchronize_session=False)
            self.db.delete(plan_db)
            self.db.commit()
            logger.debug(f"Deleted plan {plan_id} with {len(todo_ids)} todos")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete plan {plan_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete_todo(self, user_id: str, todo_id: str) -> bool:
        """Delete one todo from a plan the user owns."""
        todo_db = (
            self.db.query(TodoDB)
            .join(PlanDB, PlanDB.id == TodoDB.plan_id)
            .filter(TodoDB.id == todo_id, PlanDB.user_id == user_id)
            .first()
        )
        if not todo_db:
            return False
        try:
            self.db.query(LearningSessionDB).filter(LearningSessionDB.todo_id == todo_id).update(
                {LearningSessionDB.todo_id: None}, synchronize_session=False
            )
            self.db.delete(todo_db)
            self.db.commit()
            logger.debug(f"Deleted todo {todo_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete todo {todo_id}: {type(e).__name__}: {str(e)}")
            raise

    def todos_due_on(self, user_id: str, day: date) -> List[Tuple[Todo, str]]:
        """Todos across the user's plans due on a UTC calendar day, with plan titles."""
        start = datetime.combine(day, time.min)
        rows = (
            self.db.query(TodoDB, PlanDB.title)
            .join(PlanDB, PlanDB.id == TodoDB.plan_id)
            .filter(
                PlanDB.user_id == user_id,
                TodoDB.due_date >= start,
                TodoDB.due_date < start + timedelta(days=1),
            )
            .order_by(TodoDB.order, TodoDB.due_date)
            .all()
        )
        return [(todo_db.to_pydantic(), plan_title) for todo_db, plan_title in rows]

    def get_todo_with_owner(self, todo_id: str) -> Optional[Tuple[Todo, str]]:
        """Get a todo and the user ID owning its plan, or None if missing."""
        row = (
            self.db.query(TodoDB, PlanDB.user_id)
            .join(PlanDB, PlanDB.id == TodoDB.plan_id)
            .filter(TodoDB.id == todo_id)
            .first()
        )
        if not row:
            return None
        todo_db, owner_id = row
        return todo_db.to_pydantic(), owner_id

    def update_todo_status(self, user_id: str, todo_id: str, status: TodoStatus) -> Optional[Todo]:
        """Set a todo's status. Returns None when the todo is missing or not owned."""
        todo_db = (
            self.db.query(TodoDB)
            .join(PlanDB, PlanDB.id == TodoDB.plan_id)
            .filter(TodoDB.id == todo_id, PlanDB.user_id == user_id)
            .first()
        )
        if not todo_db:
            return None
        try:
            now = datetime.utcnow()
            status_value = enum_to_value(status)
            todo_db.status = status_value
            todo_db.completed_at = now if status_value == TodoStatus.COMPLETED.value else None
            todo_db.updated_at = now
            self.db.commit()
            self.db.refresh(todo_db)
            return todo_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update todo {todo_id}: {type(e).__name__}: {str(e)}")
            raise

    def shift_due_dates(self, user_id: str, days: int, plan_id: Optional[str] = None) -> List[Todo]:
        """Move due dates of the user's pending todos by `days`.

        Only todos still in `pending` with a due date move; in-progress and
        completed todos keep their dates. When `plan_id` is given only that
        plan's todos move.

        Returns:
            The shifted todos
        """
        query = (
            self.db.query(TodoDB)
            .join(PlanDB, PlanDB.id == TodoDB.plan_id)
            .filter(
                PlanDB.user_id == user_id,
                TodoDB.due_date.isnot(None),
                TodoDB.status == TodoStatus.PENDING.value,
            )
        )
        if plan_id is not None:
            query = query.filter(TodoDB.plan_id == plan_id)

        try:
            now = datetime.utcnow()
            todos_db = query.all()
            for todo_db in todos_db:
                todo_db.due_date = todo_db.due_date + timedelta(days=days)
                todo_db.updated_at = now
            self.db.commit()
            logger.debug(f"Shifted {len(todos_db)} todos by {days} days for user {user_id}")
            return [todo_db.to_pydantic() for todo_db in todos_db]
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to shift todos for user {user_id}: {type(e).__name__}: {str(e)}")
            raise
