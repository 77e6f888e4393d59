"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlmodel import select

from ...models.habit import Habit
from ..database import SessionFactory
from ._errors import store_errors

# Columns callers may change through update_fields.
UPDATABLE_FIELDS = frozenset({"name", "category", "streak", "completed"})


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def list_for_user(self, *, user_id: int, category: Optional[str] = None) -> list[Habit]:
        """List a user's habits in creation order."""
        with store_errors("list habits"), self.session_factory() as session:
            statement = select(Habit).where(Habit.user_id == user_id)
            if category:
                statement = statement.where(Habit.category == category)
            statement = statement.order_by(Habit.created_at, Habit.id)  # type: ignore[arg-type]
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with store_errors("load habit"), self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def update_fields(self, habit_id: int, *, user_id: int, **fields: Any) -> bool:
        """Change only the given columns of one habit and stamp updated_at."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update habit fields: {', '.join(sorted(unknown))}")

        with store_errors("update habit"), self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit is None:
                return False
            for key, value in fields.items():
                setattr(habit, key, value)
            habit.updated_at = datetime.now(timezone.utc)
            session.add(habit)
            return True

    def create_many(self, records: Iterable[Habit], *, user_id: int) -> list[Habit]:
        """Insert new habits owned by ``user_id``."""
        habits = list(records)
        if not habits:
            return []
        with store_errors("create habits"), self.session_factory() as session:
            for habit in habits:
                habit.user_id = user_id
                session.add(habit)
            session.flush()
            for habit in habits:
                session.refresh(habit)
            session.expunge_all()
            return habits

    def delete(self, habit_id: int, *, user_id: int) -> bool:
        """Delete a habit; its completion rows go with it in the same transaction."""
        with store_errors("delete habit"), self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit is None:
                return False
            session.delete(habit)
            return True
