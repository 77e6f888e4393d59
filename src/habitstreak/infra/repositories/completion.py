"""SQLModel implementation of the completion repository."""

from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from ...errors import DuplicateCompletionError
from ...models.habit import HabitCompletion
from ..database import SessionFactory
from ._errors import store_errors


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


class SQLModelCompletionRepository:
    """SQLModel-based completion repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def insert(self, habit_id: int, completed_date: date, *, user_id: int) -> HabitCompletion:
        """Insert a completion row, relying on the table's unique constraint."""
        with store_errors("record completion"):
            try:
                with self.session_factory() as session:
                    row = HabitCompletion(
                        habit_id=habit_id, user_id=user_id, completed_date=completed_date
                    )
                    session.add(row)
                    session.flush()
                    session.refresh(row)
                    session.expunge(row)
            except IntegrityError as exc:
                if _is_unique_violation(exc):
                    raise DuplicateCompletionError(habit_id, completed_date) from exc
                raise
        return row

    def delete(self, habit_id: int, completed_date: date, *, user_id: int) -> bool:
        """Delete one completion row."""
        with store_errors("delete completion"), self.session_factory() as session:
            row = session.exec(
                select(HabitCompletion)
                .where(HabitCompletion.user_id == user_id)
                .where(HabitCompletion.habit_id == habit_id)
                .where(HabitCompletion.completed_date == completed_date)
            ).first()
            if row is None:
                return False
            session.delete(row)
            return True

    def query(
        self,
        *,
        user_id: int,
        habit_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[HabitCompletion]:
        """Return a user's completions, optionally per habit and within [start, end]."""
        with store_errors("load completions"), self.session_factory() as session:
            statement = select(HabitCompletion).where(HabitCompletion.user_id == user_id)
            if habit_id is not None:
                statement = statement.where(HabitCompletion.habit_id == habit_id)
            if start is not None:
                statement = statement.where(HabitCompletion.completed_date >= start)
            if end is not None:
                statement = statement.where(HabitCompletion.completed_date <= end)
            statement = statement.order_by(HabitCompletion.completed_date)  # type: ignore[arg-type]
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def exists(self, habit_id: int, completed_date: date, *, user_id: int) -> bool:
        """Return True when the habit has a completion on ``completed_date``."""
        with store_errors("check completion"), self.session_factory() as session:
            found = session.exec(
                select(HabitCompletion.id)
                .where(HabitCompletion.user_id == user_id)
                .where(HabitCompletion.habit_id == habit_id)
                .where(HabitCompletion.completed_date == completed_date)
            ).first()
            return found is not None
