"""Completion repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.habit import HabitCompletion


class CompletionRepository(Protocol):
    """Persistence contract for "habit done on day" rows."""

    def insert(self, habit_id: int, completed_date: date, *, user_id: int) -> HabitCompletion:
        """Insert a completion; raises DuplicateCompletionError if the day is taken."""
        ...

    def delete(self, habit_id: int, completed_date: date, *, user_id: int) -> bool:
        """Remove a completion; return False when nothing matched."""
        ...

    def query(
        self,
        *,
        user_id: int,
        habit_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[HabitCompletion]:
        """Return completions ordered by date ascending."""
        ...

    def exists(self, habit_id: int, completed_date: date, *, user_id: int) -> bool:
        """Return True when a completion row exists for that day."""
        ...
