"""Habit repository protocol."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Protocol

from ...models.habit import Habit


class HabitRepository(Protocol):
    """Persistence contract for habit rows; every call is scoped to one owner."""

    def list_for_user(self, *, user_id: int, category: Optional[str] = None) -> list[Habit]:
        """List a user's habits, optionally limited to one category."""
        ...

    def get_by_id(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def update_fields(self, habit_id: int, *, user_id: int, **fields: Any) -> bool:
        """Write only the named columns; return False when no row matched."""
        ...

    def create_many(self, records: Iterable[Habit], *, user_id: int) -> list[Habit]:
        """Insert new habits for a user."""
        ...

    def delete(self, habit_id: int, *, user_id: int) -> bool:
        """Delete a habit together with its completion history."""
        ...
