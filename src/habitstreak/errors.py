"""Exception types raised by the persistence layer."""

from __future__ import annotations


class HabitStreakError(Exception):
    """Base class for application errors."""


class StoreAccessError(HabitStreakError):
    """The backing store could not be read or written; the caller may retry."""


class DuplicateCompletionError(HabitStreakError):
    """A completion row already exists for this habit, user and day."""

    def __init__(self, habit_id: int, completed_date) -> None:
        super().__init__(f"Habit {habit_id} already completed on {completed_date}")
        self.habit_id = habit_id
        self.completed_date = completed_date


__all__ = ["DuplicateCompletionError", "HabitStreakError", "StoreAccessError"]
