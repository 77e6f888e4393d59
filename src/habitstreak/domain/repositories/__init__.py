"""Repository protocols for dependency inversion."""

from .completion import CompletionRepository
from .habit import HabitRepository

__all__ = [
    "CompletionRepository",
    "HabitRepository",
]
