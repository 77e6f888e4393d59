"""Service module exports."""

from . import auth, habits, streaks

__all__ = [
    "auth",
    "habits",
    "streaks",
]
