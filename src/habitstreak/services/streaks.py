"""Pure streak and progress calculations over completion dates."""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Iterable

WEEK_DAYS = 7

_BADGE_TIERS: tuple[tuple[int, str], ...] = (
    (30, "Champion"),
    (14, "On Fire"),
    (7, "Weekly Warrior"),
    (3, "Getting Started"),
)
_DEFAULT_BADGE = "Just Started"


def normalize_day(value: date | datetime) -> date:
    """Strip time-of-day, keeping the calendar date as written."""

    if isinstance(value, datetime):
        return value.date()
    return value


def unique_days(values: Iterable[date | datetime]) -> set[date]:
    """Return the distinct calendar days in ``values``."""

    return {normalize_day(value) for value in values}


def compute_streak(completions: Iterable[date | datetime], *, today: date) -> int:
    """Return the run of consecutive completed days ending at ``today``.

    Days are de-duplicated and sorted newest first, then compared position by
    position against ``today - i``. The first mismatch ends the run, so a
    history whose newest day is not ``today`` yields 0. Days after ``today``
    (clock skew) are ignored.
    """

    ordered = sorted((day for day in unique_days(completions) if day <= today), reverse=True)

    streak = 0
    for index, day in enumerate(ordered):
        if day != today - timedelta(days=index):
            break
        streak += 1
    return streak


def compute_longest_streak(completions: Iterable[date | datetime]) -> int:
    """Return the longest run of consecutive days anywhere in the history."""

    longest = 0
    run = 0
    previous: date | None = None
    for day in sorted(unique_days(completions)):
        if previous is not None and day == previous + timedelta(days=1):
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        previous = day
    return longest


def is_completed_on(completions: Iterable[date | datetime], day: date) -> bool:
    """Return True when ``day`` appears in the completion history."""

    return any(normalize_day(value) == day for value in completions)


def streak_badge(streak: int) -> str:
    """Label a streak length for the streak dashboard."""

    for threshold, label in _BADGE_TIERS:
        if streak >= threshold:
            return label
    return _DEFAULT_BADGE


def week_window(today: date) -> tuple[date, date]:
    """Return the inclusive (start, end) of the seven days ending ``today``."""

    return today - timedelta(days=WEEK_DAYS - 1), today


def weekly_progress_percent(total_completions: int, habit_count: int) -> int:
    """Percentage of possible completions achieved over one week.

    Rounds half up, so 50.5 becomes 51.
    """

    if habit_count <= 0:
        return 0
    possible = habit_count * WEEK_DAYS
    return int(math.floor(100 * total_completions / possible + 0.5))


__all__ = [
    "WEEK_DAYS",
    "compute_longest_streak",
    "compute_streak",
    "is_completed_on",
    "normalize_day",
    "streak_badge",
    "unique_days",
    "week_window",
    "weekly_progress_percent",
]
