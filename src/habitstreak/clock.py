"""Injectable source of the local calendar date."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Protocol


class Clock(Protocol):
    """Anything that can tell the current local calendar day."""

    def today(self) -> date:  # pragma: no cover - interface
        ...


class SystemClock:
    """Reads the executing machine's local clock."""

    def today(self) -> date:
        return date.today()


class FixedClock:
    """Clock pinned to a given day; used by tests and back-fill commands."""

    def __init__(self, day: date) -> None:
        self._day = day

    def today(self) -> date:
        return self._day

    def advance(self, days: int = 1) -> date:
        """Move the pinned day forward (or backward for negative values)."""

        self._day = self._day + timedelta(days=days)
        return self._day


__all__ = ["Clock", "FixedClock", "SystemClock"]
