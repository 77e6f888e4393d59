"""Habit tracking service: reconciliation, daily completion and progress.

The ``streak`` and ``completed`` columns on a habit are a cache of values derived
from its completion history. ``HabitTracker.reconcile`` recomputes them for
every habit of a user and writes back only the rows that drifted (for example
after midnight passes without activity). ``HabitTracker.complete`` is the only
user-triggered transition and is one-way for the day: once a habit is done
today it stays done until the date rolls over.

The store's unique constraint on (habit, user, day) is the sole guard against
two overlapping completions; losing that race is reported as "already
completed", never as a failure.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, Optional

from ..clock import Clock, SystemClock
from ..constants.categories import ALL_CATEGORIES, DEFAULT_CATEGORY
from ..domain.repositories import CompletionRepository, HabitRepository
from ..errors import DuplicateCompletionError, StoreAccessError
from ..logging_config import get_logger
from ..models.habit import Habit
from .streaks import (
    compute_longest_streak,
    compute_streak,
    is_completed_on,
    streak_badge,
    week_window,
    weekly_progress_percent,
)

logger = get_logger(__name__)

ALREADY_COMPLETED_MESSAGE = "This habit is already completed for today!"
RETRY_MESSAGE = "Something went wrong talking to the database. Please try again."


class OutcomeStatus(str, Enum):
    """Result states reported to the presentation layer."""

    COMPLETED = "completed"
    ALREADY_COMPLETED = "already_completed"
    REMOVED = "removed"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class CompletionOutcome:
    """Result of marking a habit complete for today."""

    status: OutcomeStatus
    habit_id: int
    new_streak: Optional[int] = None
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.COMPLETED

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "habit_id": self.habit_id,
            "streak": self.new_streak,
            "message": self.message,
        }


@dataclass(frozen=True)
class RemovalOutcome:
    """Result of deleting a habit."""

    status: OutcomeStatus
    habit_id: int
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.REMOVED

    def to_dict(self) -> dict:
        return {"status": self.status.value, "habit_id": self.habit_id, "message": self.message}


@dataclass
class HabitView:
    """Reconciled habit as shown to the user."""

    id: int
    name: str
    category: str
    streak: int
    completed: bool

    @classmethod
    def from_habit(cls, habit: Habit) -> "HabitView":
        return cls(
            id=habit.id,  # type: ignore[arg-type]
            name=habit.name,
            category=habit.category,
            streak=habit.streak,
            completed=habit.completed,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ReconciliationIssue:
    """A habit whose reconciliation could not finish."""

    habit_id: int
    stage: str  # "read" or "write"
    message: str


@dataclass
class ReconciliationReport:
    """Outcome of one reconciliation pass over a user's habits."""

    habits: list[HabitView] = field(default_factory=list)
    updated: list[int] = field(default_factory=list)
    errors: list[ReconciliationIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class HabitStreakEntry:
    """One row of the streak dashboard."""

    id: int
    name: str
    category: str
    streak: int
    longest_streak: int
    badge: str


@dataclass
class StreakSummary:
    """Aggregates shown on the streak dashboard."""

    longest_streak: int = 0
    total_days: int = 0
    active_streaks: int = 0
    completed_today: int = 0
    total_habits: int = 0
    habits: list[HabitStreakEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class HabitTracker:
    """Coordinates habit and completion stores for one request or session.

    Every public method takes the acting ``user_id`` explicitly. A ``None``
    user id means nobody is signed in; operations then do nothing.
    """

    def __init__(
        self,
        habits: HabitRepository,
        completions: CompletionRepository,
        clock: Clock | None = None,
    ) -> None:
        self.habits = habits
        self.completions = completions
        self.clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    def _history(self, habit_id: int, user_id: int) -> list[date]:
        rows = self.completions.query(user_id=user_id, habit_id=habit_id)
        return [row.completed_date for row in rows]

    def is_completed_today(self, habit_id: int, user_id: Optional[int]) -> bool:
        """Return True when the habit has a completion row for today.

        No row is the ordinary "not yet" answer; a store failure raises
        StoreAccessError instead of returning False.
        """

        if user_id is None:
            return False
        return self.completions.exists(habit_id, self.clock.today(), user_id=user_id)

    def streak_for(self, habit_id: int, user_id: Optional[int]) -> int:
        """Current streak over the habit's full completion history."""

        if user_id is None:
            return 0
        return compute_streak(self._history(habit_id, user_id), today=self.clock.today())

    def completion_dates(
        self,
        habit_id: int,
        user_id: Optional[int],
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[date]:
        """Days the habit was completed, oldest first, for calendar views."""

        if user_id is None:
            return []
        rows = self.completions.query(user_id=user_id, habit_id=habit_id, start=start, end=end)
        return [row.completed_date for row in rows]

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------
    def reconcile(self, user_id: Optional[int], *, category: Optional[str] = None) -> ReconciliationReport:
        """Bring every cached streak/completed flag in line with the history.

        Habits are processed independently: a read or write failure on one
        is recorded in the report and the others carry on. Running this twice
        with no new completions in between performs no writes the second time.
        """

        report = ReconciliationReport()
        if user_id is None:
            return report

        if category == ALL_CATEGORIES:
            category = None
        try:
            habits = self.habits.list_for_user(user_id=user_id, category=category)
        except StoreAccessError:
            logger.exception("Failed to load habits", extra={"user_id": user_id})
            raise

        today = self.clock.today()
        for habit in habits:
            view = self._reconcile_one(habit, user_id, today, report)
            if view is not None:
                report.habits.append(view)

        if report.updated or report.errors:
            logger.info(
                "Reconciled habits",
                extra={
                    "user_id": user_id,
                    "habit_count": len(habits),
                    "updated": report.updated,
                    "errors": len(report.errors),
                },
            )
        return report

    def _reconcile_one(
        self, habit: Habit, user_id: int, today: date, report: ReconciliationReport
    ) -> Optional[HabitView]:
        habit_id = habit.id
        try:
            history = self._history(habit_id, user_id)
        except StoreAccessError as exc:
            logger.error(
                "Could not read completions; keeping cached values",
                extra={"user_id": user_id, "habit_id": habit_id, "error": str(exc)},
            )
            report.errors.append(ReconciliationIssue(habit_id, "read", str(exc)))
            return HabitView.from_habit(habit)

        completed = is_completed_on(history, today)
        streak = compute_streak(history, today=today)
        view = HabitView(
            id=habit_id,
            name=habit.name,
            category=habit.category,
            streak=streak,
            completed=completed,
        )

        changes: dict[str, object] = {}
        if habit.completed != completed:
            changes["completed"] = completed
        if habit.streak != streak:
            changes["streak"] = streak
        if not changes:
            return view

        try:
            found = self.habits.update_fields(habit_id, user_id=user_id, **changes)
        except StoreAccessError as exc:
            logger.error(
                "Could not persist reconciled values",
                extra={"user_id": user_id, "habit_id": habit_id, "error": str(exc)},
            )
            report.errors.append(ReconciliationIssue(habit_id, "write", str(exc)))
            return view

        if not found:
            # Deleted between the list read and this update.
            logger.warning(
                "Habit vanished during reconciliation",
                extra={"user_id": user_id, "habit_id": habit_id},
            )
            return None

        report.updated.append(habit_id)
        logger.debug(
            "Habit cache corrected",
            extra={"user_id": user_id, "habit_id": habit_id, "changes": changes},
        )
        return view

    def load_habits(self, user_id: Optional[int], *, category: Optional[str] = None) -> list[HabitView]:
        """Reconciled habit list for display; call once per full list load."""

        return self.reconcile(user_id, category=category).habits

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def complete(
        self,
        habit_id: int,
        user_id: Optional[int],
        *,
        cached_completed: Optional[bool] = None,
    ) -> CompletionOutcome:
        """Mark a habit done for today and refresh its cached streak.

        ``cached_completed`` is the caller's in-memory view; when omitted the
        completion table is asked directly. A rejected call never writes.
        """

        if user_id is None:
            return CompletionOutcome(OutcomeStatus.UNAUTHENTICATED, habit_id)

        today = self.clock.today()
        try:
            habit = self.habits.get_by_id(habit_id, user_id=user_id)
            if habit is None:
                return CompletionOutcome(OutcomeStatus.NOT_FOUND, habit_id, message="Habit not found")
            already = (
                cached_completed
                if cached_completed is not None
                else self.completions.exists(habit_id, today, user_id=user_id)
            )
        except StoreAccessError as exc:
            return self._failed(habit_id, user_id, "check habit", exc)

        if already:
            return CompletionOutcome(
                OutcomeStatus.ALREADY_COMPLETED, habit_id, message=ALREADY_COMPLETED_MESSAGE
            )

        try:
            self.completions.insert(habit_id, today, user_id=user_id)
        except DuplicateCompletionError:
            logger.info(
                "Completion already recorded by a concurrent request",
                extra={"user_id": user_id, "habit_id": habit_id, "day": today},
            )
            return CompletionOutcome(
                OutcomeStatus.ALREADY_COMPLETED, habit_id, message=ALREADY_COMPLETED_MESSAGE
            )
        except StoreAccessError as exc:
            return self._failed(habit_id, user_id, "record completion", exc)

        # From here on the completion row exists; a failure leaves a stale
        # cache that the next reconciliation repairs.
        try:
            new_streak = compute_streak(self._history(habit_id, user_id), today=today)
            updated = self.habits.update_fields(
                habit_id, user_id=user_id, completed=True, streak=new_streak
            )
        except StoreAccessError as exc:
            return self._failed(habit_id, user_id, "update habit", exc)
        if not updated:
            logger.warning(
                "Habit deleted before its streak was saved",
                extra={"user_id": user_id, "habit_id": habit_id},
            )
            return CompletionOutcome(OutcomeStatus.NOT_FOUND, habit_id, message="Habit not found")

        logger.info(
            "Habit completed",
            extra={"user_id": user_id, "habit_id": habit_id, "streak": new_streak},
        )
        return CompletionOutcome(
            OutcomeStatus.COMPLETED,
            habit_id,
            new_streak=new_streak,
            message=f"Great! {habit.name} completed for today!",
        )

    def _failed(self, habit_id: int, user_id: int, action: str, exc: Exception) -> CompletionOutcome:
        logger.error(
            "Failed to %s",
            action,
            extra={"user_id": user_id, "habit_id": habit_id, "error": str(exc)},
        )
        return CompletionOutcome(OutcomeStatus.FAILED, habit_id, message=RETRY_MESSAGE)

    def remove(self, habit_id: int, user_id: Optional[int]) -> RemovalOutcome:
        """Delete a habit and its completion history."""

        if user_id is None:
            return RemovalOutcome(OutcomeStatus.UNAUTHENTICATED, habit_id)
        try:
            deleted = self.habits.delete(habit_id, user_id=user_id)
        except StoreAccessError as exc:
            logger.error(
                "Failed to delete habit",
                extra={"user_id": user_id, "habit_id": habit_id, "error": str(exc)},
            )
            return RemovalOutcome(OutcomeStatus.FAILED, habit_id, message=RETRY_MESSAGE)
        if not deleted:
            return RemovalOutcome(OutcomeStatus.NOT_FOUND, habit_id, message="Habit not found")
        logger.info("Habit deleted", extra={"user_id": user_id, "habit_id": habit_id})
        return RemovalOutcome(OutcomeStatus.REMOVED, habit_id, message="Habit deleted successfully")

    def create_habits(
        self, user_id: Optional[int], entries: Iterable[tuple[str, Optional[str]]]
    ) -> list[Habit]:
        """Persist habits picked during setup, skipping names the user already has."""

        if user_id is None:
            return []

        existing = {habit.name.casefold() for habit in self.habits.list_for_user(user_id=user_id)}
        fresh: list[Habit] = []
        for name, category in entries:
            name = name.strip()
            key = name.casefold()
            if not name or key in existing:
                continue
            existing.add(key)
            fresh.append(
                Habit(
                    user_id=user_id,
                    name=name,
                    category=category or DEFAULT_CATEGORY,
                    streak=0,
                    completed=False,
                )
            )

        created = self.habits.create_many(fresh, user_id=user_id)
        if created:
            logger.info("Habits created", extra={"user_id": user_id, "count": len(created)})
        return created

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def weekly_progress(self, user_id: Optional[int]) -> int:
        """Percent of possible completions over the last seven days, today included."""

        if user_id is None:
            return 0
        habit_ids = {habit.id for habit in self.habits.list_for_user(user_id=user_id)}
        if not habit_ids:
            return 0
        start, end = week_window(self.clock.today())
        rows = self.completions.query(user_id=user_id, start=start, end=end)
        total = sum(1 for row in rows if row.habit_id in habit_ids)
        return weekly_progress_percent(total, len(habit_ids))

    def streak_summary(self, user_id: Optional[int]) -> StreakSummary:
        """Dashboard aggregates over the user's reconciled habits."""

        summary = StreakSummary()
        if user_id is None:
            return summary

        views = self.load_habits(user_id)
        history: dict[int, list[date]] = {view.id: [] for view in views}
        for row in self.completions.query(user_id=user_id):
            if row.habit_id in history:
                history[row.habit_id].append(row.completed_date)

        for view in views:
            summary.habits.append(
                HabitStreakEntry(
                    id=view.id,
                    name=view.name,
                    category=view.category,
                    streak=view.streak,
                    longest_streak=compute_longest_streak(history[view.id]),
                    badge=streak_badge(view.streak),
                )
            )

        summary.total_habits = len(views)
        summary.completed_today = sum(1 for view in views if view.completed)
        summary.total_days = sum(view.streak for view in views)
        summary.active_streaks = sum(1 for view in views if view.streak > 0)
        summary.longest_streak = max((view.streak for view in views), default=0)
        return summary


__all__ = [
    "ALREADY_COMPLETED_MESSAGE",
    "CompletionOutcome",
    "HabitStreakEntry",
    "HabitTracker",
    "HabitView",
    "OutcomeStatus",
    "ReconciliationIssue",
    "ReconciliationReport",
    "RemovalOutcome",
    "StreakSummary",
]
