"""Tests for reconciling cached habit fields with completion history."""

from __future__ import annotations

from conftest import TODAY, CountingHabitRepository, days_ago
from habitstreak.errors import StoreAccessError
from habitstreak.infra.repositories import SQLModelCompletionRepository
from habitstreak.services.habits import HabitTracker


class FlakyCompletionRepository(SQLModelCompletionRepository):
    """Fails reads for selected habits."""

    def __init__(self, session_factory, failing: set[int]):
        super().__init__(session_factory)
        self.failing = failing

    def query(self, *, user_id, habit_id=None, start=None, end=None):
        if habit_id in self.failing:
            raise StoreAccessError("connection reset")
        return super().query(user_id=user_id, habit_id=habit_id, start=start, end=end)


class FailingWriteHabitRepository(CountingHabitRepository):
    def __init__(self, session_factory, failing: set[int]):
        super().__init__(session_factory)
        self.failing = failing

    def update_fields(self, habit_id, *, user_id, **fields):
        if habit_id in self.failing:
            raise StoreAccessError("write timeout")
        return super().update_fields(habit_id, user_id=user_id, **fields)


def test_stale_streak_is_corrected_with_one_update(
    tracker, habit_repo, habit_factory, add_completions, user
):
    habit = habit_factory(streak=1, completed=False)
    add_completions(habit, days_ago(2), days_ago(1), TODAY)

    report = tracker.reconcile(user.id)

    assert len(habit_repo.updates) == 1
    assert habit_repo.updates[0] == (habit.id, {"completed": True, "streak": 3})
    assert report.updated == [habit.id]
    view = report.habits[0]
    assert (view.streak, view.completed) == (3, True)
    stored = habit_repo.get_by_id(habit.id, user_id=user.id)
    assert (stored.streak, stored.completed) == (3, True)


def test_completed_flag_resets_after_day_rollover(
    tracker, habit_repo, habit_factory, add_completions, user
):
    habit = habit_factory(streak=4, completed=True)
    add_completions(habit, days_ago(4), days_ago(3), days_ago(2), days_ago(1))

    report = tracker.reconcile(user.id)

    assert (report.habits[0].completed, report.habits[0].streak) == (False, 0)
    stored = habit_repo.get_by_id(habit.id, user_id=user.id)
    assert (stored.completed, stored.streak) == (False, 0)


def test_only_drifted_fields_are_written(tracker, habit_repo, habit_factory, add_completions):
    habit = habit_factory(streak=2, completed=False)
    add_completions(habit, TODAY, days_ago(1))

    tracker.reconcile(habit.user_id)

    assert habit_repo.updates == [(habit.id, {"completed": True})]


def test_second_pass_writes_nothing(tracker, habit_repo, habit_factory, add_completions, user):
    first = habit_factory(name="A", streak=9, completed=True)
    second = habit_factory(name="B")
    add_completions(first, TODAY)
    add_completions(second, days_ago(1))

    initial = tracker.reconcile(user.id)
    writes_after_first = len(habit_repo.updates)
    again = tracker.reconcile(user.id)

    assert writes_after_first == 1
    assert len(habit_repo.updates) == writes_after_first
    assert again.updated == []
    assert [v.to_dict() for v in again.habits] == [v.to_dict() for v in initial.habits]


def test_consistent_habits_cause_no_writes(tracker, habit_repo, habit_factory, user):
    habit_factory(name="Fresh")

    report = tracker.reconcile(user.id)

    assert habit_repo.updates == []
    assert report.ok


def test_read_failure_does_not_stop_other_habits(
    session_factory, clock, habit_factory, add_completions, user
):
    broken = habit_factory(name="Broken", streak=5, completed=True)
    healthy = habit_factory(name="Healthy", streak=0)
    add_completions(healthy, TODAY)
    habits = CountingHabitRepository(session_factory)
    tracker = HabitTracker(
        habits, FlakyCompletionRepository(session_factory, {broken.id}), clock=clock
    )

    report = tracker.reconcile(user.id)

    by_id = {view.id: view for view in report.habits}
    assert (by_id[broken.id].streak, by_id[broken.id].completed) == (5, True)
    assert (by_id[healthy.id].streak, by_id[healthy.id].completed) == (1, True)
    assert [(e.habit_id, e.stage) for e in report.errors] == [(broken.id, "read")]
    assert habits.updates == [(healthy.id, {"completed": True, "streak": 1})]


def test_write_failure_is_reported_and_truth_returned(
    session_factory, clock, habit_factory, add_completions, user
):
    habit = habit_factory(streak=0)
    other = habit_factory(name="Other", streak=7)
    add_completions(habit, TODAY)
    tracker = HabitTracker(
        FailingWriteHabitRepository(session_factory, {habit.id}),
        SQLModelCompletionRepository(session_factory),
        clock=clock,
    )

    report = tracker.reconcile(user.id)

    by_id = {view.id: view for view in report.habits}
    assert by_id[habit.id].streak == 1
    assert by_id[other.id].streak == 0
    assert [(e.habit_id, e.stage) for e in report.errors] == [(habit.id, "write")]
    assert report.updated == [other.id]


def test_category_filter(tracker, habit_factory, user):
    habit_factory(name="Run", category="Fitness")
    habit_factory(name="Read", category="Learning")

    assert [v.name for v in tracker.load_habits(user.id, category="Fitness")] == ["Run"]
    assert [v.name for v in tracker.load_habits(user.id, category="All")] == ["Run", "Read"]
    assert len(tracker.load_habits(user.id)) == 2


def test_other_users_habits_are_untouched(
    tracker, habit_repo, habit_factory, add_completions, user, user_factory
):
    other = user_factory("other")
    theirs = habit_factory(name="Theirs", streak=3, completed=True, owner=other)

    assert tracker.load_habits(user.id) == []
    assert habit_repo.updates == []
    assert habit_repo.get_by_id(theirs.id, user_id=other.id).streak == 3


def test_anonymous_caller_gets_nothing(tracker, habit_factory, habit_repo):
    habit_factory(streak=2, completed=True)

    report = tracker.reconcile(None)

    assert report.habits == [] and report.ok
    assert habit_repo.updates == []


def test_rollover_with_fixed_clock(tracker, clock, habit_repo, habit_factory, user):
    habit = habit_factory()
    assert tracker.complete(habit.id, user.id).new_streak == 1

    clock.advance()
    view = tracker.load_habits(user.id)[0]

    assert (view.completed, view.streak) == (False, 0)
    assert habit_repo.get_by_id(habit.id, user_id=user.id).completed is False
