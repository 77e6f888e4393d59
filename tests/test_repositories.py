"""Tests for the SQLModel habit and completion repositories."""

from __future__ import annotations

import pytest
from sqlmodel import select

from conftest import TODAY, days_ago
from habitstreak.errors import DuplicateCompletionError, StoreAccessError
from habitstreak.infra.repositories import SQLModelCompletionRepository, SQLModelHabitRepository
from habitstreak.models import Habit, HabitCompletion


class TestCompletionRepository:
    def test_insert_and_exists(self, session_factory, habit_factory, user):
        habit = habit_factory()
        repo = SQLModelCompletionRepository(session_factory)

        row = repo.insert(habit.id, TODAY, user_id=user.id)

        assert row.id is not None
        assert repo.exists(habit.id, TODAY, user_id=user.id) is True
        assert repo.exists(habit.id, days_ago(1), user_id=user.id) is False

    def test_duplicate_day_raises(self, session_factory, habit_factory, user):
        habit = habit_factory()
        repo = SQLModelCompletionRepository(session_factory)
        repo.insert(habit.id, TODAY, user_id=user.id)

        with pytest.raises(DuplicateCompletionError):
            repo.insert(habit.id, TODAY, user_id=user.id)

        assert len(repo.query(user_id=user.id, habit_id=habit.id)) == 1

    def test_query_orders_and_filters_by_range(self, session_factory, habit_factory, add_completions, user):
        habit = habit_factory()
        add_completions(habit, days_ago(1), days_ago(10), TODAY, days_ago(4))
        repo = SQLModelCompletionRepository(session_factory)

        all_rows = repo.query(user_id=user.id, habit_id=habit.id)
        assert [r.completed_date for r in all_rows] == [days_ago(10), days_ago(4), days_ago(1), TODAY]

        window = repo.query(user_id=user.id, habit_id=habit.id, start=days_ago(4), end=days_ago(1))
        assert [r.completed_date for r in window] == [days_ago(4), days_ago(1)]

    def test_queries_are_scoped_to_owner(
        self, session_factory, habit_factory, add_completions, user, user_factory
    ):
        other = user_factory("someone-else")
        mine = habit_factory(name="Mine")
        theirs = habit_factory(name="Theirs", owner=other)
        add_completions(mine, TODAY)
        add_completions(theirs, TODAY, days_ago(1))
        repo = SQLModelCompletionRepository(session_factory)

        assert len(repo.query(user_id=user.id)) == 1
        assert repo.query(user_id=user.id, habit_id=theirs.id) == []
        assert repo.exists(theirs.id, TODAY, user_id=user.id) is False
        assert repo.delete(theirs.id, TODAY, user_id=user.id) is False
        assert len(repo.query(user_id=other.id)) == 2

    def test_delete(self, session_factory, habit_factory, add_completions, user):
        habit = habit_factory()
        add_completions(habit, TODAY)
        repo = SQLModelCompletionRepository(session_factory)

        assert repo.delete(habit.id, TODAY, user_id=user.id) is True
        assert repo.delete(habit.id, TODAY, user_id=user.id) is False

    def test_store_failure_is_wrapped(self, session_factory, db_engine, user):
        repo = SQLModelCompletionRepository(session_factory)
        HabitCompletion.__table__.drop(db_engine)

        with pytest.raises(StoreAccessError):
            repo.query(user_id=user.id)


class TestHabitRepository:
    def test_list_for_user_with_category(self, session_factory, habit_factory, user, user_factory):
        habit_factory(name="Run", category="Fitness")
        habit_factory(name="Read", category="Learning")
        habit_factory(name="Not mine", category="Fitness", owner=user_factory("other"))
        repo = SQLModelHabitRepository(session_factory)

        assert [h.name for h in repo.list_for_user(user_id=user.id)] == ["Run", "Read"]
        assert [h.name for h in repo.list_for_user(user_id=user.id, category="Fitness")] == ["Run"]

    def test_update_fields_only_touches_named_columns(self, session_factory, habit_factory, user):
        habit = habit_factory(name="Stretch", category="Fitness", streak=2)
        repo = SQLModelHabitRepository(session_factory)

        assert repo.update_fields(habit.id, user_id=user.id, completed=True) is True

        stored = repo.get_by_id(habit.id, user_id=user.id)
        assert stored.completed is True
        assert stored.streak == 2
        assert stored.name == "Stretch"

    def test_update_fields_rejects_unknown_columns(self, session_factory, habit_factory, user):
        habit = habit_factory()
        repo = SQLModelHabitRepository(session_factory)

        with pytest.raises(ValueError):
            repo.update_fields(habit.id, user_id=user.id, user_id_override=3)

    def test_update_other_users_habit_is_noop(self, session_factory, habit_factory, user_factory):
        habit = habit_factory(streak=4)
        intruder = user_factory("intruder")
        repo = SQLModelHabitRepository(session_factory)

        assert repo.update_fields(habit.id, user_id=intruder.id, streak=0) is False
        assert repo.get_by_id(habit.id, user_id=habit.user_id).streak == 4

    def test_create_many_assigns_owner(self, session_factory, user):
        repo = SQLModelHabitRepository(session_factory)

        created = repo.create_many(
            [Habit(user_id=0, name="Walk", category="Health"), Habit(user_id=0, name="Nap")],
            user_id=user.id,
        )

        assert all(h.id is not None and h.user_id == user.id for h in created)
        assert all(h.streak == 0 and h.completed is False for h in created)

    def test_delete_removes_completion_history(
        self, session_factory, habit_factory, add_completions, user
    ):
        habit = habit_factory()
        keep = habit_factory(name="Keep")
        add_completions(habit, TODAY, days_ago(1))
        add_completions(keep, TODAY)
        repo = SQLModelHabitRepository(session_factory)

        assert repo.delete(habit.id, user_id=user.id) is True

        with session_factory() as session:
            remaining = session.exec(select(HabitCompletion)).all()
        assert [row.habit_id for row in remaining] == [keep.id]
        assert repo.get_by_id(habit.id, user_id=user.id) is None

    def test_delete_requires_owner(self, session_factory, habit_factory, user_factory):
        habit = habit_factory()
        repo = SQLModelHabitRepository(session_factory)

        assert repo.delete(habit.id, user_id=user_factory("other").id) is False
        assert repo.get_by_id(habit.id, user_id=habit.user_id) is not None
