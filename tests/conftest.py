"""Pytest configuration and shared fixtures for HabitStreak tests.

Provides an isolated SQLite database per test, repositories wired to it, a
clock pinned to a known day, and factories for users, habits and completions.
"""

from __future__ import annotations

import tempfile
from datetime import date, timedelta
from pathlib import Path

import pytest
from sqlmodel import SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from habitstreak.clock import FixedClock
from habitstreak.infra.database import create_session_factory
from habitstreak.infra.repositories import (
    SQLModelCompletionRepository,
    SQLModelHabitRepository,
)
from habitstreak.models import Habit, HabitCompletion, User
from habitstreak.services.habits import HabitTracker

TODAY = date(2024, 3, 15)


def days_ago(n: int) -> date:
    """Return the calendar day ``n`` days before TODAY."""
    return TODAY - timedelta(days=n)


class CountingHabitRepository(SQLModelHabitRepository):
    """Habit repository that records every update it is asked to make."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.updates: list[tuple[int, dict]] = []

    def update_fields(self, habit_id, *, user_id, **fields):
        self.updates.append((habit_id, dict(fields)))
        return super().update_fields(habit_id, user_id=user_id, **fields)


class CountingCompletionRepository(SQLModelCompletionRepository):
    """Completion repository that records inserts."""

    def __init__(self, session_factory):
        super().__init__(session_factory)
        self.inserts: list[tuple[int, date]] = []

    def insert(self, habit_id, completed_date, *, user_id):
        self.inserts.append((habit_id, completed_date))
        return super().insert(habit_id, completed_date, user_id=user_id)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the one the application builds."""
    return create_session_factory(db_engine)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(TODAY)


@pytest.fixture
def habit_repo(session_factory) -> CountingHabitRepository:
    return CountingHabitRepository(session_factory)


@pytest.fixture
def completion_repo(session_factory) -> CountingCompletionRepository:
    return CountingCompletionRepository(session_factory)


@pytest.fixture
def tracker(habit_repo, completion_repo, clock) -> HabitTracker:
    return HabitTracker(habit_repo, completion_repo, clock=clock)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user_factory(session_factory):
    """Factory for creating users that own habits."""

    def _create_user(username: str = "tester") -> User:
        with session_factory() as session:
            user = User(username=username, password_hash="dummy-hash")
            session.add(user)
            session.flush()
            session.refresh(user)
            session.expunge(user)
            return user

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    """Default user for scoping data."""
    return user_factory("tester")


@pytest.fixture
def habit_factory(session_factory, user):
    """Factory for creating test habits with chosen cached values.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        name: str = "Test Habit",
        category: str = "Health",
        streak: int = 0,
        completed: bool = False,
        owner: User | None = None,
    ) -> Habit:
        owner = owner or user
        with session_factory() as session:
            habit = Habit(
                user_id=owner.id,
                name=name,
                category=category,
                streak=streak,
                completed=completed,
            )
            session.add(habit)
            session.flush()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    return _create_habit


@pytest.fixture
def add_completions(session_factory):
    """Insert completion rows directly, bypassing the repositories."""

    def _add(habit: Habit, *days: date) -> None:
        with session_factory() as session:
            for day in days:
                session.add(
                    HabitCompletion(habit_id=habit.id, user_id=habit.user_id, completed_date=day)
                )

    return _add
