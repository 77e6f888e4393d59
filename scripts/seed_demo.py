"""Demo data seeding script."""

from __future__ import annotations

import random
from datetime import timedelta

from habitstreak.clock import SystemClock
from habitstreak.config import BaseConfig
from habitstreak.constants.categories import PRESET_HABITS
from habitstreak.errors import DuplicateCompletionError
from habitstreak.infra.database import bootstrap_database
from habitstreak.infra.repositories import SQLModelCompletionRepository, SQLModelHabitRepository
from habitstreak.services import auth
from habitstreak.services.habits import HabitTracker

DEMO_USERNAME = "demo"
HISTORY_DAYS = 30


def seed_demo(seed: int = 7) -> None:
    """Create a demo user with the preset habits and a month of scattered completions."""

    _engine, session_factory = bootstrap_database(BaseConfig())
    user = auth.get_user_by_username(DEMO_USERNAME, session_factory)
    if user is None:
        user = auth.create_user(
            username=DEMO_USERNAME, password=DEMO_USERNAME, session_factory=session_factory
        )

    tracker = HabitTracker(
        SQLModelHabitRepository(session_factory),
        SQLModelCompletionRepository(session_factory),
        clock=SystemClock(),
    )
    tracker.create_habits(user.id, [(p["name"], p["category"]) for p in PRESET_HABITS])

    rng = random.Random(seed)
    today = tracker.clock.today()
    for habit in tracker.habits.list_for_user(user_id=user.id):
        for offset in range(1, HISTORY_DAYS):
            if rng.random() < 0.6:
                try:
                    tracker.completions.insert(habit.id, today - timedelta(days=offset), user_id=user.id)
                except DuplicateCompletionError:
                    continue

    report = tracker.reconcile(user.id)
    print(f"Seeded {len(report.habits)} habits for '{DEMO_USERNAME}'")


if __name__ == "__main__":
    seed_demo()
