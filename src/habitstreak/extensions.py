"""Database and service wiring for the Flask app."""

from __future__ import annotations

from typing import Optional

from flask import Flask, current_app, g, session

from .clock import Clock, SystemClock
from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import SQLModelCompletionRepository, SQLModelHabitRepository
from .services.habits import HabitTracker

EXTENSION_KEY = "habitstreak"


def init_db(app: Flask, clock: Clock | None = None) -> None:
    """Create the engine and schema and stash the session factory on the app."""

    config: BaseConfig = app.config["HABITSTREAK_CONFIG"]
    engine, session_factory = bootstrap_database(config)
    app.extensions[EXTENSION_KEY] = {
        "engine": engine,
        "session_factory": session_factory,
        "clock": clock or SystemClock(),
    }
    # TODO(@migrations): replace create_all with Alembic once the schema stabilizes.


def _state(app: Flask | None = None) -> dict:
    app = app or current_app
    try:
        return app.extensions[EXTENSION_KEY]
    except KeyError:  # pragma: no cover - exercised only on misconfiguration
        raise RuntimeError("Database not initialized; call init_db(app) first") from None


def get_session_factory(app: Flask | None = None) -> SessionFactory:
    """Return the session factory bound to the app's engine."""

    return _state(app)["session_factory"]


def set_clock(app: Flask, clock: Clock) -> None:
    """Swap the clock used to decide what "today" is."""

    _state(app)["clock"] = clock


def build_tracker(app: Flask | None = None) -> HabitTracker:
    """Build a HabitTracker over the app's SQLModel repositories."""

    state = _state(app)
    session_factory = state["session_factory"]
    return HabitTracker(
        SQLModelHabitRepository(session_factory),
        SQLModelCompletionRepository(session_factory),
        clock=state["clock"],
    )


def get_tracker() -> HabitTracker:
    """Per-request HabitTracker."""

    if "habit_tracker" not in g:
        g.habit_tracker = build_tracker()
    return g.habit_tracker


def current_user_id() -> Optional[int]:
    """Signed-in user id from the Flask session, or None."""

    user_id = session.get("user_id")
    return int(user_id) if user_id is not None else None
