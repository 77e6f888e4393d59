"""HabitStreak application factory."""

from __future__ import annotations

from importlib import import_module
from typing import Iterable

from flask import Flask

from .clock import Clock
from .config import BaseConfig, DevConfig, TestConfig, resolve_config


def _blueprint_paths() -> Iterable[str]:
    """Yield blueprint import paths registered on the app."""

    yield "habitstreak.blueprints.auth"
    yield "habitstreak.blueprints.habits"


def create_app(config_name: str | None = None, *, clock: Clock | None = None) -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__, instance_relative_config=True)
    config_obj = resolve_config(config_name)()
    app.config.from_object(config_obj)
    app.config["HABITSTREAK_CONFIG"] = config_obj

    from .logging_config import setup_logging

    setup_logging(config_obj)

    _register_blueprints(app)
    # Imported lazily so model modules are not loaded at package-import time.
    from .extensions import init_db

    init_db(app, clock=clock)

    from . import cli

    cli.init_app(app)
    return app


def _register_blueprints(app: Flask) -> None:
    """Import and register all blueprints declared in `_blueprint_paths`."""

    for dotted_path in _blueprint_paths():
        module = import_module(dotted_path)
        app.register_blueprint(getattr(module, "bp"))


__all__ = ["BaseConfig", "DevConfig", "TestConfig", "create_app"]
