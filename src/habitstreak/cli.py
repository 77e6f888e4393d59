"""Flask CLI commands for HabitStreak."""

from __future__ import annotations

import click
from flask import current_app

from .services import auth as auth_service


def _resolve_user_id(username: str) -> int:
    from .extensions import get_session_factory

    user = auth_service.get_user_by_username(username, get_session_factory(current_app))
    if user is None or user.id is None:
        raise click.ClickException(f"No user named {username!r}")
    return user.id


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("habitstreak-create-user")
    @click.option("--username", prompt=True)
    @click.password_option()
    def create_user(username: str, password: str) -> None:
        """Create a user account."""

        from .extensions import get_session_factory

        try:
            user = auth_service.create_user(
                username=username,
                password=password,
                session_factory=get_session_factory(current_app),
            )
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"Created user {user.username} (id={user.id})")

    @app.cli.command("habitstreak-reconcile")
    @click.option("--user", "username", required=True, help="Username whose habits to reconcile")
    def reconcile(username: str) -> None:
        """Recompute cached streak/completed values for a user's habits."""

        from .extensions import build_tracker

        report = build_tracker(current_app).reconcile(_resolve_user_id(username))
        click.echo(f"Checked {len(report.habits)} habits, updated {len(report.updated)}.")
        for issue in report.errors:
            click.echo(f"  habit {issue.habit_id}: {issue.stage} failed ({issue.message})", err=True)
        if report.errors:
            raise SystemExit(1)

    @app.cli.command("habitstreak-progress")
    @click.option("--user", "username", required=True, help="Username to report on")
    def progress(username: str) -> None:
        """Print weekly progress and current streaks."""

        from .extensions import build_tracker

        tracker = build_tracker(current_app)
        user_id = _resolve_user_id(username)
        summary = tracker.streak_summary(user_id)
        click.echo(f"Weekly progress: {tracker.weekly_progress(user_id)}%")
        click.echo(f"Completed today: {summary.completed_today}/{summary.total_habits}")
        for entry in summary.habits:
            click.echo(f"  {entry.name:<30} {entry.streak:>3} days  {entry.badge}")
