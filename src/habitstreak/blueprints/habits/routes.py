"""Habit routes."""

from __future__ import annotations

from datetime import date
from functools import wraps

from flask import jsonify, request

from ...constants.categories import HABIT_CATEGORIES, PRESET_HABITS
from ...errors import StoreAccessError
from ...extensions import current_user_id, get_tracker
from ...logging_config import get_logger
from ...services.habits import OutcomeStatus
from ..forms import HabitForm, SetupForm, parse_form
from . import bp

logger = get_logger(__name__)

_STATUS_CODES = {
    OutcomeStatus.COMPLETED: 200,
    OutcomeStatus.REMOVED: 200,
    OutcomeStatus.ALREADY_COMPLETED: 409,
    OutcomeStatus.NOT_FOUND: 404,
    OutcomeStatus.FAILED: 503,
    OutcomeStatus.UNAUTHENTICATED: 401,
}


def login_required(view):
    """Reject anonymous callers with a JSON 401."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_user_id() is None:
            return jsonify({"error": "not_authenticated"}), 401
        return view(*args, **kwargs)

    return wrapper


@bp.errorhandler(StoreAccessError)
def _store_unavailable(exc: StoreAccessError):
    logger.error("Store access failed", extra={"error": str(exc)})
    return (
        jsonify(
            {
                "error": "store_unavailable",
                "message": "We couldn't reach the database. Please try again.",
                "retryable": True,
            }
        ),
        503,
    )


def _parse_day(raw: str | None, field: str) -> date | None:
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"{field} must be an ISO date (YYYY-MM-DD)") from None


@bp.get("/")
@login_required
def list_habits():
    """Reconciled habit list, optionally filtered by category."""

    category = request.args.get("category") or None
    report = get_tracker().reconcile(current_user_id(), category=category)
    return jsonify(
        {
            "habits": [view.to_dict() for view in report.habits],
            "errors": [
                {"habit_id": issue.habit_id, "stage": issue.stage, "message": issue.message}
                for issue in report.errors
            ],
        }
    )


@bp.post("/")
@login_required
def create_habits():
    """Create one habit, or a batch under a ``habits`` key (first-run setup)."""

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "invalid_form", "fields": {"__root__": ["Expected a JSON object."]}}), 400
    if "habits" in payload:
        form, errors = parse_form(SetupForm, payload)
        entries = [(item.name, item.category) for item in form.habits] if form else []
    else:
        form, errors = parse_form(HabitForm, payload)
        entries = [(form.name, form.category)] if form else []
    if form is None:
        return jsonify({"error": "invalid_form", "fields": errors}), 400

    created = get_tracker().create_habits(current_user_id(), entries)
    return (
        jsonify(
            {
                "habits": [
                    {
                        "id": habit.id,
                        "name": habit.name,
                        "category": habit.category,
                        "streak": habit.streak,
                        "completed": habit.completed,
                    }
                    for habit in created
                ]
            }
        ),
        201,
    )


@bp.get("/presets")
def presets():
    """Preset habits and categories offered during setup."""

    return jsonify({"presets": PRESET_HABITS, "categories": HABIT_CATEGORIES})


@bp.post("/<int:habit_id>/complete")
@login_required
def complete_habit(habit_id: int):
    """Mark a habit complete for today; completions cannot be undone."""

    outcome = get_tracker().complete(habit_id, current_user_id())
    return jsonify(outcome.to_dict()), _STATUS_CODES[outcome.status]


@bp.delete("/<int:habit_id>")
@login_required
def delete_habit(habit_id: int):
    outcome = get_tracker().remove(habit_id, current_user_id())
    return jsonify(outcome.to_dict()), _STATUS_CODES[outcome.status]


@bp.get("/<int:habit_id>/completions")
@login_required
def habit_completions(habit_id: int):
    """Completion days for calendar views, optionally bounded by start/end."""

    try:
        start = _parse_day(request.args.get("start"), "start")
        end = _parse_day(request.args.get("end"), "end")
    except ValueError as exc:
        return jsonify({"error": "invalid_range", "message": str(exc)}), 400

    days = get_tracker().completion_dates(habit_id, current_user_id(), start=start, end=end)
    return jsonify({"habit_id": habit_id, "dates": [day.isoformat() for day in days]})


@bp.get("/progress")
@login_required
def progress():
    """Weekly progress percentage and today's completion count."""

    tracker = get_tracker()
    user_id = current_user_id()
    summary = tracker.streak_summary(user_id)
    return jsonify(
        {
            "weekly_progress": tracker.weekly_progress(user_id),
            "completed_today": summary.completed_today,
            "total_habits": summary.total_habits,
        }
    )


@bp.get("/streaks")
@login_required
def streaks():
    """Streak dashboard aggregates."""

    return jsonify(get_tracker().streak_summary(current_user_id()).to_dict())
