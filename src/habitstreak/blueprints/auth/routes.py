"""Sign-up, sign-in and session routes."""

from __future__ import annotations

from flask import jsonify, request, session

from ...extensions import current_user_id, get_session_factory
from ...logging_config import get_logger
from ...services import auth as auth_service
from ..forms import CredentialsForm, parse_form
from . import bp

logger = get_logger(__name__)


def _user_payload(user) -> dict:
    return {"id": user.id, "username": user.username}


@bp.post("/register")
def register():
    """Create an account and sign it in."""

    form, errors = parse_form(CredentialsForm, request.get_json(silent=True))
    if form is None:
        return jsonify({"error": "invalid_form", "fields": errors}), 400

    try:
        user = auth_service.create_user(
            username=form.username,
            password=form.password,
            session_factory=get_session_factory(),
        )
    except ValueError as exc:
        return jsonify({"error": "registration_failed", "message": str(exc)}), 400

    session.clear()
    session["user_id"] = user.id
    logger.info("User registered", extra={"user_id": user.id})
    return jsonify(_user_payload(user)), 201


@bp.post("/login")
def login():
    """Check credentials and start a session."""

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "invalid_form", "fields": {"__root__": ["Expected a JSON object."]}}), 400
    user = auth_service.authenticate(
        username=str(payload.get("username", "")),
        password=str(payload.get("password", "")),
        session_factory=get_session_factory(),
    )
    if user is None:
        return jsonify({"error": "invalid_credentials"}), 401

    session.clear()
    session["user_id"] = user.id
    return jsonify(_user_payload(user))


@bp.post("/logout")
def logout():
    session.clear()
    return jsonify({"status": "signed_out"})


@bp.get("/me")
def me():
    """Return the signed-in user."""

    user_id = current_user_id()
    user = auth_service.get_user(user_id, get_session_factory()) if user_id is not None else None
    if user is None:
        return jsonify({"error": "not_authenticated"}), 401
    return jsonify(_user_payload(user))
