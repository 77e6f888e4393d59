"""Translate SQLAlchemy failures into application errors."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError

from ...errors import StoreAccessError


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Re-raise any SQLAlchemy error as StoreAccessError naming the action."""

    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreAccessError(f"Failed to {action}: {exc.__class__.__name__}") from exc
