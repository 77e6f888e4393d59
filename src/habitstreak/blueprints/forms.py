"""Form definitions shared by the JSON endpoints."""

from __future__ import annotations

from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..constants.categories import DEFAULT_CATEGORY, HABIT_CATEGORIES

FormT = TypeVar("FormT", bound=BaseModel)


class HabitForm(BaseModel):
    """A habit picked from the presets or typed in during setup."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default="", description="Short label for the habit", max_length=100)
    category: str = Field(default=DEFAULT_CATEGORY, description="One of the habit categories")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        """Ensure the habit name is present."""

        if not value:
            raise ValueError("Please provide a habit name.")
        return value

    @field_validator("category")
    @classmethod
    def validate_category(cls, value: str) -> str:
        if value not in HABIT_CATEGORIES:
            raise ValueError(f"Choose one of: {', '.join(HABIT_CATEGORIES)}.")
        return value


class SetupForm(BaseModel):
    """Batch of habits submitted at the end of first-run setup."""

    habits: list[HabitForm] = Field(default_factory=list)

    @field_validator("habits")
    @classmethod
    def require_one(cls, value: list[HabitForm]) -> list[HabitForm]:
        if not value:
            raise ValueError("Please select at least one habit to track.")
        return value


class CredentialsForm(BaseModel):
    """Username and password for sign-up and sign-in."""

    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6, max_length=128)


def parse_form(form_cls: type[FormT], payload: Any) -> tuple[Optional[FormT], dict[str, list[str]]]:
    """Validate ``payload`` and return (form, {}) or (None, field errors)."""

    try:
        return form_cls.model_validate(payload or {}), {}
    except ValidationError as exc:
        structured: dict[str, list[str]] = {}
        for error in exc.errors(include_url=False):
            loc = error.get("loc", ())
            key = ".".join(str(part) for part in loc) if loc else "__root__"
            structured.setdefault(key, []).append(error.get("msg", "Invalid value"))
        return None, structured


__all__ = ["CredentialsForm", "HabitForm", "SetupForm", "parse_form"]
