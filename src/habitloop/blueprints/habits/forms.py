"""Habit form definitions."""

from __future__ import annotations

from typing import Iterable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ...clock import normalize_weekdays, parse_reminder_time
from ...errors import InvalidArgument
from ...models.habit import HabitStatus
from ...services.habits import HabitDraft


class HabitForm(BaseModel):
    """Form model for creating or editing a habit."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    title: str = Field(max_length=120, description="Short label for the habit")
    reminder_time: str = Field(
        validation_alias=AliasChoices("reminderTime", "reminder_time"),
        description="Local wall-clock time, HH:MM",
    )
    repeat_days: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("repeatDays", "repeat_days"),
        description="Weekday names; empty means every day",
    )
    notes: str = Field(default="", max_length=500)
    icon: str | None = Field(default=None, max_length=64)
    target_count: int = Field(
        default=1, ge=1, validation_alias=AliasChoices("target_count", "targetCount")
    )
    is_public: bool = Field(default=False, validation_alias=AliasChoices("is_public", "isPublic"))
    timezone: str | None = Field(default=None, description="Optional IANA zone for the owner")

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Please provide a habit title.")
        return value

    @field_validator("reminder_time")
    @classmethod
    def validate_reminder_time(cls, value: str) -> str:
        if not value:
            raise ValueError("Please provide a reminder time.")
        try:
            return parse_reminder_time(value).strftime("%H:%M")
        except InvalidArgument as exc:
            raise ValueError(exc.message) from exc

    @field_validator("repeat_days", mode="before")
    @classmethod
    def split_days(cls, value: str | Iterable[str] | None) -> list[str] | Iterable[str]:
        """Accept comma-separated strings as well as lists."""

        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("repeat_days")
    @classmethod
    def normalize_days(cls, value: list[str]) -> list[str]:
        try:
            return normalize_weekdays(value)
        except InvalidArgument as exc:
            raise ValueError(exc.message) from exc

    def to_draft(self) -> HabitDraft:
        return HabitDraft(
            title=self.title,
            reminder_time=self.reminder_time,
            repeat_days=list(self.repeat_days),
            notes=self.notes,
            icon=self.icon,
            target_count=self.target_count,
            is_public=self.is_public,
            timezone=self.timezone,
        )


class StatusForm(BaseModel):
    """Payload for a status transition."""

    status: HabitStatus

    @field_validator("status", mode="before")
    @classmethod
    def lower_status(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


__all__ = ["HabitForm", "StatusForm"]
