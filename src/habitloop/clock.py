"""Clock and timezone helpers.

All "what day is it for this user" questions go through this module so the
default zone is applied in exactly one place. Persisted datetimes are naive
UTC; ``to_storage`` / ``from_storage`` convert at the repository boundary.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import TYPE_CHECKING, Iterable, Optional

import pytz

from .errors import InvalidArgument
from .logging_config import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from .models.user import User

logger = get_logger(__name__)

DEFAULT_TIMEZONE = "Africa/Lagos"

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_WEEKDAY_LOOKUP = {name.lower(): name for name in WEEKDAYS}
_WEEKDAY_LOOKUP.update({name[:3].lower(): name for name in WEEKDAYS})


def resolve_zone(name: Optional[str], default: str = DEFAULT_TIMEZONE) -> pytz.BaseTzInfo:
    """Return the effective zone for a stored zone name.

    Missing names use ``default``; unknown names are logged and also fall back,
    since a bad stored value must not break reads.
    """

    if not name:
        return pytz.timezone(default)
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown timezone %r, using %s", name, default)
        return pytz.timezone(default)


def validate_zone(name: Optional[str]) -> str:
    """Return ``name`` if it is a known IANA zone, else raise ``InvalidArgument``."""

    if not name or not str(name).strip():
        raise InvalidArgument("Timezone must be a non-empty IANA zone name.")
    try:
        return pytz.timezone(str(name).strip()).zone
    except pytz.UnknownTimeZoneError as exc:
        raise InvalidArgument(f"Unknown timezone: {name}") from exc


def weekday_name(day: date) -> str:
    """Full English weekday name for ``day``."""

    return WEEKDAYS[day.weekday()]


def normalize_weekday(raw: str) -> str:
    """Map 'mon', 'Monday', 'MONDAY' ... to the canonical full name."""

    key = str(raw).strip().lower()
    if key not in _WEEKDAY_LOOKUP:
        raise InvalidArgument(f"Unknown weekday: {raw}")
    return _WEEKDAY_LOOKUP[key]


def normalize_weekdays(values: Iterable[str] | None) -> list[str]:
    """Canonicalise and de-duplicate a repeat-day collection, in week order."""

    names = {normalize_weekday(value) for value in values or ()}
    return [day for day in WEEKDAYS if day in names]


def is_scheduled_on(repeat_days: Iterable[str] | None, day: date) -> bool:
    """An empty repeat set means every day."""

    days = list(repeat_days or ())
    return not days or weekday_name(day) in days


def parse_reminder_time(raw: str) -> time:
    """Parse a local wall-clock ``HH:MM`` string."""

    try:
        hour_text, minute_text = str(raw).strip().split(":")
        hour, minute = int(hour_text), int(minute_text)
    except (AttributeError, ValueError) as exc:
        raise InvalidArgument(f"Reminder time must look like HH:MM, got {raw!r}") from exc
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise InvalidArgument(f"Reminder time out of range: {raw!r}")
    return time(hour=hour, minute=minute)


def localize(zone: pytz.BaseTzInfo, day: date, at: time) -> datetime:
    """Build an aware datetime for a wall-clock time on ``day`` in ``zone``."""

    return zone.normalize(zone.localize(datetime.combine(day, at)))


def to_storage(value: datetime) -> datetime:
    """Convert an aware datetime to the naive-UTC form stored in the database."""

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_storage(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to a naive datetime read back from the database."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock:
    """Supplies the current instant and per-user calendar conversions."""

    def __init__(self, default_timezone: str = DEFAULT_TIMEZONE):
        self.default_timezone = default_timezone

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def zone_for(self, user: "User | None") -> pytz.BaseTzInfo:
        """Resolve the effective zone for a user record."""

        name = getattr(user, "user_time_zone", None) if user is not None else None
        return resolve_zone(name, self.default_timezone)

    def local_now(self, user: "User | None") -> datetime:
        return self.now().astimezone(self.zone_for(user))

    def today_for(self, user: "User | None") -> date:
        """The user's current local calendar day."""

        return self.local_now(user).date()

    def local_date(self, value: datetime, user: "User | None") -> date:
        """Calendar day of a stored instant as seen in the user's zone."""

        aware = from_storage(value)
        return aware.astimezone(self.zone_for(user)).date()  # type: ignore[union-attr]


class FixedClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, current: datetime, default_timezone: str = DEFAULT_TIMEZONE):
        super().__init__(default_timezone)
        self.set(current)

    def now(self) -> datetime:
        return self._current

    def set(self, current: datetime) -> None:
        if current.tzinfo is None:
            raise ValueError("FixedClock needs an aware datetime")
        self._current = current.astimezone(timezone.utc)

    def advance(self, **delta: float) -> datetime:
        self._current = self._current + timedelta(**delta)
        return self._current


__all__ = [
    "Clock",
    "DEFAULT_TIMEZONE",
    "FixedClock",
    "WEEKDAYS",
    "from_storage",
    "is_scheduled_on",
    "localize",
    "normalize_weekday",
    "normalize_weekdays",
    "parse_reminder_time",
    "resolve_zone",
    "to_storage",
    "validate_zone",
    "weekday_name",
]
