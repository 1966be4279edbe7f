"""Error taxonomy shared by services and the HTTP boundary."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

if TYPE_CHECKING:  # pragma: no cover
    from .services.feasibility import FeasibilityVerdict


class HabitLoopError(Exception):
    """Base class for errors the engine reports to its callers."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidArgument(HabitLoopError):
    """Malformed status, time or required field; raised before any mutation."""

    status_code = 400
    code = "invalid_argument"


class NotFound(HabitLoopError):
    """The habit, user or notification does not exist (or is not owned)."""

    status_code = 404
    code = "not_found"


class Conflict(HabitLoopError):
    """A new habit was rejected by the feasibility check."""

    status_code = 409
    code = "feasibility_rejected"

    def __init__(self, message: str, *, verdict: "FeasibilityVerdict"):
        super().__init__(message, details={"feasibility": verdict.to_dict()})
        self.verdict = verdict


class StorageError(HabitLoopError):
    """The persistence layer failed."""

    status_code = 500
    code = "storage_error"


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures inside the block as ``StorageError``."""

    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(f"Storage failure while trying to {action}.") from exc


__all__ = [
    "Conflict",
    "HabitLoopError",
    "InvalidArgument",
    "NotFound",
    "StorageError",
    "storage_errors",
]
