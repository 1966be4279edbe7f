"""Push transport used by the reminder sweep.

The transport is built once by the composition root (``create_app_context``),
opened there, and closed by ``AppContext.close()``. Services receive it by
injection; nothing in the package holds a module-level transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from ..logging_config import get_logger
from ..models.notification import PushSubscription

logger = get_logger(__name__)


@dataclass
class PushMessage:
    """Payload handed to a transport."""

    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "message": self.message, **self.data}


class PushTransport(Protocol):
    """Delivers a message to a stored subscription."""

    def open(self) -> None:
        ...

    def send(self, subscription: PushSubscription, message: PushMessage) -> bool:
        """Attempt delivery; return False on a non-fatal failure."""
        ...

    def close(self) -> None:
        ...


class LoggingPushTransport:
    """Default transport: records each delivery attempt in the log."""

    def __init__(self) -> None:
        self.is_open = False
        self.sent_count = 0

    def open(self) -> None:
        self.is_open = True
        logger.info("Push transport opened")

    def send(self, subscription: PushSubscription, message: PushMessage) -> bool:
        if not self.is_open:
            raise RuntimeError("Push transport used before open()")
        self.sent_count += 1
        logger.info(
            "Push message dispatched",
            extra={
                "user_id": subscription.user_id,
                "endpoint": subscription.endpoint,
                "title": message.title,
            },
        )
        return True

    def close(self) -> None:
        if self.is_open:
            logger.info("Push transport closed", extra={"sent": self.sent_count})
        self.is_open = False


__all__ = ["LoggingPushTransport", "PushMessage", "PushTransport"]
