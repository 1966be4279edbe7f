"""User directory protocol."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from ...models.notification import PushSubscription
from ...models.user import User


class UserRepository(Protocol):
    """Reads timezone/vacation flags and writes streak bookkeeping."""

    def get(self, user_id: int) -> Optional[User]:
        ...

    def create(self, user: User) -> User:
        ...

    def update(self, user: User) -> User:
        ...

    def update_fields(self, user_id: int, **fields: Any) -> Optional[User]:
        """Write only the named columns; None when the user does not exist."""
        ...

    def list_streak_holders(self) -> list[User]:
        """Users with a positive general streak who are not on vacation."""
        ...

    def get_subscription(self, user_id: int) -> Optional[PushSubscription]:
        ...

    def save_subscription(self, subscription: PushSubscription) -> PushSubscription:
        ...
