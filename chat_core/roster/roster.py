"""Identity lookup used to resolve display names."""

from typing import Iterable, Protocol

from ..models import User


class IRoster(Protocol):
    """Read-only lookup of participants keyed by user id."""

    def display_name(self, user_id: str) -> str | None:
        """Return the user's display name, or None if unknown."""
        ...

    def members(self) -> list[User]:
        """Return every known user."""
        ...


class Roster:
    """In-memory roster, typically seeded from Storage at startup."""

    def __init__(self, users: Iterable[User] = ()):
        self._users: dict[str, User] = {user.id: user for user in users}

    def add(self, user: User) -> None:
        self._users[user.id] = user

    def clear(self) -> None:
        self._users.clear()

    def display_name(self, user_id: str) -> str | None:
        user = self._users.get(user_id)
        return user.name if user else None

    def members(self) -> list[User]:
        return list(self._users.values())
