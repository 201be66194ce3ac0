from __future__ import annotations

from typing import Iterable, Optional, Protocol, Set

from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def existing_ids(self, user_ids: Iterable[int]) -> Set[int]:
        """Return the subset of ``user_ids`` that resolve to a user."""

        raise NotImplementedError
