from __future__ import annotations

from typing import Mapping, Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def search_ids(self, text: str) -> Sequence[int]:
        """Ids of users whose full name or username contains `text`."""
        raise NotImplementedError

    def names_for(self, user_ids: Sequence[int]) -> Mapping[int, str]:
        raise NotImplementedError
