from __future__ import annotations

import threading
from typing import Dict, Mapping, Optional, Sequence

from .model import User
from .repository import UserRepository


class InMemoryUserRepository(UserRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[int, User] = {}

    def add(self, user: User) -> User:
        with self._lock:
            self._users[user.user_id] = user
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.get(int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            return next((u for u in self._users.values() if u.username == username), None)

    def search_ids(self, text: str) -> Sequence[int]:
        needle = text.strip().lower()
        with self._lock:
            return sorted(
                u.user_id
                for u in self._users.values()
                if needle in u.full_name.lower() or needle in u.username.lower()
            )

    def names_for(self, user_ids: Sequence[int]) -> Mapping[int, str]:
        with self._lock:
            return {int(uid): self._users[int(uid)].full_name for uid in user_ids if int(uid) in self._users}
