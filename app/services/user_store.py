"""In-memory repository for user accounts."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from app.schemas.auth import User
from app.services.password_hasher import PasswordHasher
from app.services.post_store import utc_now

logger = logging.getLogger(__name__)


class UserStore:
    """Thread-safe user store with sequential ids.

    Uniqueness of usernames and emails is checked by callers (the register
    route) before ``create_user``; the store itself does not enforce it.
    """

    def __init__(
        self,
        hasher: PasswordHasher,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._hasher = hasher
        self._clock = clock
        self._lock = threading.RLock()
        self._users: list[User] = []
        self._next_id = 1

    def find_by_username(self, username: str) -> User | None:
        with self._lock:
            return next((u.model_copy() for u in self._users if u.username == username), None)

    def find_by_email(self, email: str) -> User | None:
        with self._lock:
            return next((u.model_copy() for u in self._users if u.email == email), None)

    def get_by_id(self, user_id: str) -> User | None:
        with self._lock:
            return next((u.model_copy() for u in self._users if u.id == user_id), None)

    def all_users(self) -> list[User]:
        with self._lock:
            return [u.model_copy() for u in self._users]

    def create_user(self, username: str, password: str, email: str) -> User:
        """Store a new account with a hashed password.

        Args:
            username: Already validated, unique username.
            password: Plaintext password; only its hash is kept.
            email: Already validated, unique email address.

        Returns:
            The stored user.
        """
        password_hash = self._hasher.hash(password)
        with self._lock:
            user = User(
                id=str(self._next_id),
                username=username,
                password_hash=password_hash,
                email=email,
                created_at=self._clock(),
            )
            self._next_id += 1
            self._users.append(user)

        logger.info("user.created", extra={"user_id": user.id})
        return user.model_copy()

    def validate_credentials(self, username: str, password: str) -> User | None:
        """Return the user when ``password`` verifies against the stored hash."""
        user = self.find_by_username(username)
        if user is None:
            return None
        if not self._hasher.verify(password, user.password_hash):
            return None
        return user
