"""bcrypt password hashing.

Stored credentials are salted bcrypt hashes; plaintext passwords never
reach the user store.
"""

from __future__ import annotations

import bcrypt

# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


class PasswordHasher:
    """Hash and verify passwords with bcrypt.

    Passwords longer than 72 bytes are truncated to 72 bytes both when
    hashing and when verifying, so long passwords round-trip.

    Args:
        rounds: bcrypt cost factor. Each +1 doubles the work; 12 is the
            production default, tests use the minimum of 4.
    """

    def __init__(self, rounds: int = 12) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """Return a ``$2b$...`` hash; a fresh salt is drawn on every call."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed hash
            return False
