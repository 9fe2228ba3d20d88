"""Repository for the ``users`` table."""

from __future__ import annotations

import sqlite3
from typing import Optional

from loginstore.db.database import Database
from loginstore.errors import DuplicateUserError
from loginstore.models.user import User


class UserRepository:
    """Single-Responsibility repository for user identity persistence."""

    def __init__(self, db: Database):
        self._db = db

    # -- Create ----------------------------------------------------------------

    def create(self, user: User) -> User:
        """Insert a new user. Raises DuplicateUserError on a taken username."""
        try:
            with self._db.transaction() as conn:
                conn.execute(
                    """INSERT INTO users (id, username, password_hash, created_at)
                       VALUES (?, ?, ?, ?)""",
                    (user.user_id, user.username, user.password_hash, user.created_at),
                )
        except sqlite3.IntegrityError as e:
            if str(e).startswith("UNIQUE constraint failed: users.username"):
                raise DuplicateUserError(user.username) from e
            raise
        return user

    # -- Read ------------------------------------------------------------------

    def get_by_username(self, username: str) -> Optional[User]:
        row = self._db.fetchone("SELECT * FROM users WHERE username = ?", (username,))
        return User.from_row(row) if row else None

    def get_by_id(self, user_id: str) -> Optional[User]:
        row = self._db.fetchone("SELECT * FROM users WHERE id = ?", (user_id,))
        return User.from_row(row) if row else None

    def exists(self, username: str) -> bool:
        row = self._db.fetchone(
            "SELECT COUNT(*) AS n FROM users WHERE username = ?", (username,)
        )
        return bool(row and row["n"] > 0)

    def get_password_hash(self, username: str) -> Optional[str]:
        row = self._db.fetchone(
            "SELECT password_hash FROM users WHERE username = ?", (username,)
        )
        return row["password_hash"] if row else None

    def get_id(self, username: str) -> Optional[str]:
        row = self._db.fetchone("SELECT id FROM users WHERE username = ?", (username,))
        return row["id"] if row else None

    # -- Delete ----------------------------------------------------------------

    def delete(self, user_id: str) -> int:
        """Remove the user and every ``user_data`` row it owns, atomically.

        Returns the number of user rows removed (0 or 1).
        """
        with self._db.transaction() as conn:
            conn.execute("DELETE FROM user_data WHERE user_id = ?", (user_id,))
            cur = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        return cur.rowcount
