"""Repository for the ``user_data`` table: JSON documents keyed per user."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from loginstore.db.database import Database
from loginstore.models.user import utc_timestamp
from loginstore.models.user_data import UserDataEntry, dump_document, load_document


class UserDataRepository:
    """Key/value document store over ``(user_id, data_key)``."""

    def __init__(self, db: Database):
        self._db = db

    def upsert(self, user_id: str, data_key: str, data: Mapping[str, Any]) -> None:
        """Insert or overwrite one document in a single statement.

        ``created_at`` is only written by the insert branch; the update branch
        touches ``data_value`` and ``updated_at`` alone.  ``updated_at`` never
        moves backwards; it is strictly later than the previous write as long
        as the wall clock advances between the two (microsecond resolution).
        """
        payload = dump_document(data)
        now = utc_timestamp()
        with self._db.transaction() as conn:
            conn.execute(
                """INSERT INTO user_data
                   (user_id, data_key, data_value, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?)
                   ON CONFLICT(user_id, data_key) DO UPDATE
                   SET data_value = excluded.data_value,
                       updated_at = MAX(excluded.updated_at, user_data.updated_at)""",
                (user_id, data_key, payload, now, now),
            )

    def get(self, user_id: str, data_key: str) -> Optional[dict[str, Any]]:
        """Return the decoded document, or None if the pair is absent."""
        row = self._db.fetchone(
            "SELECT data_value FROM user_data WHERE user_id = ? AND data_key = ?",
            (user_id, data_key),
        )
        return load_document(row["data_value"]) if row else None

    def list_for_user(self, user_id: str) -> list[UserDataEntry]:
        rows = self._db.fetchall(
            """SELECT user_id, data_key, data_value, created_at, updated_at
               FROM user_data WHERE user_id = ? ORDER BY id""",
            (user_id,),
        )
        return [UserDataEntry.from_row(r) for r in rows]

    def delete(self, user_id: str, data_key: str) -> int:
        """Delete one pair. Returns rows removed; 0 is not an error."""
        with self._db.transaction() as conn:
            cur = conn.execute(
                "DELETE FROM user_data WHERE user_id = ? AND data_key = ?",
                (user_id, data_key),
            )
        return cur.rowcount
