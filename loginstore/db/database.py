"""Core database connection with ACID transaction support."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from loginstore.db.schema import SCHEMA_DDL
from loginstore.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

JOURNAL_MODES = frozenset({"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"})


class Database:
    """
    SQLite database wrapper around one long-lived connection.

    The connection is opened explicitly by ``open()`` and is shared by every
    caller, so it is created with ``check_same_thread=False``.  Callers that
    use it from several threads must serialise access themselves; the
    ``UserStore`` facade does so with its exclusive lock.

    Every mutation goes through ``transaction()``, which commits on success
    and rolls back on failure.
    """

    def __init__(
        self,
        path: Path | str,
        journal_mode: str = "WAL",
        busy_timeout: float = 5.0,
    ):
        self.path = Path(path) if isinstance(path, str) else path
        if journal_mode.upper() not in JOURNAL_MODES:
            raise ValueError(f"Unsupported journal mode: {journal_mode!r}")
        self.journal_mode = journal_mode.upper()
        self.busy_timeout = busy_timeout
        self._conn: Optional[sqlite3.Connection] = None

    # -- connection lifecycle --------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def open(self) -> sqlite3.Connection:
        """Open the file (creating it if absent). Raises sqlite3.Error / OSError."""
        if self._conn is None:
            self._ensure_dir()
            conn = sqlite3.connect(
                str(self.path), timeout=self.busy_timeout, check_same_thread=False
            )
            try:
                conn.row_factory = sqlite3.Row
                conn.execute(f"PRAGMA journal_mode = {self.journal_mode}")
            except sqlite3.Error:
                conn.close()
                raise
            self._conn = conn
            logger.info(f"Database opened at {self.path}")
        return self._conn

    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreUnavailableError(f"Database at {self.path} is not open")
        return self._conn

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def init(self) -> None:
        """Create all tables (idempotent)."""
        conn = self.connection()
        conn.executescript(SCHEMA_DDL)
        conn.commit()

    # -- transaction helpers ---------------------------------------------------

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """ACID transaction: commits on success, rolls back on exception."""
        conn = self.connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    # -- low-level query helpers -----------------------------------------------

    def fetchone(self, sql: str, params: tuple = ()) -> Optional[dict[str, Any]]:
        row = self.connection().execute(sql, params).fetchone()
        return dict(row) if row else None

    def fetchall(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        rows = self.connection().execute(sql, params).fetchall()
        return [dict(r) for r in rows]
