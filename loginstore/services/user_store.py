"""UserStore, the thread-safe facade over user identities and user documents.

Every public operation takes the same exclusive lock for its whole duration,
so reads and writes are fully serialised, including across unrelated users
and keys.  One SQLite connection is shared and is only ever touched while
that lock is held.

Failures never escape the nine core operations: writes report ``False`` and
reads report an empty value.  Empty reads are therefore ambiguous between
"not found" and "store error"; callers that need the distinction use
``get_user()``, which returns ``None`` for a missing user and raises
``StoreError`` when the store fails.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Mapping, Optional

from loginstore.config import Settings, get_settings
from loginstore.db.database import Database
from loginstore.db.user_data_repo import UserDataRepository
from loginstore.db.user_repo import UserRepository
from loginstore.errors import (
    DuplicateUserError,
    StoreError,
    StoreUnavailableError,
)
from loginstore.models.user import User
from loginstore.models.user_data import UserDataEntry

logger = logging.getLogger(__name__)

# UnicodeEncodeError: sqlite3 cannot bind str values holding lone surrogates.
_FAILURES = (sqlite3.Error, UnicodeEncodeError, StoreError)


class UserStore:
    """
    Facade for user CRUD and per-user document storage.

    Usage:
        store = UserStore("userdata.db")
        if not store.initialize():
            ...  # store is unusable
        store.create_user("alice", hashed)
        store.save_user_data(store.get_user_id("alice"), "prefs", {"theme": "dark"})
        store.close()
    """

    def __init__(self, path: Optional[Path | str] = None, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self._db = Database(
            path if path is not None else settings.DATABASE_PATH,
            journal_mode=settings.JOURNAL_MODE,
            busy_timeout=settings.BUSY_TIMEOUT,
        )
        self._users = UserRepository(self._db)
        self._data = UserDataRepository(self._db)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._db.path

    @property
    def is_open(self) -> bool:
        return self._db.is_open

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def initialize(self) -> bool:
        """Open the backing file and create the schema. False leaves the store unusable."""
        with self._lock:
            if self._db.is_open:
                return True
            try:
                self._db.open()
                self._db.init()
            except (sqlite3.Error, OSError) as e:
                logger.critical(f"Failed to initialise user store at {self._db.path}: {e}")
                self._db.close()
                return False
        logger.info("User store tables ready")
        return True

    def close(self) -> None:
        with self._lock:
            self._db.close()

    def __enter__(self) -> "UserStore":
        if not self.initialize():
            raise StoreUnavailableError(f"Could not open user store at {self._db.path}")
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # =========================================================================
    # Users
    # =========================================================================

    def create_user(self, username: str, password_hash: str) -> bool:
        user = User(username=username, password_hash=password_hash)
        with self._lock:
            try:
                self._users.create(user)
            except DuplicateUserError:
                logger.warning(f"Failed to create user: username {username!r} already exists")
                return False
            except _FAILURES as e:
                logger.warning(f"Failed to create user {username!r}: {e}")
                return False
        logger.info(f"User created: {username}")
        return True

    def user_exists(self, username: str) -> bool:
        with self._lock:
            try:
                return self._users.exists(username)
            except _FAILURES as e:
                logger.warning(f"user_exists query failed: {e}")
                return False

    def get_user_password_hash(self, username: str) -> str:
        with self._lock:
            try:
                return self._users.get_password_hash(username) or ""
            except _FAILURES as e:
                logger.warning(f"Password hash lookup failed: {e}")
                return ""

    def get_user_id(self, username: str) -> str:
        with self._lock:
            try:
                return self._users.get_id(username) or ""
            except _FAILURES as e:
                logger.warning(f"User id lookup failed: {e}")
                return ""

    def get_user(self, username: str) -> Optional[User]:
        """Full user record; None if absent. Raises StoreError if the store fails."""
        with self._lock:
            try:
                return self._users.get_by_username(username)
            except (sqlite3.Error, UnicodeEncodeError) as e:
                raise StoreError(f"User lookup failed: {e}") from e

    def delete_user(self, user_id: str) -> bool:
        """Delete a user together with all of its documents."""
        with self._lock:
            try:
                user = self._users.get_by_id(user_id)
                removed = self._users.delete(user_id)
            except _FAILURES as e:
                logger.warning(f"Failed to delete user {user_id!r}: {e}")
                return False
        if removed and user is not None:
            logger.info(f"User deleted: {user.username} ({user_id})")
        return True

    # =========================================================================
    # User data
    # =========================================================================

    def save_user_data(self, user_id: str, data_key: str, data: Mapping[str, Any]) -> bool:
        with self._lock:
            try:
                self._data.upsert(user_id, data_key, data)
            except _FAILURES as e:
                logger.warning(f"Failed to save user data for {user_id!r} key {data_key!r}: {e}")
                return False
        logger.info(f"Data saved for user: {user_id} key: {data_key}")
        return True

    def get_user_data(self, user_id: str, data_key: str) -> dict[str, Any]:
        with self._lock:
            try:
                return self._data.get(user_id, data_key) or {}
            except _FAILURES as e:
                logger.warning(f"Failed to read user data for {user_id!r} key {data_key!r}: {e}")
                return {}

    def get_all_user_data(self, user_id: str) -> list[UserDataEntry]:
        """All of a user's documents, in insertion order."""
        with self._lock:
            try:
                return self._data.list_for_user(user_id)
            except _FAILURES as e:
                logger.warning(f"Failed to list user data for {user_id!r}: {e}")
                return []

    def delete_user_data(self, user_id: str, data_key: str) -> bool:
        """Delete one document. A missing pair counts as success."""
        with self._lock:
            try:
                self._data.delete(user_id, data_key)
            except _FAILURES as e:
                logger.warning(f"Failed to delete user data for {user_id!r} key {data_key!r}: {e}")
                return False
        logger.info(f"Data deleted for user: {user_id} key: {data_key}")
        return True
