"""Unit tests for the DB layer: models, schema, and both repositories.

Every test uses a fresh temporary SQLite file so tests are isolated and
leave nothing behind in the working directory.
"""

from __future__ import annotations

import json
import sqlite3
import tempfile
import time
import unittest
from pathlib import Path

from loginstore.db.database import Database
from loginstore.db.user_data_repo import UserDataRepository
from loginstore.db.user_repo import UserRepository
from loginstore.errors import (
    DocumentSerializationError,
    DuplicateUserError,
    StoreUnavailableError,
)
from loginstore.models.user import User
from loginstore.models.user_data import UserDataEntry, dump_document, load_document


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class _TempDbCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db = Database(path=Path(self._tmp.name) / "test.db")
        self.db.open()
        self.db.init()

    def tearDown(self):
        self.db.close()
        self._tmp.cleanup()


# ===========================================================================
# 1. Database core
# ===========================================================================

class TestDatabaseCore(_TempDbCase):
    def test_tables_created(self):
        tables = self.db.fetchall(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        names = {t["name"] for t in tables}
        self.assertTrue({"users", "user_data"}.issubset(names))

    def test_init_is_idempotent(self):
        self.db.init()
        self.db.init()
        rows = self.db.fetchall("SELECT name FROM sqlite_master WHERE name = 'users'")
        self.assertEqual(len(rows), 1)

    def test_wal_journal_mode(self):
        row = self.db.fetchone("PRAGMA journal_mode")
        self.assertEqual(row["journal_mode"], "wal")

    def test_transaction_rollback(self):
        try:
            with self.db.transaction() as conn:
                conn.execute(
                    "INSERT INTO users (id, username, password_hash) VALUES (?, ?, ?)",
                    ("u1", "rollback", "h"),
                )
                raise ValueError("Force rollback")
        except ValueError:
            pass
        self.assertIsNone(self.db.fetchone("SELECT * FROM users WHERE id = 'u1'"))

    def test_connection_before_open_raises(self):
        closed = Database(path=Path(self._tmp.name) / "other.db")
        with self.assertRaises(StoreUnavailableError):
            closed.connection()
        self.assertFalse(closed.is_open)

    def test_rejects_unknown_journal_mode(self):
        with self.assertRaises(ValueError):
            Database(path=Path(self._tmp.name) / "x.db", journal_mode="WAL; DROP TABLE users")
        self.assertEqual(Database(path=":memory:", journal_mode="wal").journal_mode, "WAL")

    def test_open_creates_parent_dirs(self):
        nested = Database(path=Path(self._tmp.name) / "a" / "b" / "nested.db")
        nested.open()
        try:
            self.assertTrue(nested.path.exists())
        finally:
            nested.close()


# ===========================================================================
# 2. Models
# ===========================================================================

class TestModels(unittest.TestCase):
    def test_user_ids_are_unique(self):
        a = User(username="a", password_hash="h")
        b = User(username="b", password_hash="h")
        self.assertNotEqual(a.user_id, b.user_id)

    def test_user_repr_hides_hash(self):
        self.assertNotIn("secret-hash", repr(User(username="a", password_hash="secret-hash")))

    def test_dump_document_is_compact_and_sorted(self):
        self.assertEqual(dump_document({"b": 1, "a": [1, 2]}), '{"a":[1,2],"b":1}')

    def test_dump_rejects_non_mapping(self):
        with self.assertRaises(DocumentSerializationError):
            dump_document([1, 2, 3])  # type: ignore[arg-type]

    def test_dump_rejects_unserialisable_values(self):
        with self.assertRaises(DocumentSerializationError):
            dump_document({"s": {1, 2}})
        with self.assertRaises(DocumentSerializationError):
            dump_document({"n": float("nan")})

    def test_dump_rejects_deeply_nested(self):
        doc: dict = {}
        for _ in range(100_000):
            doc = {"a": doc}
        with self.assertRaises(DocumentSerializationError):
            dump_document(doc)

    def test_load_rejects_deeply_nested(self):
        raw = '{"a":' * 100_000 + "1" + "}" * 100_000
        with self.assertRaises(DocumentSerializationError):
            load_document(raw)

    def test_load_rejects_non_object(self):
        with self.assertRaises(DocumentSerializationError):
            load_document("[1, 2]")
        with self.assertRaises(DocumentSerializationError):
            load_document("{not json")

    def test_entry_from_row_with_corrupt_value(self):
        entry = UserDataEntry.from_row({
            "user_id": "u", "data_key": "k", "data_value": "garbage",
            "created_at": "c", "updated_at": "u",
        })
        self.assertEqual(entry.data, {})
        self.assertEqual(entry.to_dict(), {
            "key": "k", "data": {}, "created_at": "c", "updated_at": "u",
        })


# ===========================================================================
# 3. User repository
# ===========================================================================

class TestUserRepository(_TempDbCase):
    def setUp(self):
        super().setUp()
        self.repo = UserRepository(self.db)

    def test_create_and_get(self):
        user = self.repo.create(User(username="alice", password_hash="h1"))
        fetched = self.repo.get_by_username("alice")
        self.assertIsNotNone(fetched)
        self.assertEqual(fetched.user_id, user.user_id)
        self.assertEqual(fetched.password_hash, "h1")
        self.assertEqual(self.repo.get_by_id(user.user_id).username, "alice")

    def test_duplicate_username_raises(self):
        self.repo.create(User(username="alice", password_hash="h1"))
        with self.assertRaises(DuplicateUserError):
            self.repo.create(User(username="alice", password_hash="h2"))
        self.assertEqual(self.repo.get_password_hash("alice"), "h1")

    def test_username_is_case_sensitive(self):
        self.repo.create(User(username="alice", password_hash="h1"))
        self.repo.create(User(username="Alice", password_hash="h2"))
        self.assertEqual(self.repo.get_password_hash("Alice"), "h2")

    def test_null_username_is_not_a_duplicate(self):
        with self.assertRaises(sqlite3.IntegrityError):
            self.repo.create(User(username=None, password_hash="h"))  # type: ignore[arg-type]

    def test_missing_user_lookups(self):
        self.assertFalse(self.repo.exists("ghost"))
        self.assertIsNone(self.repo.get_id("ghost"))
        self.assertIsNone(self.repo.get_password_hash("ghost"))
        self.assertIsNone(self.repo.get_by_username("ghost"))

    def test_delete_removes_owned_data(self):
        user = self.repo.create(User(username="alice", password_hash="h1"))
        data = UserDataRepository(self.db)
        data.upsert(user.user_id, "prefs", {"theme": "dark"})
        data.upsert("someone-else", "prefs", {"theme": "light"})

        self.assertEqual(self.repo.delete(user.user_id), 1)
        self.assertFalse(self.repo.exists("alice"))
        self.assertEqual(data.list_for_user(user.user_id), [])
        self.assertEqual(data.get("someone-else", "prefs"), {"theme": "light"})
        self.assertEqual(self.repo.delete(user.user_id), 0)


# ===========================================================================
# 4. User data repository
# ===========================================================================

class TestUserDataRepository(_TempDbCase):
    def setUp(self):
        super().setUp()
        self.repo = UserDataRepository(self.db)

    def test_upsert_inserts_then_updates(self):
        self.repo.upsert("u1", "prefs", {"theme": "dark"})
        first = self.repo.list_for_user("u1")[0]
        time.sleep(0.02)
        self.repo.upsert("u1", "prefs", {"theme": "light"})

        entries = self.repo.list_for_user("u1")
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].data, {"theme": "light"})
        self.assertEqual(entries[0].created_at, first.created_at)
        self.assertGreater(entries[0].updated_at, first.updated_at)

    def test_stored_text_is_canonical(self):
        self.repo.upsert("u1", "k", {"z": 1, "a": {"y": 2, "b": 3}})
        row = self.db.fetchone("SELECT data_value FROM user_data WHERE data_key = 'k'")
        self.assertEqual(row["data_value"], '{"a":{"b":3,"y":2},"z":1}')
        self.assertEqual(json.loads(row["data_value"])["a"]["y"], 2)

    def test_get_missing_returns_none(self):
        self.assertIsNone(self.repo.get("u1", "nothing"))

    def test_list_is_insertion_ordered(self):
        for key in ("c", "a", "b"):
            self.repo.upsert("u1", key, {"k": key})
        self.assertEqual([e.key for e in self.repo.list_for_user("u1")], ["c", "a", "b"])

    def test_updated_at_never_moves_backwards(self):
        with self.db.transaction() as conn:
            conn.execute(
                """INSERT INTO user_data
                   (user_id, data_key, data_value, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                ("u1", "k", "{}", "2999-01-01T00:00:00.000000Z", "2999-01-01T00:00:00.000000Z"),
            )
        self.repo.upsert("u1", "k", {"v": 2})
        entry = self.repo.list_for_user("u1")[0]
        self.assertEqual(entry.data, {"v": 2})
        self.assertEqual(entry.updated_at, "2999-01-01T00:00:00.000000Z")
        self.assertEqual(entry.created_at, "2999-01-01T00:00:00.000000Z")

    def test_delete_counts_rows(self):
        self.repo.upsert("u1", "k", {})
        self.assertEqual(self.repo.delete("u1", "k"), 1)
        self.assertEqual(self.repo.delete("u1", "k"), 0)


if __name__ == "__main__":
    unittest.main()
