"""Database layer: SQLite with ACID transactions and repository pattern."""

from loginstore.db.database import Database
from loginstore.db.schema import SCHEMA_DDL
from loginstore.db.user_data_repo import UserDataRepository
from loginstore.db.user_repo import UserRepository

__all__ = ["Database", "SCHEMA_DDL", "UserRepository", "UserDataRepository"]
