"""loginstore: SQLite persistence for user identities and per-user documents."""

from loginstore.errors import (
    DocumentSerializationError,
    DuplicateUserError,
    StoreError,
    StoreUnavailableError,
)
from loginstore.models import User, UserDataEntry
from loginstore.services import UserStore

__version__ = "1.0.0"

__all__ = [
    "UserStore",
    "User", "UserDataEntry",
    "StoreError", "StoreUnavailableError", "DuplicateUserError",
    "DocumentSerializationError",
]
