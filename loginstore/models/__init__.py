"""Domain models for the user store."""

from loginstore.models.user import User, utc_timestamp
from loginstore.models.user_data import UserDataEntry, dump_document, load_document

__all__ = [
    "User", "utc_timestamp",
    "UserDataEntry", "dump_document", "load_document",
]
