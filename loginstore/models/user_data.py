"""Per-user key/value documents stored as canonical JSON text."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from loginstore.errors import DocumentSerializationError
from loginstore.models.user import utc_timestamp


def dump_document(data: Mapping[str, Any]) -> str:
    """Encode a document to canonical compact JSON object text."""
    if not isinstance(data, Mapping):
        raise DocumentSerializationError(
            f"Document must be a mapping, got {type(data).__name__}"
        )
    try:
        return json.dumps(
            dict(data), separators=(",", ":"), sort_keys=True,
            ensure_ascii=False, allow_nan=False,
        )
    except (TypeError, ValueError, RecursionError) as e:
        raise DocumentSerializationError(f"Document is not JSON-serialisable: {e}") from e


def load_document(raw: str) -> dict[str, Any]:
    """Decode JSON object text. Raises DocumentSerializationError on anything else."""
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError, RecursionError) as e:
        raise DocumentSerializationError(f"Stored document is not valid JSON: {e}") from e
    if not isinstance(value, dict):
        raise DocumentSerializationError(
            f"Stored document is not a JSON object: {type(value).__name__}"
        )
    return value


@dataclass
class UserDataEntry:
    """One document owned by a user, identified by ``(user_id, key)``."""

    user_id: str
    key: str
    data: dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_timestamp)
    updated_at: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "data": self.data,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "UserDataEntry":
        """Build from a ``user_data`` row; unreadable documents become ``{}``."""
        try:
            data = load_document(row["data_value"])
        except DocumentSerializationError:
            data = {}
        return cls(
            user_id=row["user_id"],
            key=row["data_key"],
            data=data,
            created_at=row.get("created_at", ""),
            updated_at=row.get("updated_at", ""),
        )
