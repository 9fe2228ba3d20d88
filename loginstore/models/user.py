"""User domain model: identity record owned by the ``users`` table."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_timestamp() -> str:
    """Current UTC time, microsecond precision, e.g. ``2026-01-01T12:00:00.000001Z``."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


@dataclass
class User:
    """A login identity. ``username`` is unique and case-sensitive."""

    username: str
    password_hash: str
    user_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.user_id,
            "username": self.username,
            "password_hash": self.password_hash,
            "created_at": self.created_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "User":
        return cls(
            user_id=row["id"],
            username=row["username"],
            password_hash=row["password_hash"],
            created_at=row.get("created_at", ""),
        )

    def __repr__(self) -> str:
        return f"User(user_id={self.user_id!r}, username={self.username!r})"
