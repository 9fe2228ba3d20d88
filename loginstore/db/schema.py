"""Database schema DDL: identity and per-user document tables."""

SCHEMA_DDL = """
-- ==========================================================================
-- Users (identity records)
-- ==========================================================================
CREATE TABLE IF NOT EXISTS users (
    id              TEXT PRIMARY KEY,
    username        TEXT UNIQUE NOT NULL,
    password_hash   TEXT NOT NULL,
    created_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
);

-- ==========================================================================
-- User data (one JSON document per user_id + data_key)
-- user_id is a soft reference to users.id; it is not enforced by the engine.
-- ==========================================================================
CREATE TABLE IF NOT EXISTS user_data (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id         TEXT NOT NULL,
    data_key        TEXT NOT NULL,
    data_value      TEXT NOT NULL,
    created_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now')),
    updated_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now')),
    UNIQUE(user_id, data_key)
);

CREATE INDEX IF NOT EXISTS idx_user_data_user ON user_data(user_id);
"""
