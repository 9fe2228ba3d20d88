#!/usr/bin/env python3
"""Operator CLI: initialise the user store and inspect or edit its contents."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from loginstore.config import get_settings
from loginstore.services.user_store import UserStore


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="loginstore", description="Manage the user store")
    parser.add_argument("--db-path", type=str, help="Override database path")
    parser.add_argument("--log-level", type=str, help="Override log level (e.g. DEBUG)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create the database file and tables")

    p = sub.add_parser("add-user", help="Create a user from a precomputed password hash")
    p.add_argument("username")
    p.add_argument("password_hash")

    p = sub.add_parser("show-user", help="Show a user's id and creation time")
    p.add_argument("username")

    p = sub.add_parser("set-data", help="Save a JSON object under a key")
    p.add_argument("user_id")
    p.add_argument("key")
    p.add_argument("json_value")

    p = sub.add_parser("get-data", help="Print one document, or all documents for a user")
    p.add_argument("user_id")
    p.add_argument("key", nargs="?")

    p = sub.add_parser("delete-data", help="Delete the document stored under a key")
    p.add_argument("user_id")
    p.add_argument("key")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=(args.log_level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = UserStore(path=Path(args.db_path) if args.db_path else None, settings=settings)
    if not store.initialize():
        print(f"Could not open database at {store.path}", file=sys.stderr)
        return 2

    try:
        return _run(store, args)
    finally:
        store.close()


def _run(store: UserStore, args: argparse.Namespace) -> int:
    if args.command == "init":
        print(f"Database initialized at: {store.path}")
        return 0

    if args.command == "add-user":
        if not store.create_user(args.username, args.password_hash):
            print(f"Could not create user {args.username!r}", file=sys.stderr)
            return 1
        print(f"Created user {args.username} ({store.get_user_id(args.username)})")
        return 0

    if args.command == "show-user":
        user = store.get_user(args.username)
        if user is None:
            print(f"No such user: {args.username}", file=sys.stderr)
            return 1
        print(f"{user.username} | id={user.user_id} | created={user.created_at}")
        return 0

    if args.command == "set-data":
        try:
            value = json.loads(args.json_value)
        except json.JSONDecodeError as e:
            print(f"Invalid JSON: {e}", file=sys.stderr)
            return 1
        if not isinstance(value, dict) or not store.save_user_data(args.user_id, args.key, value):
            print(f"Could not save data under {args.key!r}", file=sys.stderr)
            return 1
        print(f"Saved {args.key}")
        return 0

    if args.command == "get-data":
        if args.key:
            print(json.dumps(store.get_user_data(args.user_id, args.key), indent=2))
        else:
            entries = [e.to_dict() for e in store.get_all_user_data(args.user_id)]
            print(json.dumps(entries, indent=2))
        return 0

    if args.command == "delete-data":
        if not store.delete_user_data(args.user_id, args.key):
            print(f"Could not delete {args.key!r}", file=sys.stderr)
            return 1
        print(f"Deleted {args.key}")
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
