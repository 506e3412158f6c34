# Main Entry Point - Command Line Front End
#
# Thin argparse wrapper around CredentialStore backed by SQLite.
# Every command prints one JSON document; store errors go to stderr as
# "<kind>: <message>" with exit status 1.

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from . import __version__
from .config import Settings
from .core import AuditLogger, set_audit_logger
from .exceptions import CredentialStoreError
from .hashing import PasswordHasher
from .repository import SQLiteUserRepository
from .store import CredentialStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="credential-store",
        description="Manage user accounts and check credentials",
    )
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database path (default: $CREDSTORE_DB_PATH or data/credentials.db)",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Load settings from this .env file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"credential-store v{__version__}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Create an account")
    create.add_argument("username")
    create.add_argument("password")

    login = commands.add_parser("login", help="Authenticate a username/password pair")
    login.add_argument("username")
    login.add_argument("password")

    get = commands.add_parser("get", help="Show one account by id")
    get.add_argument("user_id")

    listing = commands.add_parser("list", help="List accounts")
    listing.add_argument("--username", default=None, help="Exact username filter")

    rename = commands.add_parser("rename", help="Change an account's username")
    rename.add_argument("user_id")
    rename.add_argument("new_username")

    delete = commands.add_parser("delete", help="Delete an account")
    delete.add_argument("user_id")

    return parser


async def run_command(store: CredentialStore, args: argparse.Namespace):
    """Dispatch a parsed command to the store and return its result."""
    if args.command == "create":
        return await store.create_account(args.username, args.password)
    if args.command == "login":
        return await store.authenticate(args.username, args.password)
    if args.command == "get":
        return await store.get_user_by_id(args.user_id)
    if args.command == "list":
        return await store.list_users(args.username)
    if args.command == "rename":
        return await store.rename_account(args.user_id, args.new_username)
    if args.command == "delete":
        return await store.delete_account(args.user_id)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the credential-store CLI."""
    args = build_parser().parse_args(argv)

    settings = Settings.from_env(args.env_file)
    audit = AuditLogger(log_dir=settings.audit_dir)
    set_audit_logger(audit)

    store = CredentialStore(
        SQLiteUserRepository(args.db or settings.db_path),
        hasher=PasswordHasher(settings.pbkdf2_iterations),
    )

    try:
        result = asyncio.run(run_command(store, args))
    except CredentialStoreError as e:
        print(f"{e.kind}: {e.message}", file=sys.stderr)
        return 1
    finally:
        audit.close()
        set_audit_logger(None)

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
