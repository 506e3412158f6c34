"""
Data access objects (repositories) for user account records.

A repository is a plain persistence collaborator: filtered CRUD over
``{"id", "username", "password"}`` records with no business rules, except
one. Both backends enforce a unique ``username`` constraint and raise
``DuplicateUsernameError`` when a write would break it. That constraint is
the authoritative uniqueness guarantee; the store's own lookup is only an
early reject.

Filters are exact-match conjunctions over field names. An empty filter
matches every record.
"""

import asyncio
import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .core.db import session
from .exceptions import DuplicateUsernameError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Filter = Dict[str, Any]

FIELDS = ("id", "username", "password")


def _check_fields(fields: Dict[str, Any]) -> None:
    unknown = set(fields) - set(FIELDS)
    if unknown:
        raise ValueError(f"Unknown user fields: {sorted(unknown)}")


class UserRepository(ABC):
    """Async persistence contract consumed by CredentialStore."""

    @abstractmethod
    async def create_one(self, fields: Record) -> str:
        """
        Insert a record and return its newly assigned id.

        Raises:
            DuplicateUsernameError: If the username is already stored
        """

    @abstractmethod
    async def read_one(self, filter: Filter) -> Optional[Record]:
        """Return the first record matching the filter, or None."""

    @abstractmethod
    async def read_many(self, filter: Filter) -> List[Record]:
        """Return every record matching the filter."""

    @abstractmethod
    async def partial_update_one(self, filter: Filter, fields: Record) -> None:
        """
        Update the given fields on the first matching record.

        Does not return the updated record. No-op if nothing matches.

        Raises:
            DuplicateUsernameError: If the new username belongs to another record
        """

    @abstractmethod
    async def delete_one(self, filter: Filter) -> None:
        """Delete the first matching record. No-op if nothing matches."""


class InMemoryUserRepository(UserRepository):
    """
    Dict-backed repository for tests and embedding.

    Each call holds an asyncio.Lock for its whole body, which gives the
    single-document atomicity the store relies on. Records are copied on
    the way in and out so callers never share state with the repository.
    """

    def __init__(self):
        self._records: Dict[str, Record] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    @staticmethod
    def _matches(record: Record, filter: Filter) -> bool:
        return all(record.get(key) == value for key, value in filter.items())

    def _first(self, filter: Filter) -> Optional[Record]:
        for record in self._records.values():
            if self._matches(record, filter):
                return record
        return None

    def _username_taken(self, username: str, exclude_id: Optional[str] = None) -> bool:
        return any(
            record["username"] == username and record_id != exclude_id
            for record_id, record in self._records.items()
        )

    async def create_one(self, fields: Record) -> str:
        _check_fields(fields)
        async with self._lock:
            if self._username_taken(fields.get("username")):
                raise DuplicateUsernameError(fields.get("username"))
            record_id = str(uuid.uuid4())
            self._records[record_id] = {**fields, "id": record_id}
            return record_id

    async def read_one(self, filter: Filter) -> Optional[Record]:
        async with self._lock:
            record = self._first(filter)
            return dict(record) if record is not None else None

    async def read_many(self, filter: Filter) -> List[Record]:
        async with self._lock:
            return [
                dict(record)
                for record in self._records.values()
                if self._matches(record, filter)
            ]

    async def partial_update_one(self, filter: Filter, fields: Record) -> None:
        _check_fields(fields)
        if "id" in fields:
            raise ValueError("Record id is immutable")
        async with self._lock:
            record = self._first(filter)
            if record is None:
                return
            if "username" in fields and self._username_taken(
                fields["username"], exclude_id=record["id"]
            ):
                raise DuplicateUsernameError(fields["username"])
            record.update(fields)

    async def delete_one(self, filter: Filter) -> None:
        async with self._lock:
            record = self._first(filter)
            if record is not None:
                del self._records[record["id"]]


class SQLiteUserRepository(UserRepository):
    """
    SQLite-backed repository.

    Uses a fresh WAL-mode connection per call (see core.db). The
    ``username`` column carries a UNIQUE constraint; violations surface as
    DuplicateUsernameError.

    Args:
        db_path: Path to SQLite file. Parent directories are created.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        with session(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    username TEXT NOT NULL UNIQUE,
                    password TEXT NOT NULL
                )
            """)
        logger.info(f"User table ready: {self.db_path}")

    @staticmethod
    def _where(filter: Filter):
        """Build a WHERE clause from a whitelisted exact-match filter."""
        _check_fields(filter)
        if not filter:
            return "", []
        clause = " AND ".join(f"{column} = ?" for column in filter)
        return f" WHERE {clause}", list(filter.values())

    @staticmethod
    def _is_username_violation(exc: sqlite3.IntegrityError) -> bool:
        return "UNIQUE constraint failed: users.username" in str(exc)

    def _execute(self, query: str, params: list, fetch: Optional[str] = None):
        """Run one statement on a fresh connection (called off the event loop)."""
        with session(self.db_path) as conn:
            cursor = conn.execute(query, params)
            if fetch == "one":
                row = cursor.fetchone()
                return dict(row) if row else None
            if fetch == "all":
                return [dict(r) for r in cursor.fetchall()]
            return None

    async def _write(self, query: str, params: list, username: Optional[str]) -> None:
        try:
            await asyncio.to_thread(self._execute, query, params)
        except sqlite3.IntegrityError as e:
            if self._is_username_violation(e):
                raise DuplicateUsernameError(username) from e
            raise

    async def create_one(self, fields: Record) -> str:
        _check_fields(fields)
        record_id = str(uuid.uuid4())
        await self._write(
            "INSERT INTO users (id, username, password) VALUES (?, ?, ?)",
            [record_id, fields.get("username"), fields.get("password")],
            fields.get("username"),
        )
        return record_id

    async def read_one(self, filter: Filter) -> Optional[Record]:
        where, params = self._where(filter)
        return await asyncio.to_thread(
            self._execute,
            f"SELECT id, username, password FROM users{where} ORDER BY rowid LIMIT 1",
            params,
            "one",
        )

    async def read_many(self, filter: Filter) -> List[Record]:
        where, params = self._where(filter)
        return await asyncio.to_thread(
            self._execute,
            f"SELECT id, username, password FROM users{where} ORDER BY rowid",
            params,
            "all",
        )

    async def partial_update_one(self, filter: Filter, fields: Record) -> None:
        _check_fields(fields)
        if "id" in fields:
            raise ValueError("Record id is immutable")
        if not fields:
            return
        where, params = self._where(filter)
        assignments = ", ".join(f"{column} = ?" for column in fields)
        await self._write(
            f"UPDATE users SET {assignments} WHERE rowid = "
            f"(SELECT rowid FROM users{where} ORDER BY rowid LIMIT 1)",
            list(fields.values()) + params,
            fields.get("username"),
        )

    async def delete_one(self, filter: Filter) -> None:
        where, params = self._where(filter)
        await asyncio.to_thread(
            self._execute,
            f"DELETE FROM users WHERE rowid = "
            f"(SELECT rowid FROM users{where} ORDER BY rowid LIMIT 1)",
            params,
        )
