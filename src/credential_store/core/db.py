# Core Module - SQLite Connection Helper
#
# Credential databases are opened through `connect()` or `session()` rather
# than raw `sqlite3.connect()`. Every connection runs in WAL mode with a busy
# timeout, so concurrent readers never block the single writer and writers
# wait instead of failing with SQLITE_BUSY.

import contextlib
import sqlite3
from pathlib import Path
from typing import Iterator, Union

BUSY_TIMEOUT_MS = 5000


def connect(
    db_path: Union[str, Path],
    *,
    row_factory: bool = True,
    check_same_thread: bool = True,
) -> sqlite3.Connection:
    """Open a SQLite connection with WAL mode and safe PRAGMAs.

    Args:
        db_path: Path to the database file.
        row_factory: If True, rows come back as sqlite3.Row.
        check_same_thread: Passed to sqlite3.connect().
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=check_same_thread)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    conn.execute("PRAGMA foreign_keys=ON")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


@contextlib.contextmanager
def session(db_path: Union[str, Path]) -> Iterator[sqlite3.Connection]:
    """Yield a connection that commits on success, rolls back on error,
    and is always closed afterwards.
    """
    conn = connect(db_path)
    try:
        with conn:
            yield conn
    finally:
        conn.close()
