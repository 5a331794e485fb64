"""SQLite access for the budget category store.

The engine reads the store while ``willpower targets`` edits it from another
process, so connections use WAL and wait on a locked database instead of
failing straight away.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

BUSY_TIMEOUT_S = 5.0


def open_store_db(
    db_path: str | Path, row_factory: bool = False, timeout_s: float = BUSY_TIMEOUT_S
) -> sqlite3.Connection:
    """Connect to the category database in WAL mode.

    Rows come back as ``sqlite3.Row`` when ``row_factory`` is set.
    """
    conn = sqlite3.connect(str(db_path), timeout=timeout_s)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction(db_path: str | Path, row_factory: bool = False) -> Iterator[sqlite3.Connection]:
    """Commit on success, roll back on error, always close."""
    conn = open_store_db(db_path, row_factory=row_factory)
    try:
        with conn:
            yield conn
    finally:
        conn.close()
