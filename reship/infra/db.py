# reship/infra/db.py
"""
SQLite connection helpers.

A use case opens one connection and hands it to every repository it needs,
so all writes of one operation are committed (or rolled back) together.
"""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from typing import Iterator


@contextmanager
def connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    Open a SQLite connection with:
    - foreign_keys ON
    - row_factory = sqlite3.Row
    - commit on exit (rollback when an exception escapes)
    """
    conn = sqlite3.connect(db_path, timeout=10)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def new_id() -> str:
    """Opaque identifier for new rows."""
    return uuid.uuid4().hex
