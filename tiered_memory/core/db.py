"""
SQLite foundation - connections, schema and timestamp parsing.
Used by the brute-force store; embeddings live in a BLOB column.
"""

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, Iterable, Optional, Tuple

from .context import OperationContext, ensure_context

# SQLite VM instructions between deadline checks
PROGRESS_STEPS = 1000

# Busy timeout when the context carries no deadline
DEFAULT_BUSY_TIMEOUT_SEC = 5.0

SCHEMA = '''
    -- Semantic memory: project rules
    CREATE TABLE IF NOT EXISTS project_rules (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        category TEXT NOT NULL,
        rule_content TEXT NOT NULL,
        priority INTEGER DEFAULT 1,
        is_active INTEGER DEFAULT 1,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP
    );

    CREATE INDEX IF NOT EXISTS idx_rules_category ON project_rules(category);

    -- Episodic memory: issue history, embedding is 4 bytes per float32 dimension
    CREATE TABLE IF NOT EXISTS issue_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        task_signature TEXT,
        error_pattern TEXT,
        root_cause TEXT,
        solution_summary TEXT,
        embedding BLOB,
        occurred_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
'''

TIMESTAMP_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S.%f",
]


def resolve_target(db_path: str) -> Tuple[str, bool]:
    """
    Map a configured path to a (target, uri) pair for sqlite3.connect.

    ":memory:" becomes a uniquely named shared-cache database so that every
    per-operation connection sees the same data.
    """
    if db_path == ":memory:":
        return f"file:tiered_memory_{uuid.uuid4().hex}?mode=memory&cache=shared", True
    if db_path.startswith("file:"):
        return db_path, True
    return db_path, False


@contextmanager
def get_db(target: str, uri: bool = False,
           ctx: Optional[OperationContext] = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Get a SQLite connection bound to an operation context.

    A running statement is interrupted once the context is cancelled or its
    deadline passes; sqlite3 then raises OperationalError("interrupted").
    """
    ctx = ensure_context(ctx)
    ctx.check()

    remaining = ctx.remaining()
    busy_timeout = DEFAULT_BUSY_TIMEOUT_SEC if remaining is None else remaining
    conn = sqlite3.connect(target, uri=uri, timeout=busy_timeout)
    unregister = ctx.on_cancel(conn.interrupt)
    conn.set_progress_handler(lambda: 1 if ctx.expired() else 0, PROGRESS_STEPS)
    try:
        yield conn
    finally:
        unregister()
        conn.close()


def init_schema(conn: sqlite3.Connection) -> None:
    """Create tables and indexes if they don't exist."""
    conn.executescript(SCHEMA)
    conn.commit()


def enable_wal(conn: sqlite3.Connection) -> None:
    """Switch a file database to write-ahead logging."""
    conn.execute("PRAGMA journal_mode=WAL")


def seed_rules(conn: sqlite3.Connection, rules: Iterable[Tuple[str, str, int]]) -> int:
    """Insert (category, rule_content, priority) rows; returns the number inserted."""
    cursor = conn.executemany(
        "INSERT INTO project_rules (category, rule_content, priority) VALUES (?, ?, ?)",
        list(rules)
    )
    conn.commit()
    return cursor.rowcount


def health_check(conn: sqlite3.Connection) -> bool:
    """Check that the required tables exist."""
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    table_names = {row[0] for row in cursor.fetchall()}
    return {"project_rules", "issue_history"} <= table_names


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse a SQLite CURRENT_TIMESTAMP string (UTC) into an aware datetime.

    Returns None for values in none of the known formats.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    text = str(value).strip()
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
