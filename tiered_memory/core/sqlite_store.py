"""
Episodic memory - brute-force SQLite strategy.

SQLite has no vector index here, so search loads every embedded record,
decodes it and ranks in application memory. Suitable for small corpora
(low thousands of records); a larger corpus needs a real index.
"""

import sqlite3
import threading
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import List, Optional, Sequence

from .context import OperationContext, ensure_context
from .db import enable_wal, get_db, health_check, init_schema, parse_timestamp, resolve_target, seed_rules
from .errors import (
    DeadlineExceeded,
    OperationCancelled,
    StoreConnectionError,
    StoreQueryError,
    VectorDecodeError,
)
from .rules import order_active_rules
from .schema import Experience, ProjectRule
from .signature import DEFAULT_SIGNATURE_LENGTH
from .store import MemoryStore
from ..util.logging import logger
from ..vector.codec import decode_vector, encode_vector
from ..vector.similarity import count_comparable, rank
from ..vector.types import Candidate


class SQLiteStore(MemoryStore):
    """SQLite-backed memory store with in-memory cosine similarity search."""

    backend_name = "sqlite"

    def __init__(self, db_path: str, signature_length: int = DEFAULT_SIGNATURE_LENGTH,
                 ctx: Optional[OperationContext] = None):
        """
        Open the database and verify connectivity.

        Args:
            db_path: File path, "file:" URI, or ":memory:"
            signature_length: Code points kept in each task signature
            ctx: Optional context bounding the connectivity check

        Raises:
            StoreConnectionError: the database cannot be opened
        """
        super().__init__(signature_length)
        self.db_path = db_path
        self._target, self._uri = resolve_target(db_path)
        self._keeper = None
        # Shared-cache tables lock with SQLITE_LOCKED, which no busy timeout retries
        self._lock = threading.Lock() if "mode=memory" in self._target else None

        try:
            if not self._uri:
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            else:
                # Shared-cache memory databases vanish with their last connection
                self._keeper = sqlite3.connect(self._target, uri=True, check_same_thread=False)

            with get_db(self._target, self._uri, ctx) as conn:
                conn.execute("SELECT 1").fetchone()
                if not self._uri:
                    enable_wal(conn)
        except (sqlite3.Error, OSError) as e:
            self.close()
            logger.log_store_operation("connect", self.backend_name, {"error": str(e)[:100]}, status="failed")
            raise StoreConnectionError(f"failed to open SQLite database {db_path}: {e}") from e

    @contextmanager
    def _connect(self, ctx: Optional[OperationContext]):
        with self._lock if self._lock is not None else nullcontext():
            with get_db(self._target, self._uri, ctx) as conn:
                yield conn

    def _query_failed(self, ctx: OperationContext, action: str, error: Exception) -> Exception:
        """Map a driver error to the error the caller should see."""
        if ctx.cancelled:
            return OperationCancelled(f"{action} cancelled")
        if ctx.expired():
            return DeadlineExceeded(f"{action} exceeded its deadline")
        logger.log_store_operation(action, self.backend_name, {"error": str(error)[:100]}, status="failed")
        return StoreQueryError(f"failed to {action.replace('_', ' ')}: {error}")

    def init_schema(self, ctx: Optional[OperationContext] = None) -> None:
        """Create tables and indexes if they don't exist, then verify them."""
        ctx = ensure_context(ctx)
        try:
            with self._connect(ctx) as conn:
                init_schema(conn)
                if not health_check(conn):
                    raise StoreQueryError("memory tables missing after schema initialization")
        except sqlite3.Error as e:
            raise self._query_failed(ctx, "initialize_schema", e) from e

    def seed_rules(self, rules, ctx: Optional[OperationContext] = None) -> int:
        """Insert (category, rule_content, priority) rows; returns how many."""
        ctx = ensure_context(ctx)
        try:
            with self._connect(ctx) as conn:
                return seed_rules(conn, rules)
        except sqlite3.Error as e:
            raise self._query_failed(ctx, "seed_rules", e) from e

    def get_rules(self, ctx: Optional[OperationContext] = None) -> List[ProjectRule]:
        """Retrieve all active project rules."""
        ctx = ensure_context(ctx)
        try:
            with self._connect(ctx) as conn:
                cursor = conn.execute('''
                    SELECT id, category, rule_content, priority, is_active, created_at
                    FROM project_rules
                    WHERE is_active = 1
                ''')
                rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise self._query_failed(ctx, "query_project_rules", e) from e

        rules = [
            ProjectRule(
                id=rule_id,
                category=category,
                rule_content=content,
                priority=priority if priority is not None else 1,
                is_active=bool(is_active),
                created_at=parse_timestamp(created_at)
            )
            for rule_id, category, content, priority, is_active, created_at in rows
        ]
        rules = order_active_rules(rules)
        logger.log_store_operation("get_rules", self.backend_name, {"count": len(rules)})
        return rules

    def search_similar(self, query_vector: Sequence[float], limit: int,
                       ctx: Optional[OperationContext] = None) -> List[Experience]:
        """
        Find past experiences similar to the query vector.

        Loads all embedded records, skips those whose dimension differs from
        the query (or whose blob is corrupt), and returns the top `limit` by
        cosine similarity, most similar first.
        """
        ctx = ensure_context(ctx)
        try:
            with self._connect(ctx) as conn:
                cursor = conn.execute('''
                    SELECT id, task_signature, error_pattern, root_cause, solution_summary, embedding, occurred_at
                    FROM issue_history
                    WHERE embedding IS NOT NULL
                ''')
                rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise self._query_failed(ctx, "search_similar_issues", e) from e

        candidates = []
        for row_id, signature, pattern, cause, solution, blob, occurred_at in rows:
            try:
                vector = decode_vector(blob)
            except VectorDecodeError as e:
                logger.warning(f"Skipping issue_history row {row_id} with corrupt embedding: {e}")
                continue

            experience = Experience(
                id=row_id,
                task_signature=signature or "",
                error_pattern=pattern or "",
                root_cause=cause or "",
                solution_summary=solution or "",
                embedding=vector,
                occurred_at=parse_timestamp(occurred_at)
            )
            candidates.append(Candidate(item=experience, vector=vector))

        ctx.check()
        ranked = rank(query_vector, candidates, limit)

        results = []
        for hit in ranked:
            hit.item.similarity_score = hit.score
            results.append(hit.item)

        comparable = count_comparable(query_vector, (c.vector for c in candidates))
        logger.log_search(self.backend_name, limit, len(rows), len(results), skipped=len(rows) - comparable)
        return results

    def save_experience(self, pattern: str, cause: str, solution: str,
                        vector: Optional[Sequence[float]],
                        ctx: Optional[OperationContext] = None) -> None:
        """
        Store a new experience in the issue_history table.

        The insert runs in its own transaction: it either commits or, on
        error or cancellation, leaves no row behind.
        """
        signature = self.prepare_signature(pattern, cause, solution)
        blob = encode_vector(vector)

        ctx = ensure_context(ctx)
        try:
            with self._connect(ctx) as conn:
                with conn:
                    conn.execute('''
                        INSERT INTO issue_history (task_signature, error_pattern, root_cause, solution_summary, embedding)
                        VALUES (?, ?, ?, ?, ?)
                    ''', (signature, pattern, cause, solution, blob))
        except sqlite3.Error as e:
            raise self._query_failed(ctx, "save_experience", e) from e

        logger.log_experience_saved(self.backend_name, signature, len(vector) if vector is not None else None)

    def count_experiences(self, ctx: Optional[OperationContext] = None) -> int:
        """Number of stored experiences, embedded or not."""
        ctx = ensure_context(ctx)
        try:
            with self._connect(ctx) as conn:
                return conn.execute("SELECT COUNT(*) FROM issue_history").fetchone()[0]
        except sqlite3.Error as e:
            raise self._query_failed(ctx, "count_experiences", e) from e

    def close(self) -> None:
        """Release the shared in-memory database, if any."""
        if self._keeper is not None:
            self._keeper.close()
            self._keeper = None
