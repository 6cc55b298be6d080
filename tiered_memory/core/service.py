"""
Memory service - the tiered memory surface consumed by an agent.

Wraps a store and an embedding provider: search() turns free text into
ranked memory entries, add_session() runs the ingestion policy over a
finished conversation.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from .context import OperationContext, ensure_context
from .errors import EmbeddingError, MemoryStoreError
from .schema import Experience, ProjectRule
from .store import MemoryStore
from ..agents.ingestion import DEFAULT_MIN_RESPONSE_LENGTH, IngestionOutcome, IngestionPolicy, IngestionState
from ..util.logging import logger, log_rules_loaded

DEFAULT_SEARCH_LIMIT = 10
SYSTEM_AUTHOR = "system"


@dataclass
class MemoryEntry:
    """A recalled experience rendered as text for an agent's context."""
    content: str
    author: str = SYSTEM_AUTHOR
    timestamp: Optional[datetime] = None


def render_experience(experience: Experience) -> str:
    """Problem / Cause / Solution lines; empty sections are left out."""
    lines = []
    if experience.error_pattern:
        lines.append(f"Problem: {experience.error_pattern}")
    if experience.root_cause:
        lines.append(f"Cause: {experience.root_cause}")
    if experience.solution_summary:
        lines.append(f"Solution: {experience.solution_summary}")
    return "\n".join(lines)


class MemoryService:
    """Episodic search and session ingestion over one store."""

    def __init__(self, store: MemoryStore, embedder=None, search_limit: int = DEFAULT_SEARCH_LIMIT,
                 min_response_length: Optional[int] = None):
        self.store = store
        self.embedder = embedder
        self.search_limit = search_limit
        self.policy = None
        if embedder is not None:
            self.policy = IngestionPolicy(
                store,
                embedder,
                min_response_length=(min_response_length if min_response_length is not None
                                     else DEFAULT_MIN_RESPONSE_LENGTH)
            )

    def _embed(self, text: str, ctx: OperationContext) -> List[float]:
        try:
            return self.embedder.embed_text(text, ctx)
        except MemoryStoreError:
            raise
        except Exception as e:
            raise EmbeddingError(f"failed to generate query embedding: {e}") from e

    def search_experiences(self, query: str, limit: Optional[int] = None,
                           ctx: Optional[OperationContext] = None) -> List[Experience]:
        """Embed the query and return the most similar experiences."""
        if self.embedder is None:
            logger.debug("No embedder configured, returning no experiences")
            return []

        ctx = ensure_context(ctx)
        vector = self._embed(query, ctx)
        return self.store.search_similar(vector, limit if limit is not None else self.search_limit, ctx)

    def search(self, query: str, ctx: Optional[OperationContext] = None) -> List[MemoryEntry]:
        """
        Recall past experiences relevant to a query.

        Without an embedder this returns an empty list; every other failure
        is raised to the caller.
        """
        entries = []
        for experience in self.search_experiences(query, ctx=ctx):
            content = render_experience(experience)
            if not content:
                continue
            entries.append(MemoryEntry(content=content, timestamp=experience.occurred_at))
        return entries

    def add_session(self, turns: Iterable, ctx: Optional[OperationContext] = None) -> IngestionOutcome:
        """Ingest a finished conversation into episodic memory."""
        if self.policy is None:
            logger.log_ingestion_decision(IngestionState.DONE.value, False, "no embedder configured")
            return IngestionOutcome(state=IngestionState.DONE, saved=False, reason="no embedder configured")

        return self.policy.process(turns, ctx)

    def get_rules(self, ctx: Optional[OperationContext] = None) -> List[ProjectRule]:
        return self.store.get_rules(ctx)

    def get_active_rules(self, ctx: Optional[OperationContext] = None) -> List[str]:
        rules = self.store.get_active_rules(ctx)
        log_rules_loaded(self.store.backend_name, rules)
        return rules

    def close(self) -> None:
        self.store.close()
