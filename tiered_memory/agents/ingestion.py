"""
Ingestion policy - decides whether a finished conversation becomes an experience.

The conversation is folded once, in order: the last user text becomes the
query, the last non-user text becomes the response, and any call to the
explicit save tool suppresses automatic persistence so the same solved
issue is never recorded twice.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from functools import reduce
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..core.context import OperationContext, ensure_context
from ..core.errors import EmbeddingError, MemoryStoreError
from ..core.store import MemoryStore
from ..util.logging import logger
from ..vector.embeddings import IEmbeddingProvider

USER_AUTHOR = "user"
SAVE_EXPERIENCE_TOOL = "save_experience"
DEFAULT_MIN_RESPONSE_LENGTH = 20


@dataclass
class FunctionCall:
    """A tool invocation emitted by the model."""
    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Part:
    """One piece of a turn: text, a function call, or both."""
    text: str = ""
    function_call: Optional[FunctionCall] = None


@dataclass
class Turn:
    """A single conversation turn."""
    author: str
    parts: List[Part] = field(default_factory=list)

    @classmethod
    def from_text(cls, author: str, text: str) -> "Turn":
        return cls(author=author, parts=[Part(text=text)])

    @property
    def is_user(self) -> bool:
        return self.author == USER_AUTHOR

    def text(self) -> str:
        """Non-empty text parts joined with a single space."""
        return " ".join(part.text for part in self.parts if part.text)

    def calls_tool(self, name: str) -> bool:
        return any(part.function_call is not None and part.function_call.name == name
                   for part in self.parts)


class IngestionState(Enum):
    SCANNING = "scanning"
    EXPLICIT_SAVE_DETECTED = "explicit_save_detected"
    CANDIDATE_FOUND = "candidate_found"
    DONE = "done"


@dataclass(frozen=True)
class ConversationScan:
    """Accumulator of the fold over a conversation."""
    query: str = ""
    response: str = ""
    explicit_save: bool = False


@dataclass
class IngestionOutcome:
    """
    Result of processing one conversation.

    `state` is the state the policy decided in: EXPLICIT_SAVE_DETECTED when
    an explicit save suppressed ingestion, CANDIDATE_FOUND when a candidate
    qualified (and `saved` is True), otherwise DONE.
    """
    state: IngestionState
    saved: bool
    reason: str
    query: str = ""
    response: str = ""


def scan_conversation(turns: Iterable[Turn], save_tool_name: str = SAVE_EXPERIENCE_TOOL) -> ConversationScan:
    """Fold the turns into the last query, last response and explicit-save flag."""

    def step(scan: ConversationScan, turn: Turn) -> ConversationScan:
        explicit_save = scan.explicit_save or turn.calls_tool(save_tool_name)
        text = turn.text()
        # Turns without text never overwrite an earlier capture
        if not text:
            return replace(scan, explicit_save=explicit_save)
        if turn.is_user:
            return replace(scan, query=text, explicit_save=explicit_save)
        return replace(scan, response=text, explicit_save=explicit_save)

    return reduce(step, turns, ConversationScan())


class IngestionPolicy:
    """Turns qualifying conversations into episodic memory records."""

    def __init__(self, store: MemoryStore, embedder: IEmbeddingProvider,
                 min_response_length: int = DEFAULT_MIN_RESPONSE_LENGTH,
                 save_tool_name: str = SAVE_EXPERIENCE_TOOL):
        self.store = store
        self.embedder = embedder
        self.min_response_length = min_response_length
        self.save_tool_name = save_tool_name

    def decide(self, scan: ConversationScan) -> Tuple[IngestionState, str]:
        """Pick the next state after scanning, with the reason for it."""
        if scan.explicit_save:
            return IngestionState.EXPLICIT_SAVE_DETECTED, "experience already saved explicitly"
        if not scan.query:
            return IngestionState.DONE, "no user query"
        if not scan.response:
            return IngestionState.DONE, "no response"
        # Length in characters, not encoded bytes
        if len(scan.response) <= self.min_response_length:
            return IngestionState.DONE, "response too short"
        return IngestionState.CANDIDATE_FOUND, "candidate found"

    def process(self, turns: Iterable[Turn], ctx: Optional[OperationContext] = None) -> IngestionOutcome:
        """
        Scan a conversation and persist it as an experience when it qualifies.

        Raises:
            EmbeddingError: the query could not be embedded
            StoreQueryError: the record could not be saved
            OperationCancelled: the context fired while embedding or saving
        """
        ctx = ensure_context(ctx)
        scan = scan_conversation(turns, self.save_tool_name)
        state, reason = self.decide(scan)

        if state is not IngestionState.CANDIDATE_FOUND:
            logger.log_ingestion_decision(state.value, False, reason, scan.query or None)
            return IngestionOutcome(state=state, saved=False, reason=reason,
                                    query=scan.query, response=scan.response)

        try:
            vector = self.embedder.embed_text(scan.query, ctx)
        except MemoryStoreError:
            raise
        except Exception as e:
            raise EmbeddingError(f"failed to embed conversation query: {e}") from e

        # Root cause stays empty; only explicit saves record one
        self.store.save_experience(scan.query, "", scan.response, vector, ctx)

        logger.log_ingestion_decision(state.value, True, "saved", scan.query)
        return IngestionOutcome(state=state, saved=True, reason="saved",
                                query=scan.query, response=scan.response)
