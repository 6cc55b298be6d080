"""
Agent context - the memory layers assembled for one session.

Global rules come from semantic memory, relevant history from episodic
recall, and the session history is the running conversation that is later
handed to ingestion.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..core.context import OperationContext
from ..core.schema import Experience
from ..core.service import MemoryService
from ..core.store import MemoryStore
from .ingestion import USER_AUTHOR, Part, Turn

MODEL_AUTHOR = "model"


@dataclass
class AgentContext:
    global_rules: List[str] = field(default_factory=list)
    relevant_history: List[Experience] = field(default_factory=list)
    session_history: List[Turn] = field(default_factory=list)

    def add_user_message(self, text: str) -> None:
        self.session_history.append(Turn.from_text(USER_AUTHOR, text))

    def add_model_response(self, *parts: Part) -> None:
        self.session_history.append(Turn(author=MODEL_AUTHOR, parts=list(parts)))

    def clear_history(self) -> None:
        """Drop the conversation and recalled history; rules are kept."""
        self.session_history = []
        self.relevant_history = []

    def load_rules(self, store: MemoryStore, ctx: Optional[OperationContext] = None) -> List[str]:
        self.global_rules = store.get_active_rules(ctx)
        return self.global_rules

    def recall(self, service: MemoryService, query: str,
               ctx: Optional[OperationContext] = None) -> List[Experience]:
        """Replace the relevant history with experiences similar to the query."""
        self.relevant_history = service.search_experiences(query, ctx=ctx)
        return self.relevant_history
