"""
Memory store contract shared by the brute-force and native-index backends.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .context import OperationContext
from .errors import InvalidExperienceError
from .schema import Experience, ProjectRule
from .signature import DEFAULT_SIGNATURE_LENGTH, make_signature
from .rules import rule_texts


class MemoryStore(ABC):
    """Abstract interface for semantic and episodic memory persistence.

    Implementations are chosen once, at construction, by config.get_store();
    callers only ever see this contract.
    """

    backend_name = "abstract"

    def __init__(self, signature_length: int = DEFAULT_SIGNATURE_LENGTH):
        self.signature_length = signature_length

    @abstractmethod
    def get_rules(self, ctx: Optional[OperationContext] = None) -> List[ProjectRule]:
        """Active project rules, ordered priority desc, category, id."""
        pass

    def get_active_rules(self, ctx: Optional[OperationContext] = None) -> List[str]:
        """Texts of the active project rules, in presentation order."""
        return rule_texts(self.get_rules(ctx))

    @abstractmethod
    def search_similar(self, query_vector: Sequence[float], limit: int,
                       ctx: Optional[OperationContext] = None) -> List[Experience]:
        """Past experiences most similar to the query vector, best first."""
        pass

    @abstractmethod
    def save_experience(self, pattern: str, cause: str, solution: str,
                        vector: Optional[Sequence[float]],
                        ctx: Optional[OperationContext] = None) -> None:
        """Append one experience record."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the backend handle."""
        pass

    def prepare_signature(self, pattern: str, cause: str, solution: str) -> str:
        """Validate an experience and derive its task signature."""
        if not pattern and not cause and not solution:
            raise InvalidExperienceError("experience needs at least one of pattern, cause or solution")
        return make_signature(pattern, self.signature_length)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
