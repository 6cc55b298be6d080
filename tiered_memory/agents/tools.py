"""
Memory tools - the recall and explicit-save actions an agent can call.

search_past_issues recalls similar past problems; save_experience records
a solved problem with its root cause. Every call returns a JSON-encoded
ToolResult, failures included, so the caller decides how to present them.
"""

from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from ..core.config import get_tool_search_limit
from ..core.context import OperationContext, ensure_context
from ..core.errors import MemoryStoreError
from ..core.store import MemoryStore
from ..util.logging import log_tool_call
from ..vector.embeddings import IEmbeddingProvider
from .ingestion import SAVE_EXPERIENCE_TOOL
from .schemas import PastIssue, SaveExperienceRequest, SearchPastIssuesRequest, ToolResult

SEARCH_PAST_ISSUES_TOOL = "search_past_issues"

NO_RELATED_ISSUES = "No related past issues found."
EXPERIENCE_SAVED = "Experience saved to the knowledge base."


def tool_declarations() -> List[Dict[str, Any]]:
    """Name, description and JSON schema of each memory tool."""
    return [
        {
            "name": SEARCH_PAST_ISSUES_TOOL,
            "description": (
                "Search for similar problems handled in the past when facing an unclear error "
                "or a complex bug. Returns related past issues and their solutions."
            ),
            "parameters": SearchPastIssuesRequest.model_json_schema(),
        },
        {
            "name": SAVE_EXPERIENCE_TOOL,
            "description": "Save the experience of a successfully solved problem to the knowledge base for future reference.",
            "parameters": SaveExperienceRequest.model_json_schema(),
        },
    ]


class ToolHandler:
    """Dispatches memory tool calls against a store and an embedder."""

    def __init__(self, store: MemoryStore, embedder: IEmbeddingProvider, search_limit: Optional[int] = None):
        self.store = store
        self.embedder = embedder
        self.search_limit = search_limit if search_limit is not None else get_tool_search_limit()
        self.tools: Dict[str, Callable[[Dict[str, Any], OperationContext], ToolResult]] = {
            SEARCH_PAST_ISSUES_TOOL: self._search_past_issues,
            SAVE_EXPERIENCE_TOOL: self._save_experience,
        }

    def handle_tool_call(self, name: str, args: Optional[Dict[str, Any]] = None,
                         ctx: Optional[OperationContext] = None) -> str:
        """
        Execute a tool call and return its JSON-encoded result.

        Args:
            name: Tool name
            args: Tool arguments as decoded from the model's function call
            ctx: Optional context bounding the embedding and store calls
        """
        ctx = ensure_context(ctx)
        handler = self.tools.get(name)

        if handler is None:
            result = ToolResult(success=False, error=f"unknown tool: {name}")
        else:
            result = handler(args or {}, ctx)

        log_tool_call(name, result.success, {"error": result.error} if result.error else None)
        return result.model_dump_json(exclude_none=True)

    def _search_past_issues(self, args: Dict[str, Any], ctx: OperationContext) -> ToolResult:
        try:
            request = SearchPastIssuesRequest(**args)
        except ValidationError:
            return ToolResult(success=False, error="error_description is required")

        try:
            vector = self.embedder.embed_text(request.error_description, ctx)
        except Exception as e:
            return ToolResult(success=False, error=f"failed to generate embedding: {e}")

        try:
            experiences = self.store.search_similar(vector, self.search_limit, ctx)
        except MemoryStoreError as e:
            return ToolResult(success=False, error=f"failed to search issues: {e}")

        if not experiences:
            return ToolResult(success=True, data=NO_RELATED_ISSUES)

        issues = [
            PastIssue(
                id=experience.id,
                pattern=experience.error_pattern,
                cause=experience.root_cause,
                solution=experience.solution_summary,
                similarity=f"{(experience.similarity_score or 0.0) * 100:.2f}%"
            ).model_dump()
            for experience in experiences
        ]
        return ToolResult(success=True, data=issues)

    def _save_experience(self, args: Dict[str, Any], ctx: OperationContext) -> ToolResult:
        try:
            request = SaveExperienceRequest(**args)
        except ValidationError:
            return ToolResult(success=False, error="error_pattern, root_cause, and solution are all required")

        try:
            vector = self.embedder.embed_text(request.error_pattern, ctx)
        except Exception as e:
            return ToolResult(success=False, error=f"failed to generate embedding: {e}")

        try:
            self.store.save_experience(request.error_pattern, request.root_cause, request.solution, vector, ctx)
        except MemoryStoreError as e:
            return ToolResult(success=False, error=f"failed to save experience: {e}")

        return ToolResult(success=True, data=EXPERIENCE_SAVED)
