"""
Memory tool handlers: search_past_issues and save_experience.
"""

import json
from unittest.mock import MagicMock

import pytest

from tiered_memory.agents.tools import (
    EXPERIENCE_SAVED,
    NO_RELATED_ISSUES,
    ToolHandler,
    tool_declarations,
)
from tiered_memory.core.errors import EmbeddingError, StoreQueryError


@pytest.fixture
def handler(store, hash_embedder):
    return ToolHandler(store, hash_embedder)


def call(handler, name, args=None):
    return json.loads(handler.handle_tool_call(name, args))


class TestSearchPastIssues:
    def test_no_history(self, handler):
        result = call(handler, "search_past_issues", {"error_description": "segfault in parser"})

        assert result == {"success": True, "data": NO_RELATED_ISSUES}

    def test_returns_formatted_matches(self, handler, store, hash_embedder):
        store.save_experience("segfault in parser", "buffer overrun", "bounds check the lexer",
                              hash_embedder.embed_text("segfault in parser"))

        result = call(handler, "search_past_issues", {"error_description": "segfault in parser"})

        assert result["success"]
        issue = result["data"][0]
        assert issue["pattern"] == "segfault in parser"
        assert issue["cause"] == "buffer overrun"
        assert issue["solution"] == "bounds check the lexer"
        assert issue["similarity"] == "100.00%"
        assert isinstance(issue["id"], int)

    def test_at_most_three_results(self, handler, store, hash_embedder):
        for i in range(5):
            store.save_experience(f"error {i}", "", "fix", hash_embedder.embed_text(f"error {i}"))

        result = call(handler, "search_past_issues", {"error_description": "error"})

        assert len(result["data"]) == 3

    @pytest.mark.parametrize("args", [{}, {"error_description": ""}, {"error_description": "   "}])
    def test_description_required(self, handler, args):
        result = call(handler, "search_past_issues", args)

        assert result == {"success": False, "error": "error_description is required"}

    def test_store_failure_reported(self, hash_embedder):
        mock_store = MagicMock()
        mock_store.search_similar.side_effect = StoreQueryError("db offline")

        result = call(ToolHandler(mock_store, hash_embedder), "search_past_issues", {"error_description": "x"})

        assert not result["success"]
        assert result["error"].startswith("failed to search issues")


class TestSaveExperience:
    def test_saves_with_root_cause(self, handler, store):
        result = call(handler, "save_experience", {
            "error_pattern": "deadlock in worker pool",
            "root_cause": "lock order inversion",
            "solution": "acquire locks in a fixed order",
        })

        assert result == {"success": True, "data": EXPERIENCE_SAVED}
        saved = call(handler, "search_past_issues", {"error_description": "deadlock in worker pool"})["data"][0]
        assert saved["cause"] == "lock order inversion"

    def test_embeds_the_pattern(self, store):
        embedder = MagicMock()
        embedder.embed_text.return_value = [1.0, 0.0]

        ToolHandler(store, embedder).handle_tool_call("save_experience", {
            "error_pattern": "the pattern", "root_cause": "c", "solution": "s"
        })

        assert embedder.embed_text.call_args.args[0] == "the pattern"

    @pytest.mark.parametrize("missing", ["error_pattern", "root_cause", "solution"])
    def test_all_fields_required(self, handler, store, missing):
        args = {"error_pattern": "p", "root_cause": "c", "solution": "s"}
        args[missing] = ""

        result = call(handler, "save_experience", args)

        assert result == {"success": False, "error": "error_pattern, root_cause, and solution are all required"}
        assert store.count_experiences() == 0

    def test_embedding_failure_reported(self, store):
        embedder = MagicMock()
        embedder.embed_text.side_effect = EmbeddingError("model not pulled")

        result = call(ToolHandler(store, embedder), "save_experience",
                      {"error_pattern": "p", "root_cause": "c", "solution": "s"})

        assert result["error"] == "failed to generate embedding: model not pulled"
        assert store.count_experiences() == 0

    def test_unexpected_embedder_error_reported(self, store):
        embedder = MagicMock()
        embedder.embed_text.side_effect = RuntimeError("embedding backend offline")

        result = call(ToolHandler(store, embedder), "save_experience",
                      {"error_pattern": "p", "root_cause": "c", "solution": "s"})

        assert result == {"success": False, "error": "failed to generate embedding: embedding backend offline"}
        assert store.count_experiences() == 0


def test_search_with_failing_embedder_returns_result(store):
    embedder = MagicMock()
    embedder.embed_text.side_effect = RuntimeError("embedding backend offline")

    result = call(ToolHandler(store, embedder), "search_past_issues", {"error_description": "boom"})

    assert result == {"success": False, "error": "failed to generate embedding: embedding backend offline"}


def test_unknown_tool(handler):
    assert call(handler, "read_file_content", {"filepath": "main.go"}) == {
        "success": False,
        "error": "unknown tool: read_file_content",
    }


def test_tool_declarations():
    declarations = {d["name"]: d for d in tool_declarations()}

    assert set(declarations) == {"search_past_issues", "save_experience"}
    assert declarations["search_past_issues"]["parameters"]["required"] == ["error_description"]
    assert set(declarations["save_experience"]["parameters"]["required"]) == {
        "error_pattern", "root_cause", "solution"
    }
