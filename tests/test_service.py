"""
Memory service: recall rendering, session ingestion and degraded modes.
"""

from unittest.mock import MagicMock

import pytest

from tiered_memory.agents.ingestion import IngestionState, Turn
from tiered_memory.core.errors import EmbeddingError
from tiered_memory.core.schema import Experience
from tiered_memory.core.service import MemoryService, render_experience


def experience(pattern="", cause="", solution="", score=0.9):
    return Experience(id=1, task_signature=pattern[:50], error_pattern=pattern, root_cause=cause,
                      solution_summary=solution, similarity_score=score)


class TestRender:
    def test_all_sections(self):
        text = render_experience(experience("panic", "nil map", "make()"))
        assert text == "Problem: panic\nCause: nil map\nSolution: make()"

    def test_empty_sections_omitted(self):
        assert render_experience(experience("panic", "", "make()")) == "Problem: panic\nSolution: make()"

    def test_nothing_to_render(self):
        assert render_experience(experience()) == ""


class TestSearch:
    def test_search_returns_system_entries(self, store, make_embedder):
        embedder = make_embedder({"nil map": [1.0, 0.0, 0.0]})
        store.save_experience("assignment to entry in nil map", "map never made", "call make()", [1.0, 0.0, 0.0])
        service = MemoryService(store, embedder)

        entries = service.search("nil map")

        assert len(entries) == 1
        assert entries[0].author == "system"
        assert entries[0].content.startswith("Problem: assignment to entry in nil map")
        assert entries[0].timestamp is not None

    def test_records_without_content_are_skipped(self, fixed_embedder):
        mock_store = MagicMock()
        mock_store.search_similar.return_value = [experience(), experience("p", "", "s")]

        entries = MemoryService(mock_store, fixed_embedder).search("anything")

        assert [e.content for e in entries] == ["Problem: p\nSolution: s"]

    def test_default_limit(self, fixed_embedder):
        mock_store = MagicMock()
        mock_store.search_similar.return_value = []

        MemoryService(mock_store, fixed_embedder).search("q")

        assert mock_store.search_similar.call_args.args[1] == 10

    def test_without_embedder_returns_empty(self):
        mock_store = MagicMock()

        assert MemoryService(mock_store).search("anything") == []
        mock_store.search_similar.assert_not_called()

    def test_embedding_failure_is_wrapped(self):
        embedder = MagicMock()
        embedder.embed_text.side_effect = ConnectionError("ollama down")

        with pytest.raises(EmbeddingError):
            MemoryService(MagicMock(), embedder).search("q")


class TestAddSession:
    def test_session_is_ingested(self, store, hash_embedder):
        service = MemoryService(store, hash_embedder)

        outcome = service.add_session([
            Turn.from_text("user", "Why does the build fail on CI only?"),
            Turn.from_text("model", "CI uses a clean module cache; run go mod tidy and commit go.sum."),
        ])

        assert outcome.saved
        assert store.count_experiences() == 1

    def test_without_embedder_nothing_is_saved(self):
        mock_store = MagicMock()

        outcome = MemoryService(mock_store).add_session([
            Turn.from_text("user", "question"),
            Turn.from_text("model", "a long enough answer for ingestion"),
        ])

        assert outcome.state is IngestionState.DONE
        assert outcome.reason == "no embedder configured"
        mock_store.save_experience.assert_not_called()

    def test_custom_response_threshold(self, fixed_embedder):
        mock_store = MagicMock()
        service = MemoryService(mock_store, fixed_embedder, min_response_length=5)

        assert service.add_session([Turn.from_text("user", "q"), Turn.from_text("model", "short!")]).saved


def test_rules_and_close(store):
    store.seed_rules([("STYLE", "b", 1), ("SECURITY", "a", 2)])
    service = MemoryService(store)

    assert service.get_active_rules() == ["a", "b"]
    assert [r.rule_content for r in service.get_rules()] == ["a", "b"]
    service.close()
