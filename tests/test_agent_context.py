"""
Agent context assembly from semantic and episodic memory.
"""

from tiered_memory.agents.context import AgentContext
from tiered_memory.agents.ingestion import FunctionCall, Part, scan_conversation
from tiered_memory.core.service import MemoryService


def test_session_history_feeds_ingestion():
    context = AgentContext()
    context.add_user_message("Why is the cache stale?")
    context.add_model_response(Part(text="The TTL is never refreshed on write."))

    scan = scan_conversation(context.session_history)

    assert scan.query == "Why is the cache stale?"
    assert scan.response == "The TTL is never refreshed on write."


def test_model_response_with_tool_call():
    context = AgentContext()
    context.add_model_response(Part(function_call=FunctionCall(name="save_experience")))

    assert scan_conversation(context.session_history).explicit_save


def test_load_rules(store):
    store.seed_rules([("STYLE", "doc every export", 1), ("SECURITY", "no secrets", 2)])
    context = AgentContext()

    context.load_rules(store)

    assert context.global_rules == ["no secrets", "doc every export"]


def test_recall_populates_relevant_history(store, hash_embedder):
    store.save_experience("flaky test on CI", "shared temp dir", "use tmp_path", hash_embedder.embed_text("flaky test on CI"))
    context = AgentContext()

    context.recall(MemoryService(store, hash_embedder), "flaky test on CI")

    assert [e.error_pattern for e in context.relevant_history] == ["flaky test on CI"]


def test_clear_history_keeps_rules():
    context = AgentContext(global_rules=["rule"])
    context.add_user_message("hi")
    context.relevant_history = ["something"]

    context.clear_history()

    assert context.global_rules == ["rule"]
    assert context.session_history == []
    assert context.relevant_history == []
