"""
Agent-facing layer - conversation ingestion, context assembly and tool handlers.
"""
