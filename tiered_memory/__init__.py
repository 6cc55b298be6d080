"""
tiered_memory - semantic and episodic memory for a coding assistant.

Semantic memory holds static, priority-ordered project rules; episodic
memory holds problem/solution records retrieved by embedding similarity.
"""

__version__ = "1.0.0"
