"""
Record types for semantic memory (project rules) and episodic memory (experiences).
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import numpy as np


@dataclass
class Experience:
    """A past issue and how it was resolved."""
    id: Optional[int]
    task_signature: str
    error_pattern: str
    root_cause: str
    solution_summary: str
    # float32 vector, None when the record was saved without an embedding
    embedding: Optional[np.ndarray] = field(default=None, repr=False, compare=False)
    # Only populated on search results, range [-1, 1]
    similarity_score: Optional[float] = None
    occurred_at: Optional[datetime] = None


@dataclass
class ProjectRule:
    """A static project rule injected into downstream prompts."""
    id: Optional[int]
    category: str
    rule_content: str
    priority: int = 1
    is_active: bool = True
    created_at: Optional[datetime] = None
