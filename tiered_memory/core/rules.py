"""
Semantic memory - project rule ordering.
Rules are read from the backend and ordered here, never by backend default order.
"""

from typing import Iterable, List, Tuple

from .schema import ProjectRule


def rule_sort_key(rule: ProjectRule) -> Tuple[int, str, int]:
    """Total order: priority descending, then category, then id (insertion order)."""
    rule_id = rule.id if rule.id is not None else 0
    return (-rule.priority, rule.category, rule_id)


def order_active_rules(rules: Iterable[ProjectRule]) -> List[ProjectRule]:
    """Drop inactive rules and sort the rest for deterministic presentation."""
    return sorted((rule for rule in rules if rule.is_active), key=rule_sort_key)


def rule_texts(rules: Iterable[ProjectRule]) -> List[str]:
    """Rule contents in the order given."""
    return [rule.rule_content for rule in rules]


# Sample rules for a fresh database
SAMPLE_RULES = [
    ("STYLE", "Do not use defer inside loops", 1),
    ("STYLE", "Every exported function must have a doc comment", 1),
    ("SECURITY", "Never hard-code secrets or passwords in source code", 2),
    ("ARCHITECTURE", "Database access must go through the repository layer", 1),
    ("ARCHITECTURE", "HTTP handlers must not call the database directly", 1),
]
