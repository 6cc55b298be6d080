#!/usr/bin/env python3
"""
Search episodic memory from the shell.

Embeds the query with the configured provider and prints the most similar
past experiences, best first.
"""

import argparse
import json
import logging
import sys

from tiered_memory.core.config import debug_enabled, get_memory_service, get_search_limit, validate_config
from tiered_memory.core.context import OperationContext
from tiered_memory.core.errors import MemoryStoreError
from tiered_memory.util.logging import logger


def main():
    parser = argparse.ArgumentParser(
        description="Find past issues similar to a query",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s "nil pointer dereference in handler"
  %(prog)s "connection refused" --limit 3 --json
  %(prog)s "timeout" --rules     # Also print the active project rules
        """
    )

    parser.add_argument("query", help="Free-text description of the problem")

    parser.add_argument(
        "--limit", "-k",
        type=int,
        default=get_search_limit(),
        help="Maximum number of results (default: SEARCH_LIMIT or 10)"
    )

    parser.add_argument(
        "--rules", "-r",
        action="store_true",
        help="Print the active project rules before the results"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=60.0,
        help="Seconds allowed for embedding plus search (default: 60)"
    )

    args = parser.parse_args()

    if debug_enabled():
        logger.logger.setLevel(logging.DEBUG)

    issues = validate_config()
    if issues:
        for issue in issues:
            print(f"ERROR: {issue}")
        return 1

    ctx = OperationContext.with_timeout(args.timeout)

    try:
        service = get_memory_service(ctx=ctx, search_limit=args.limit)
    except (MemoryStoreError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    try:
        rules = service.get_active_rules(ctx) if args.rules else []
        experiences = service.search_experiences(args.query, ctx=ctx)
    except MemoryStoreError as e:
        print(f"ERROR: Search failed: {e}")
        return 1
    finally:
        service.close()

    if args.json:
        print(json.dumps({
            "rules": rules,
            "results": [
                {
                    "id": exp.id,
                    "signature": exp.task_signature,
                    "pattern": exp.error_pattern,
                    "cause": exp.root_cause,
                    "solution": exp.solution_summary,
                    "similarity": exp.similarity_score,
                    "occurred_at": exp.occurred_at.isoformat() if exp.occurred_at else None,
                }
                for exp in experiences
            ]
        }, indent=2, ensure_ascii=False))
        return 0

    if rules:
        print("Project rules:")
        for rule in rules:
            print(f"  - {rule}")
        print()

    if not experiences:
        print("No related past issues found.")
        return 0

    for position, exp in enumerate(experiences, 1):
        print(f"{position}. [{exp.similarity_score:.3f}] {exp.task_signature}")
        if exp.root_cause:
            print(f"   Cause: {exp.root_cause}")
        print(f"   Solution: {exp.solution_summary}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
