"""
Structured logging for memory operations.
Store reads/writes, similarity searches, ingestion decisions and embedding calls.
"""

import logging
from typing import Any, Dict, List

# Free text in log details is clipped to this many characters
DETAIL_TEXT_LIMIT = 50


def _clip(text: str, limit: int = DETAIL_TEXT_LIMIT) -> str:
    return text[:limit] + "..." if len(text) > limit else text


class StructuredLogger:
    """Structured logger for store, search, ingestion and embedding operations."""

    def __init__(self, name: str = "tiered_memory"):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None,
                      level: int = logging.INFO):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.log(level, message)

    def log_store_operation(self, operation: str, backend: str, details: Dict[str, Any] = None,
                            status: str = "success"):
        """Log a store read or write."""
        log_details = {"backend": backend}
        if details:
            log_details.update(details)

        level = logging.ERROR if status == "failed" else logging.INFO
        self.log_operation(f"store.{operation}", status, log_details, level)

    def log_experience_saved(self, backend: str, signature: str, dimension: int = None):
        """Log a persisted experience record."""
        details = {"signature": _clip(signature)}
        if dimension is not None:
            details["dimension"] = dimension

        self.log_store_operation("save_experience", backend, details)

    def log_search(self, backend: str, limit: int, candidates: int, returned: int, skipped: int = 0):
        """Log a similarity search and how many candidates took part."""
        details = {
            "limit": limit,
            "candidates": candidates,
            "returned": returned,
        }
        if skipped:
            details["skipped"] = skipped

        self.log_store_operation("search_similar", backend, details)

    def log_ingestion_decision(self, state: str, saved: bool, reason: str, query: str = None):
        """Log the outcome of scanning a conversation for an experience."""
        details = {"state": state, "saved": saved, "reason": reason}
        if query is not None:
            details["query"] = _clip(query)

        self.log_operation("ingestion.decision", "saved" if saved else "skipped", details)

    def log_embedding(self, provider: str, text: str, dimension: int = None, status: str = "success",
                      error: str = None):
        """Log an embedding call."""
        details = {"provider": provider, "text": _clip(text)}
        if dimension is not None:
            details["dimension"] = dimension
        if error:
            details["error"] = error[:100]

        level = logging.ERROR if status == "failed" else logging.DEBUG
        self.log_operation("embedding", status, details, level)

    def log_tool_call(self, tool: str, success: bool, details: Dict[str, Any] = None):
        """Log an agent tool invocation."""
        log_details = {"tool": tool}
        if details:
            log_details.update(details)

        self.log_operation(f"tool.{tool}", "success" if success else "failed", log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()


def sanitize_details(details: Any, limit: int = 100) -> Any:
    """Clip long strings inside nested log payloads."""
    if isinstance(details, dict):
        return {k: sanitize_details(v, limit) for k, v in details.items()}
    elif isinstance(details, str):
        return _clip(details, limit)
    elif isinstance(details, list):
        return [sanitize_details(item, limit) for item in details]
    else:
        return details


def log_tool_call(tool: str, success: bool, details: Dict[str, Any] = None):
    """Log an agent tool invocation with sanitized details."""
    logger.log_tool_call(tool, success, sanitize_details(details) if details else None)


def log_rules_loaded(backend: str, rules: List[str]):
    """Log how many project rules were loaded for prompt injection."""
    logger.log_store_operation("get_active_rules", backend, {"count": len(rules)})
