"""
Contextual logging utilities for MDB_REPOSITORY.

Adds a correlation ID and the current data scope (database, partition key)
to every record logged through ``get_logger``.
"""

import contextvars
import logging
import uuid
from datetime import datetime
from typing import Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

_scope_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "scope_context", default=None
)


def get_correlation_id() -> str | None:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set a correlation ID in the current context.

    Args:
        correlation_id: Optional correlation ID (generates new one if None)

    Returns:
        The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    """Clear the correlation ID from context."""
    _correlation_id.set(None)


def set_scope_context(
    database_name: str | None = None, partition_key: str | None = None, **kwargs: Any
) -> None:
    """
    Set the data scope for logging, e.g. the tenant handled by a request.

    Args:
        database_name: Database the current work targets
        partition_key: Partition (tenant) key the current work targets
        **kwargs: Additional context (document_type, user_id, etc.)
    """
    context = {"database_name": database_name, "partition_key": partition_key, **kwargs}
    _scope_context.set({k: v for k, v in context.items() if v is not None})


def clear_scope_context() -> None:
    """Clear the data scope context."""
    _scope_context.set(None)


def get_logging_context() -> dict[str, Any]:
    """Get current logging context (timestamp, correlation ID and scope)."""
    context: dict[str, Any] = {
        "timestamp": datetime.now().isoformat(),
    }

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    scope_context = _scope_context.get()
    if scope_context:
        context.update(scope_context)

    return context


class ContextualLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that merges the logging context into ``extra``."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = get_logging_context()

        extra = kwargs.get("extra", {})
        if extra:
            context.update(extra)

        kwargs["extra"] = context
        return msg, kwargs


def get_logger(name: str) -> ContextualLoggerAdapter:
    """
    Get a contextual logger that automatically adds correlation ID and scope.

    Args:
        name: Logger name (typically __name__)
    """
    return ContextualLoggerAdapter(logging.getLogger(name), {})
