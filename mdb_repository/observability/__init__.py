"""
Observability components.

Provides contextual logging and operation metrics.
"""

from .logging import (
    ContextualLoggerAdapter,
    clear_correlation_id,
    clear_scope_context,
    get_correlation_id,
    get_logger,
    get_logging_context,
    set_correlation_id,
    set_scope_context,
)
from .metrics import (
    MetricsCollector,
    OperationMetrics,
    get_metrics_collector,
    record_operation,
    timed_operation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "OperationMetrics",
    "get_metrics_collector",
    "record_operation",
    "timed_operation",
    # Logging
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "set_scope_context",
    "clear_scope_context",
    "get_logging_context",
    "ContextualLoggerAdapter",
    "get_logger",
]
