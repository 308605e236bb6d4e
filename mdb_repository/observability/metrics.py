"""
Operation metrics for MDB_REPOSITORY.

Records duration and outcome of context lifecycle operations (client
construction, database binding, collection drops) in a bounded,
thread-safe collector.
"""

import functools
import inspect
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class OperationMetrics:
    """Aggregated timings for one operation (and tag set)."""

    operation_name: str
    count: int = 0
    total_duration_ms: float = 0.0
    max_duration_ms: float = 0.0
    error_count: int = 0
    last_execution: datetime | None = None

    @property
    def avg_duration_ms(self) -> float:
        return self.total_duration_ms / self.count if self.count > 0 else 0.0

    def record(self, duration_ms: float, success: bool = True) -> None:
        self.count += 1
        self.total_duration_ms += duration_ms
        self.max_duration_ms = max(self.max_duration_ms, duration_ms)
        if not success:
            self.error_count += 1
        self.last_execution = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation_name,
            "count": self.count,
            "avg_duration_ms": round(self.avg_duration_ms, 2),
            "max_duration_ms": round(self.max_duration_ms, 2),
            "error_count": self.error_count,
            "last_execution": (self.last_execution.isoformat() if self.last_execution else None),
        }


class MetricsCollector:
    """
    Collects per-operation metrics.

    Keys combine the operation name with its tags, e.g.
    ``context.drop_collection[collection_name=orderLines]``. The least
    recently used key is evicted once ``max_metrics`` keys exist.
    """

    def __init__(self, max_metrics: int = 1000):
        self._metrics: OrderedDict[str, OperationMetrics] = OrderedDict()
        self._lock = threading.Lock()
        self._max_metrics = max_metrics

    def record_operation(
        self, operation_name: str, duration_ms: float, success: bool = True, **tags: Any
    ) -> None:
        key = operation_name
        if tags:
            tag_str = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
            key = f"{operation_name}[{tag_str}]"

        with self._lock:
            metric = self._metrics.get(key)
            if metric is None:
                if len(self._metrics) >= self._max_metrics:
                    self._metrics.popitem(last=False)
                metric = self._metrics[key] = OperationMetrics(operation_name=operation_name)
            else:
                self._metrics.move_to_end(key)
            metric.record(duration_ms, success)

    def get_metrics(self, operation_name: str | None = None) -> dict[str, Any]:
        """Snapshot of all metrics, optionally filtered by operation name prefix."""
        with self._lock:
            metrics = {
                k: v.to_dict()
                for k, v in self._metrics.items()
                if operation_name is None or k.startswith(operation_name)
            }
        return {"timestamp": datetime.now().isoformat(), "metrics": metrics}

    def get_operation_count(self, operation_name: str) -> int:
        """Total executions of an operation across all tag sets."""
        with self._lock:
            return sum(
                m.count for m in self._metrics.values() if m.operation_name == operation_name
            )

    def reset(self) -> None:
        with self._lock:
            self._metrics.clear()


_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get or create the global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector


def record_operation(
    operation_name: str, duration_ms: float, success: bool = True, **tags: Any
) -> None:
    """Record an operation in the global metrics collector."""
    get_metrics_collector().record_operation(operation_name, duration_ms, success, **tags)


def timed_operation(operation_name: str, **tags: Any):
    """
    Decorator that times a sync or async callable and records the outcome.

    Usage:
        @timed_operation("repository.add_one")
        async def add_one(self, document):
            ...
    """

    def decorator(func: Callable) -> Callable:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start_time = time.time()
                success = False
                try:
                    result = await func(*args, **kwargs)
                    success = True
                    return result
                finally:
                    duration_ms = (time.time() - start_time) * 1000
                    record_operation(operation_name, duration_ms, success, **tags)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            start_time = time.time()
            success = False
            try:
                result = func(*args, **kwargs)
                success = True
                return result
            finally:
                duration_ms = (time.time() - start_time) * 1000
                record_operation(operation_name, duration_ms, success, **tags)

        return sync_wrapper

    return decorator
