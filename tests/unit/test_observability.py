"""
Unit tests for metrics collection and contextual logging.
"""

import logging
import threading

import pytest

from mdb_repository.observability import (
    MetricsCollector,
    clear_correlation_id,
    clear_scope_context,
    get_logger,
    get_logging_context,
    get_metrics_collector,
    set_correlation_id,
    set_scope_context,
    timed_operation,
)


class TestMetricsCollector:
    """Test metric aggregation."""

    def test_concurrent_record_operation(self):
        collector = MetricsCollector()
        num_threads = 8
        per_thread = 50
        barrier = threading.Barrier(num_threads)

        def record():
            barrier.wait()
            for _ in range(per_thread):
                collector.record_operation("context.bind", duration_ms=1.0)

        threads = [threading.Thread(target=record) for _ in range(num_threads)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert collector.get_operation_count("context.bind") == num_threads * per_thread

    def test_tags_split_keys(self):
        collector = MetricsCollector()
        collector.record_operation("context.drop_collection", 2.0, collection_name="a")
        collector.record_operation("context.drop_collection", 4.0, collection_name="b")

        metrics = collector.get_metrics("context.drop_collection")["metrics"]

        assert set(metrics) == {
            "context.drop_collection[collection_name=a]",
            "context.drop_collection[collection_name=b]",
        }
        assert collector.get_operation_count("context.drop_collection") == 2

    def test_lru_eviction(self):
        collector = MetricsCollector(max_metrics=2)
        collector.record_operation("op.a", 1.0)
        collector.record_operation("op.b", 1.0)
        collector.record_operation("op.a", 1.0)
        collector.record_operation("op.c", 1.0)

        assert set(collector.get_metrics()["metrics"]) == {"op.a", "op.c"}

    def test_error_count(self):
        collector = MetricsCollector()
        collector.record_operation("op", 1.0, success=False)
        collector.record_operation("op", 3.0)

        metric = collector.get_metrics("op")["metrics"]["op"]
        assert metric["error_count"] == 1
        assert metric["avg_duration_ms"] == 2.0
        assert metric["max_duration_ms"] == 3.0


class TestTimedOperation:
    """Test the timing decorator."""

    def test_sync_success(self):
        @timed_operation("test.sync")
        def work():
            return 42

        assert work() == 42
        assert get_metrics_collector().get_operation_count("test.sync") == 1

    def test_sync_failure(self):
        @timed_operation("test.sync_fail")
        def work():
            raise ValueError("nope")

        with pytest.raises(ValueError):
            work()

        metric = get_metrics_collector().get_metrics("test.sync_fail")["metrics"]["test.sync_fail"]
        assert metric["error_count"] == 1

    @pytest.mark.asyncio
    async def test_async_success(self):
        @timed_operation("test.async")
        async def work():
            return "done"

        assert work.__name__ == "work"
        assert await work() == "done"
        assert get_metrics_collector().get_operation_count("test.async") == 1


class TestContextualLogging:
    """Test correlation ID and scope propagation."""

    def test_scope_and_correlation_in_context(self):
        correlation_id = set_correlation_id()
        set_scope_context(database_name="shop", partition_key="acme")
        try:
            context = get_logging_context()
        finally:
            clear_correlation_id()
            clear_scope_context()

        assert context["correlation_id"] == correlation_id
        assert context["database_name"] == "shop"
        assert context["partition_key"] == "acme"

    def test_none_values_are_dropped(self):
        set_scope_context(database_name="shop")
        try:
            assert "partition_key" not in get_logging_context()
        finally:
            clear_scope_context()

    def test_adapter_adds_extra(self, caplog):
        logger = get_logger("mdb_repository.tests")
        set_scope_context(partition_key="acme")
        try:
            with caplog.at_level(logging.INFO, logger="mdb_repository.tests"):
                logger.info("hello", extra={"collection_name": "orderLines"})
        finally:
            clear_scope_context()

        record = caplog.records[-1]
        assert record.partition_key == "acme"
        assert record.collection_name == "orderLines"
