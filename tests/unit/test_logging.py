"""Unit tests for taskboard logging and observability.

This module tests the logging infrastructure, performance monitoring,
and observability hooks.
"""

import json
import logging
import sys

import pytest

from taskboard.board_logging import (
    JsonFormatter,
    ObservabilityHooks,
    PerformanceMonitor,
    log_error_with_context,
    log_operation,
    log_performance,
    performance_monitor,
    setup_logging,
)


@pytest.fixture
def clean_monitor():
    performance_monitor.reset()
    yield performance_monitor
    performance_monitor.reset()


@pytest.fixture
def taskboard_logger():
    logger = logging.getLogger("taskboard")
    saved_handlers = list(logger.handlers)
    saved_level = logger.level
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)


class TestJsonFormatter:
    """Test cases for JsonFormatter."""

    def test_json_formatter_basic(self):
        """Test basic JSON formatting."""
        formatter = JsonFormatter()
        record = logging.getLogger("test").makeRecord("test", logging.INFO, __file__, 1, "Test message", (), None)

        data = json.loads(formatter.format(record))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert "function" in data

    def test_json_formatter_with_extra_fields(self):
        """Test JSON formatting with extra fields."""
        formatter = JsonFormatter()
        record = logging.getLogger("test").makeRecord("test", logging.INFO, __file__, 1, "Test message", (), None)
        record.extra_fields = {"slug": "demo", "task_id": 3}

        data = json.loads(formatter.format(record))

        assert data["slug"] == "demo"
        assert data["task_id"] == 3

    def test_json_formatter_with_exception(self):
        """Test JSON formatting with exception info."""
        formatter = JsonFormatter()
        try:
            raise ValueError("Test exception")
        except ValueError:
            record = logging.getLogger("test").makeRecord(
                "test", logging.ERROR, __file__, 1, "Test message", (), sys.exc_info()
            )

        data = json.loads(formatter.format(record))

        assert data["level"] == "ERROR"
        assert "ValueError" in data["exception"]


class TestPerformanceMonitor:
    """Test cases for PerformanceMonitor."""

    def test_record_and_get_metrics(self):
        monitor = PerformanceMonitor()
        monitor.record_metric("metric1", 1)
        monitor.record_metric("metric2", 2, {"tag": "x"})
        monitor.record_metric("metric1", 3)

        assert [m["value"] for m in monitor.get_metrics()["metric1"]] == [1, 3]
        assert monitor.get_metrics("metric2")["metric2"][0]["tags"] == {"tag": "x"}
        assert monitor.get_metrics("missing") == {"missing": []}

    def test_reset(self):
        monitor = PerformanceMonitor()
        monitor.record_metric("metric1", 1)
        monitor.reset()

        assert monitor.get_metrics() == {}

    def test_samples_are_bounded_per_metric(self):
        monitor = PerformanceMonitor(max_samples=3)
        for value in range(5):
            monitor.record_metric("metric1", value)
        monitor.record_metric("metric2", "only")

        assert [m["value"] for m in monitor.get_metrics("metric1")["metric1"]] == [2, 3, 4]
        assert len(monitor.get_metrics()["metric2"]) == 1


class TestLogPerformance:
    """Test cases for the log_performance decorator."""

    def test_success_records_duration(self, clean_monitor):
        @log_performance("sample_operation")
        def sample():
            return "result"

        assert sample() == "result"
        metrics = clean_monitor.get_metrics("sample_operation_duration")["sample_operation_duration"]
        assert len(metrics) == 1
        assert metrics[0]["value"] >= 0
        assert metrics[0]["tags"]["status"] == "success"

    def test_failure_records_error_type(self, clean_monitor):
        @log_performance("sample_operation")
        def sample():
            raise ValueError("Test error")

        with pytest.raises(ValueError):
            sample()

        metrics = clean_monitor.get_metrics("sample_operation_duration")["sample_operation_duration"]
        assert metrics[0]["tags"] == {"status": "error", "error_type": "ValueError"}

    def test_store_operations_are_timed(self, store, clean_monitor):
        store.create_project("Timed")
        assert clean_monitor.get_metrics("create_project_duration")["create_project_duration"]


class TestLogOperation:
    """Test cases for the log_operation context manager."""

    def test_success(self, caplog):
        with caplog.at_level(logging.INFO, logger="taskboard.operations"):
            with log_operation("add_task", slug="demo"):
                pass

        record = caplog.records[-1]
        assert "Completed operation: add_task" in record.getMessage()
        assert record.extra_fields["slug"] == "demo"
        assert record.extra_fields["status"] == "completed"

    def test_failure_is_logged_and_reraised(self, caplog):
        with caplog.at_level(logging.INFO, logger="taskboard.operations"):
            with pytest.raises(ValueError):
                with log_operation("add_task", slug="demo"):
                    raise ValueError("Test error")

        record = caplog.records[-1]
        assert "Test error" in record.getMessage()
        assert record.extra_fields["status"] == "failed"
        assert record.extra_fields["error_type"] == "ValueError"


class TestObservabilityHooks:
    """Test cases for ObservabilityHooks."""

    def test_register_and_trigger(self):
        hooks = ObservabilityHooks()
        received = []
        hooks.register_hook("task_added", lambda **data: received.append(data))

        hooks.trigger_hooks("task_added", slug="demo")

        assert received == [{"slug": "demo"}]

    def test_unregister(self):
        hooks = ObservabilityHooks()
        received = []

        def callback(**data):
            received.append(data)

        hooks.register_hook("task_added", callback)
        hooks.unregister_hook("task_added", callback)
        hooks.trigger_hooks("task_added", slug="demo")

        assert received == []

    def test_failing_hook_does_not_raise(self):
        hooks = ObservabilityHooks()
        after = []

        def failing(**data):
            raise RuntimeError("Hook failed")

        hooks.register_hook("task_added", failing)
        hooks.register_hook("task_added", lambda **data: after.append(True))
        hooks.trigger_hooks("task_added", slug="demo")

        assert after == [True]

    def test_log_store_event_adds_slug_and_timestamp(self):
        hooks = ObservabilityHooks()
        received = []
        hooks.register_hook("task_deleted", lambda **data: received.append(data))

        hooks.log_store_event("task_deleted", "demo", task_id=2)

        assert received[0]["slug"] == "demo"
        assert received[0]["task_id"] == 2
        assert "timestamp" in received[0]


class TestErrorLogging:
    """Test cases for log_error_with_context."""

    def test_context_is_attached(self, caplog):
        with caplog.at_level(logging.WARNING, logger="taskboard.errors"):
            log_error_with_context(ValueError("Test error"), {"operation": "add_task", "slug": "demo"}, attempt=1)

        record = caplog.records[-1]
        assert "Error in add_task: Test error" == record.getMessage()
        assert record.extra_fields["error_type"] == "ValueError"
        assert record.extra_fields["context"]["slug"] == "demo"
        assert record.extra_fields["attempt"] == 1


class TestSetupLogging:
    """Integration tests for setup_logging."""

    def test_file_handler_writes_json(self, tmp_path, taskboard_logger):
        log_file = tmp_path / "taskboard.log"
        setup_logging(log_level=logging.DEBUG, log_file=log_file)

        logging.getLogger("taskboard.test").info("Test message")
        for handler in taskboard_logger.handlers:
            handler.flush()

        lines = log_file.read_text(encoding="utf-8").strip().splitlines()
        entries = [json.loads(line) for line in lines]
        assert any(entry["message"] == "Test message" for entry in entries)
        assert len(taskboard_logger.handlers) == 2
