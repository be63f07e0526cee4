#!/usr/bin/env python3

"""Unit tests for logging setup, timing and progress tracking."""

import logging

import pytest

from dwarf_struct_query.infrastructure.logging import (
    LoggerSetup,
    ProgressTracker,
    get_logger,
    log_timing,
)


class TestLoggerSetup:
    """Tests for LoggerSetup."""

    @pytest.mark.unit
    def test_console_only(self, clean_logging) -> None:
        """Test that no file handler is attached without a log directory."""
        LoggerSetup.initialize(None, verbose=False)

        handlers = logging.getLogger().handlers
        assert LoggerSetup.is_initialized()
        assert LoggerSetup.get_log_file_path() is None
        assert len(handlers) == 1
        assert handlers[0].level == logging.INFO

    @pytest.mark.unit
    def test_verbose_console(self, clean_logging) -> None:
        """Test that verbose mode lowers the console level to DEBUG."""
        LoggerSetup.initialize(None, verbose=True)
        assert logging.getLogger().handlers[0].level == logging.DEBUG

    @pytest.mark.unit
    def test_file_handler(self, clean_logging, tmp_path) -> None:
        """Test that a timestamped log file is created in the log directory."""
        log_dir = tmp_path / "logs"
        LoggerSetup.initialize(log_dir, verbose=False)
        get_logger("dwarf_struct_query.test").debug("written to file only")

        log_file = LoggerSetup.get_log_file_path()
        assert log_file is not None
        assert log_file.parent == log_dir
        assert log_file.name.startswith("struct_query_")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text(encoding="utf-8")

    @pytest.mark.unit
    def test_initialize_is_idempotent(self, clean_logging) -> None:
        """Test that a second initialize does not add handlers."""
        LoggerSetup.initialize(None)
        LoggerSetup.initialize(None, verbose=True)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert handlers[0].level == logging.INFO


class TestLogTiming:
    """Tests for the log_timing decorator."""

    @pytest.mark.unit
    def test_returns_result_and_logs(self, caplog) -> None:
        """Test that the wrapped result is returned and timing is logged."""

        @log_timing
        def add(a: int, b: int) -> int:
            return a + b

        with caplog.at_level(logging.DEBUG):
            assert add(2, 3) == 5
        assert "Completed" in caplog.text
        assert add.__name__ == "add"

    @pytest.mark.unit
    def test_slow_completion_logged_at_info(self, caplog) -> None:
        """Test that exceeding the threshold raises the completion level."""

        @log_timing(slow_seconds=-1.0)
        def slow() -> str:
            return "done"

        with caplog.at_level(logging.INFO):
            assert slow() == "done"
        completed = [r for r in caplog.records if r.getMessage().startswith("Completed")]
        assert completed and completed[0].levelno == logging.INFO

    @pytest.mark.unit
    def test_logs_and_reraises(self, caplog) -> None:
        """Test that failures are logged and propagated."""

        @log_timing
        def fail() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError):
            fail()
        assert "Failed" in caplog.text


class TestProgressTracker:
    """Tests for ProgressTracker."""

    @pytest.fixture
    def tracker(self) -> ProgressTracker:
        return ProgressTracker(get_logger("dwarf_struct_query.test"))

    @pytest.mark.unit
    def test_counts(self, tracker) -> None:
        """Test aggregate, function and invalid counters."""
        tracker.count_aggregate(3)
        tracker.count_aggregate(2)
        tracker.count_function()
        tracker.count_invalid("unknown kind")
        tracker.count_invalid("unknown kind")
        tracker.count_invalid("bad offset")

        assert tracker.aggregate_count == 2
        assert tracker.member_count == 5
        assert tracker.function_count == 1
        assert tracker.invalid_count == 3
        assert tracker.invalid_reasons.most_common(1) == [("unknown kind", 2)]

    @pytest.mark.unit
    def test_operation_context(self, tracker) -> None:
        """Test nested operation context strings."""
        assert tracker.get_current_context() == "idle"
        with tracker.track_operation("load"):
            with tracker.track_operation("aggregates"):
                assert tracker.get_current_context() == "load → aggregates"
        assert tracker.get_current_context() == "idle"

    @pytest.mark.unit
    def test_failed_operation_is_logged(self, tracker, caplog) -> None:
        """Test that an exception inside an operation is logged and re-raised."""
        with pytest.raises(KeyError):
            with tracker.track_operation("load"):
                raise KeyError("x")
        assert "Failed operation: load" in caplog.text
        assert tracker.get_current_context() == "idle"

    @pytest.mark.unit
    def test_summary(self, tracker, caplog) -> None:
        """Test the INFO summary line."""
        tracker.count_aggregate(4)
        tracker.count_invalid("bad")
        with caplog.at_level(logging.INFO):
            tracker.report_summary()
        assert "Loaded 1 aggregates (4 members, 1 invalid) and 0 functions" in caplog.text

    @pytest.mark.unit
    def test_reset(self, tracker) -> None:
        """Test that reset clears all counters."""
        tracker.count_aggregate(4)
        tracker.count_invalid("bad")
        tracker.reset()
        assert tracker.aggregate_count == 0
        assert tracker.invalid_count == 0
