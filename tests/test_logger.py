"""
Tests for logger functionality.
"""

import pytest

from jobly.logger import StructuredLogger, get_logger, reset_logger


@pytest.fixture
def fresh_global_logger():
    """Reset the global logger before and after a test."""
    reset_logger()
    yield
    reset_logger()


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["queries"] == 0

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)

        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

    def test_log_with_context(self, tmp_path):
        """Context is appended as JSON."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_file=True,
            enable_console=False,
        )

        logger.info("Updated company", key="c1", fields=["name"])

        log_content = next(tmp_path.glob("*.log")).read_text()
        assert 'Updated company | Context: {"key": "c1", "fields": ["name"]}' in log_content

    def test_metrics_tracking(self, tmp_path):
        """Metrics should be tracked correctly."""
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)

        logger.record_query("companies")
        logger.record_query("companies")
        logger.record_query("jobs")
        logger.record_error("NotFoundError")

        metrics = logger.get_metrics()

        assert metrics["queries"] == 3
        assert metrics["queries_by_table"] == {"companies": 2, "jobs": 1}
        assert metrics["errors"] == 1
        assert metrics["errors_by_type"]["NotFoundError"] == 1

    def test_get_metrics_returns_copy(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_query("jobs")

        metrics = logger.get_metrics()
        metrics["queries_by_table"]["jobs"] = 99

        assert logger.get_metrics()["queries_by_table"]["jobs"] == 1

    def test_metrics_summary(self, tmp_path):
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_file=True,
            enable_console=False,
        )
        logger.record_query("users")
        logger.record_error("DuplicateError")

        logger.log_metrics_summary()

        log_content = next(tmp_path.glob("*.log")).read_text()
        assert "Queries: 1" in log_content
        assert "users: 1" in log_content
        assert "DuplicateError: 1" in log_content

    def test_no_file_by_default(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.info("Test message")
        assert list(tmp_path.glob("*.log")) == []

    def test_log_file_creation(self, tmp_path):
        """Log file should be created in specified directory."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_file=True,
            enable_console=False,
        )

        logger.info("Test message")

        log_files = list(tmp_path.glob("*.log"))
        assert len(log_files) == 1
        assert "Test message" in log_files[0].read_text()


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, fresh_global_logger):
        """get_logger should return same instance."""
        logger1 = get_logger(enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, fresh_global_logger):
        """reset_logger should create new instance."""
        logger1 = get_logger(enable_console=False)
        logger1.record_query("jobs")

        reset_logger()

        logger2 = get_logger(enable_console=False)

        assert logger2 is not logger1
        assert logger2.metrics["queries"] == 0

    def test_level_from_environment(self, fresh_global_logger, monkeypatch):
        monkeypatch.setenv("JOBLY_LOG_LEVEL", "debug")
        logger = get_logger(enable_console=False)
        assert logger.logger.level == 10

    def test_log_dir_from_environment(self, fresh_global_logger, monkeypatch, tmp_path):
        monkeypatch.setenv("JOBLY_LOG_DIR", str(tmp_path))
        logger = get_logger(enable_console=False)
        logger.info("Written to file")
        assert "Written to file" in next(tmp_path.glob("jobly_*.log")).read_text()
