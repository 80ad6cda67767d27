import io
import logging
import os
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

from rich.logging import RichHandler

from flashbuild import log_utils


def _own_handlers():
    """Handlers attached by flashbuild, ignoring pytest's capture handlers."""
    return [
        handler
        for handler in log_utils.logger.handlers
        if isinstance(handler, (RichHandler, RotatingFileHandler))
    ]


class TestLogUtils:
    """Test suite for log_utils module."""

    def setup_method(self):
        """Reset logger state before each test."""
        log_utils._file_handler = None
        log_utils._initialize_logger()

    def teardown_method(self):
        """Drop any file handler a test attached."""
        if log_utils._file_handler is not None:
            log_utils.logger.removeHandler(log_utils._file_handler)
            log_utils._file_handler.close()
            log_utils._file_handler = None
        log_utils._initialize_logger()

    def test_logger_initialization(self):
        """Test that logger is properly initialized."""
        assert log_utils.logger.name == "flashbuild"
        assert not log_utils.logger.propagate
        handlers = _own_handlers()
        assert len(handlers) == 1
        assert isinstance(handlers[0], RichHandler)

    def test_logger_initialization_with_env_var(self):
        """Test logger initialization with environment variable."""
        with patch.dict(os.environ, {"FLASHBUILD_LOG_LEVEL": "DEBUG"}):
            log_utils._initialize_logger()
            assert log_utils.logger.level == logging.DEBUG
            assert _own_handlers()[0].level == logging.DEBUG

    def test_logger_initialization_with_invalid_env_var(self):
        """Test logger initialization with invalid environment variable."""
        with patch.dict(os.environ, {"FLASHBUILD_LOG_LEVEL": "INVALID"}):
            log_utils._initialize_logger()
            assert log_utils.logger.level == logging.INFO

    def test_set_log_level_valid(self):
        """Test setting valid log levels."""
        log_utils.set_log_level("debug")
        assert log_utils.logger.level == logging.DEBUG

        log_utils.set_log_level("WARNING")
        assert log_utils.logger.level == logging.WARNING

    def test_set_log_level_invalid(self):
        """Test setting invalid log level."""
        original_level = log_utils.logger.level
        log_utils.set_log_level("INVALID_LEVEL")
        assert log_utils.logger.level == original_level

    def test_set_log_level_with_non_rich_handler(self):
        """Test formatter selection for a plain StreamHandler."""
        standard_handler = logging.StreamHandler(io.StringIO())
        log_utils.logger.addHandler(standard_handler)
        try:
            log_utils.set_log_level("INFO")
            assert standard_handler.formatter._fmt == log_utils.INFO_LOG_FORMAT
            assert standard_handler.formatter.datefmt == log_utils.LOG_DATE_FORMAT

            log_utils.set_log_level("DEBUG")
            assert standard_handler.formatter._fmt == log_utils.DEBUG_LOG_FORMAT

            rich_handler = _own_handlers()[0]
            assert rich_handler.formatter._fmt == "%(message)s"
        finally:
            log_utils.logger.removeHandler(standard_handler)

    def test_add_file_logging(self, tmp_path):
        """Test adding file logging functionality."""
        log_utils.add_file_logging(tmp_path, "INFO")

        assert len(_own_handlers()) == 2
        assert log_utils._file_handler in log_utils.logger.handlers
        assert (tmp_path / "flashbuild.log").exists()

    def test_add_file_logging_replaces_existing(self, tmp_path):
        """Test that adding file logging replaces existing file handler."""
        log_utils.add_file_logging(tmp_path, "INFO")
        first_handler = log_utils._file_handler

        log_utils.add_file_logging(tmp_path, "DEBUG")

        assert log_utils._file_handler is not first_handler
        assert log_utils._file_handler.level == logging.DEBUG
        assert len(_own_handlers()) == 2

    def test_add_file_logging_invalid_level_defaults_to_info(self, tmp_path):
        log_utils.add_file_logging(tmp_path, "LOUD")
        assert log_utils._file_handler.level == logging.INFO

    def test_file_logging_creates_directory(self, tmp_path):
        """Test that file logging creates directory if it doesn't exist."""
        log_dir = tmp_path / "nested" / "log" / "dir"
        log_utils.add_file_logging(log_dir, "INFO")
        assert (log_dir / "flashbuild.log").exists()

    def test_rotating_file_handler_configuration(self, tmp_path):
        """Test that rotating file handler is configured correctly."""
        log_utils.add_file_logging(tmp_path, "INFO")

        handler = log_utils._file_handler
        assert handler.maxBytes == 10 * 1024 * 1024
        assert handler.backupCount == 5
        assert handler.encoding == "utf-8"
