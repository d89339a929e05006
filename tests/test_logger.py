"""
Tests for logging infrastructure.

Verifies logger configuration, file creation, and rotation.
"""

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest

import voicetoggle.utils.logger as logger_module
from voicetoggle.config import get_log_level
from voicetoggle.utils.logger import get_logger, set_log_level, shutdown_logging


@pytest.fixture
def fresh_logging(tmp_path):
    shutdown_logging()
    with patch("voicetoggle.utils.logger.get_log_dir", return_value=tmp_path):
        yield tmp_path
    shutdown_logging()


class TestLoggerConfiguration:
    def test_get_logger_returns_logger(self, fresh_logging):
        assert isinstance(get_logger("voicetoggle.test"), logging.Logger)

    def test_root_logger_singleton(self, fresh_logging):
        assert get_logger() is get_logger("voicetoggle")

    def test_module_loggers_are_children(self, fresh_logging):
        logger = get_logger("voicetoggle.core.controller")
        assert logger.parent.name in ("voicetoggle.core", "voicetoggle")

    def test_file_handler_rotates(self, fresh_logging):
        root = get_logger()
        handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(handlers) == 1
        assert handlers[0].maxBytes == 10 * 1024 * 1024
        assert handlers[0].backupCount == 5

    def test_logger_writes_to_file(self, fresh_logging):
        get_logger("voicetoggle.test").info("Test message")
        for handler in get_logger().handlers:
            handler.flush()

        content = (fresh_logging / "app.log").read_text()
        assert "Test message" in content
        assert "voicetoggle.test - INFO" in content

    def test_set_log_level(self, fresh_logging):
        set_log_level(logging.DEBUG)
        assert get_logger().level == logging.DEBUG

    def test_shutdown_releases_handlers(self, fresh_logging):
        get_logger()
        shutdown_logging()
        assert logging.getLogger("voicetoggle").handlers == []
        assert logger_module._logger_instance is None


class TestLogLevelConfig:
    def test_default_level(self, monkeypatch):
        monkeypatch.delenv("VOICETOGGLE_LOG_LEVEL", raising=False)
        assert get_log_level() == logging.INFO

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("VOICETOGGLE_LOG_LEVEL", "debug")
        assert get_log_level() == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("VOICETOGGLE_LOG_LEVEL", "chatty")
        assert get_log_level() == logging.INFO
