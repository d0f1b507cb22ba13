"""Unit tests for logging configuration."""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timedelta
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from issuance_verifier.logging.config import (
    RETENTION_DAYS,
    _cleanup_old_logs,
    _setup_file_logging,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Any:
    """Remove handlers added by configure_logging after each test."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    urllib3_level = logging.getLogger("urllib3").level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    logging.getLogger("urllib3").setLevel(urllib3_level)


def _age(path: Path, days: int) -> None:
    old_time = (datetime.now() - timedelta(days=days)).timestamp()
    os.utime(path, (old_time, old_time))


def _added_handlers(before: list[logging.Handler]) -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if h not in before]


@pytest.mark.unit
class TestCleanupOldLogs:
    """Tests for _cleanup_old_logs function."""

    def test_returns_early_when_log_dir_missing(self, tmp_path: Path) -> None:
        """_cleanup_old_logs should return early if LOG_DIR doesn't exist."""
        with patch("issuance_verifier.logging.config.LOG_DIR", tmp_path / "nonexistent"):
            _cleanup_old_logs()

    def test_deletes_old_rotated_files(self, tmp_path: Path) -> None:
        """Rotated files older than RETENTION_DAYS are removed."""
        log_file = tmp_path / "verifier.log.1"
        log_file.write_text("old log data")
        _age(log_file, RETENTION_DAYS + 5)

        with patch("issuance_verifier.logging.config.LOG_DIR", tmp_path):
            _cleanup_old_logs()

        assert not log_file.exists()

    def test_keeps_recent_and_unrelated_files(self, tmp_path: Path) -> None:
        """Recent logs and files that are not verifier logs survive."""
        recent = tmp_path / "verifier.log"
        recent.write_text("recent")
        unrelated = tmp_path / "notes.txt"
        unrelated.write_text("keep me")
        _age(unrelated, RETENTION_DAYS + 5)

        with patch("issuance_verifier.logging.config.LOG_DIR", tmp_path):
            _cleanup_old_logs()

        assert recent.exists()
        assert unrelated.exists()

    def test_ignores_os_errors(self, tmp_path: Path) -> None:
        """_cleanup_old_logs should handle OSError gracefully."""
        log_file = tmp_path / "verifier.log.1"
        log_file.write_text("data")
        _age(log_file, RETENTION_DAYS + 5)

        with (
            patch("issuance_verifier.logging.config.LOG_DIR", tmp_path),
            patch.object(Path, "unlink", side_effect=OSError("permission denied")),
        ):
            _cleanup_old_logs()


@pytest.mark.unit
class TestSetupFileLogging:
    """Tests for _setup_file_logging function."""

    def test_creates_log_directory_and_handler(self, tmp_path: Path) -> None:
        """_setup_file_logging should create the log dir and add a rotating handler."""
        log_dir = tmp_path / "logs"
        log_file = log_dir / "verifier.log"
        before = list(logging.getLogger().handlers)

        with (
            patch("issuance_verifier.logging.config.LOG_DIR", log_dir),
            patch("issuance_verifier.logging.config.LOG_FILE", log_file),
            patch("issuance_verifier.logging.config._cleanup_old_logs"),
        ):
            _setup_file_logging()

        added = _added_handlers(before)
        assert log_dir.exists()
        assert len(added) == 1
        assert isinstance(added[0], RotatingFileHandler)
        assert added[0].level == logging.DEBUG
        added[0].close()


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for configure_logging function."""

    @pytest.mark.parametrize(
        ("kwargs", "expected_level"),
        [
            ({}, logging.WARNING),
            ({"verbose": True}, logging.INFO),
            ({"debug": True}, logging.DEBUG),
            ({"verbose": True, "debug": True}, logging.DEBUG),
        ],
    )
    def test_console_handler_level(self, kwargs: dict[str, bool], expected_level: int) -> None:
        """The console handler level follows the verbosity flags."""
        before = list(logging.getLogger().handlers)
        configure_logging(log_to_file=False, **kwargs)

        added = _added_handlers(before)
        assert len(added) == 1
        assert added[0].level == expected_level

    def test_console_logs_go_to_stderr(self) -> None:
        """Command results own stdout, so the console handler writes to stderr."""
        before = list(logging.getLogger().handlers)
        configure_logging(log_to_file=False)

        (handler,) = _added_handlers(before)
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stderr

    def test_json_output(self) -> None:
        """configure_logging with json_output=True should still add one console handler."""
        before = list(logging.getLogger().handlers)
        configure_logging(json_output=True, log_to_file=False)
        assert len(_added_handlers(before)) == 1

    def test_quiets_urllib3_unless_debugging(self) -> None:
        """urllib3 request logging is never more verbose than INFO."""
        configure_logging(debug=True, log_to_file=False)
        assert logging.getLogger("urllib3").level == logging.INFO

        configure_logging(log_to_file=False)
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_log_to_file_sets_up_file_logging(self) -> None:
        """configure_logging attaches the file handler by default."""
        with patch("issuance_verifier.logging.config._setup_file_logging") as mock_setup:
            configure_logging()
        mock_setup.assert_called_once()

    def test_log_to_file_disabled(self) -> None:
        """log_to_file=False skips the file handler."""
        with patch("issuance_verifier.logging.config._setup_file_logging") as mock_setup:
            configure_logging(log_to_file=False)
        mock_setup.assert_not_called()


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_logger(self) -> None:
        """get_logger should return a structlog logger."""
        logger = get_logger("test")
        assert logger is not None

    def test_binds_initial_context(self) -> None:
        """get_logger should bind initial context when provided."""
        logger = get_logger("test", component="waiter")
        assert logger._context == {"component": "waiter"}
