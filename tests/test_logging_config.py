"""
Tests cho logging setup va operation log helpers.
"""

import logging
import logging.handlers
import os
import sys
import time

from core import logging_config
from core.logging_config import (
    _build_console_handler,
    _build_file_handler,
    cleanup_old_logs,
    get_logger,
    log_operation,
    operation_timer,
)


class TestLogOperation:
    def test_forwards_to_sink(self):
        lines = []
        log_operation("Added file: a.py", lines.append)
        assert lines == ["Added file: a.py"]

    def test_failing_sink_is_ignored(self):
        def broken(_message):
            raise RuntimeError("panel closed")

        log_operation("Added file: a.py", broken)

    def test_written_to_logger(self, caplog):
        get_logger()
        with caplog.at_level(logging.WARNING, logger="ai-code-analyzer"):
            log_operation("Error reading file x", level=logging.WARNING)

        assert "Error reading file x" in caplog.text


class TestOperationTimer:
    def test_started_and_completed(self):
        lines = []

        with operation_timer("FolderScan", lines.append):
            pass

        assert lines[0] == "Started: FolderScan"
        assert lines[1].startswith("Completed: FolderScan (Elapsed: ")
        assert lines[1].endswith(" seconds)")

    def test_completed_logged_on_error(self):
        lines = []

        try:
            with operation_timer("FolderScan", lines.append):
                raise ValueError("boom")
        except ValueError:
            pass

        assert len(lines) == 2


class TestHandlers:
    def test_console_handler_writes_to_stderr(self):
        """Log lines khong duoc lan vao report cua CLI tren stdout."""
        handler = _build_console_handler(logging.INFO)

        assert handler.stream is sys.stderr
        assert handler.stream is not sys.stdout

    def test_file_handler_buffers_into_log_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr(logging_config, "LOG_DIR", tmp_path / "logs")

        handler = _build_file_handler(logging.INFO)
        target = handler.target
        try:
            assert isinstance(handler, logging.handlers.MemoryHandler)
            assert (tmp_path / "logs" / logging_config.LOG_FILE_NAME).exists()
        finally:
            handler.close()
            target.close()


class TestCleanupOldLogs:
    def test_removes_only_stale_files(self, tmp_path, monkeypatch):
        monkeypatch.setattr(logging_config, "LOG_DIR", tmp_path)
        stale = tmp_path / "analyzer.log.1"
        fresh = tmp_path / "analyzer.log"
        stale.write_text("old")
        fresh.write_text("new")
        ten_days_ago = time.time() - 10 * 24 * 60 * 60
        os.utime(stale, (ten_days_ago, ten_days_ago))

        cleanup_old_logs(max_age_days=7)

        assert not stale.exists()
        assert fresh.exists()

    def test_missing_log_dir_is_noop(self, tmp_path, monkeypatch):
        monkeypatch.setattr(logging_config, "LOG_DIR", tmp_path / "missing")

        cleanup_old_logs()
