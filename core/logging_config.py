"""
Logging Configuration - Logging cho corpus ingestion và token analysis

Hai loại log:
- Diagnostic log: logger "ai-code-analyzer", ghi ra stderr và vào
  ~/.ai-code-analyzer/logs/analyzer.log (rotation 5 x 2MB, buffered)
- Operation log: log_operation() ghi vào logger và chuyển tiếp từng dòng
  cho sink của caller (vd: log panel, `--verbose` của CLI). Sink lỗi
  không bao giờ raise.

Console handler dùng stderr để report của CLI trên stdout không bị lẫn
log lines.
"""

import logging
import logging.handlers
import sys
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from config.paths import APP_NAME, LOG_DIR, DEBUG_MODE

LOG_FILE_NAME = "analyzer.log"

# Logger singleton
_logger: Optional[logging.Logger] = None

# Log rotation config
MAX_LOG_SIZE = 2 * 1024 * 1024  # 2MB per file
MAX_LOG_FILES = 5
BUFFER_CAPACITY = 100  # Records buffer trước khi flush ra file

# Sink nhận từng dòng operation log (human-readable)
LogSink = Callable[[str], None]


def _current_level() -> int:
    return logging.DEBUG if DEBUG_MODE else logging.INFO


def _build_console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    return handler


def _build_file_handler(level: int) -> logging.Handler:
    """
    RotatingFileHandler bọc trong MemoryHandler.

    Raises:
        OSError: Không tạo được log directory hoặc log file
    """
    LOG_DIR.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        LOG_DIR / LOG_FILE_NAME,
        maxBytes=MAX_LOG_SIZE,
        backupCount=MAX_LOG_FILES,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(threadName)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    # ERROR flush ngay; còn lại gom theo BUFFER_CAPACITY
    memory_handler = logging.handlers.MemoryHandler(
        capacity=BUFFER_CAPACITY,
        flushLevel=logging.ERROR,
        target=file_handler,
    )
    memory_handler.setLevel(level)
    return memory_handler


def get_logger() -> logging.Logger:
    """
    Get hoặc tạo logger singleton của analyzer.

    File logging lỗi (vd: home directory read-only) chỉ tạo một warning
    trên console; analyzer vẫn chạy bình thường.
    """
    global _logger

    if _logger is not None:
        return _logger

    _logger = logging.getLogger(APP_NAME)
    level = _current_level()
    _logger.setLevel(level)

    if _logger.handlers:
        return _logger

    _logger.addHandler(_build_console_handler(level))
    try:
        _logger.addHandler(_build_file_handler(level))
    except OSError as e:
        _logger.warning(f"Could not create log file: {e}")

    return _logger


def flush_logs():
    """Flush buffered records ra disk. Gọi trước khi CLI exit."""
    if _logger:
        for handler in _logger.handlers:
            try:
                handler.flush()
            except Exception:
                pass  # Ignore errors during shutdown


def set_debug_mode(enabled: bool):
    """Bật/tắt DEBUG level cho logger và mọi handler (CLI `--debug`)."""
    global DEBUG_MODE
    DEBUG_MODE = enabled

    if _logger:
        new_level = _current_level()
        _logger.setLevel(new_level)
        for handler in _logger.handlers:
            handler.setLevel(new_level)


def cleanup_old_logs(max_age_days: int = 7):
    """Xóa các log file (kể cả rotated backups) cũ hơn max_age_days."""
    if not LOG_DIR.exists():
        return

    cutoff_time = time.time() - (max_age_days * 24 * 60 * 60)

    for log_file in LOG_DIR.glob("*.log*"):
        try:
            if log_file.stat().st_mtime < cutoff_time:
                log_file.unlink()
        except OSError:
            pass


def log_error(message: str, exc: Optional[Exception] = None):
    """Log error; traceback chỉ kèm theo khi debug mode bật."""
    logger = get_logger()
    if exc:
        logger.error(f"{message}: {exc}", exc_info=DEBUG_MODE)
    else:
        logger.error(message)


def log_warning(message: str):
    get_logger().warning(message)


def log_info(message: str):
    get_logger().info(message)


def log_operation(
    message: str,
    sink: Optional[LogSink] = None,
    level: int = logging.INFO,
) -> None:
    """
    Ghi một dòng operation log và chuyển tiếp cho sink của caller.

    Dùng cho các sự kiện user cần thấy: file added, skipped duplicate,
    file vượt size limit, file không đọc được, lỗi directory.
    Không bao giờ raise.

    Args:
        message: Dòng log human-readable
        sink: Callback nhận message (optional)
        level: Logging level cho logger nội bộ
    """
    try:
        get_logger().log(level, message)
    except Exception:
        pass

    if sink is None:
        return
    try:
        sink(message)
    except Exception:
        pass  # Sink của caller lỗi không được làm hỏng operation


@contextmanager
def operation_timer(name: str, sink: Optional[LogSink] = None) -> Iterator[None]:
    """
    Đo thời gian một operation và log Started/Completed.

    Usage:
        with operation_timer("FolderScan", sink):
            walker.walk(...)
    """
    start = time.perf_counter()
    log_operation(f"Started: {name}", sink)
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        log_operation(f"Completed: {name} (Elapsed: {elapsed:.2f} seconds)", sink)
