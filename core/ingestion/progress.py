"""
Progress Reporter - Throttled, non-blocking progress cho ingestion workers

- Tối đa một lần gọi callback mỗi PROGRESS_THROTTLE_MS
- Non-blocking: worker gặp worker khác đang report thì bỏ qua lượt của mình
- Lỗi trong callback bị nuốt, không làm hỏng walk
- report(force=True) ở cuối luôn emit số liệu cuối cùng; nếu lần emit trước
  còn trong throttle window thì chờ hết window rồi mới emit
"""

import threading
import time
from typing import Callable, Optional

from core.constants import PROGRESS_THROTTLE_MS

# Callback nhận (files_processed, files_total)
ProgressCallback = Callable[[int, int], None]


class ProgressReporter:
    """Đếm files processed/found và emit progress có throttle."""

    def __init__(
        self,
        callback: Optional[ProgressCallback] = None,
        throttle_ms: int = PROGRESS_THROTTLE_MS,
    ):
        self._callback = callback
        self._throttle_ms = throttle_ms
        self._counter_lock = threading.Lock()
        self._emit_lock = threading.Lock()
        self._last_emit_ms: Optional[float] = None
        self._processed = 0
        self._total = 0

    @property
    def processed(self) -> int:
        with self._counter_lock:
            return self._processed

    @property
    def total(self) -> int:
        with self._counter_lock:
            return self._total

    def add_found(self, count: int) -> None:
        if count <= 0:
            return
        with self._counter_lock:
            self._total += count
        self.report()

    def add_processed(self, count: int = 1) -> None:
        with self._counter_lock:
            self._processed += count
        self.report()

    def report(self, force: bool = False) -> None:
        """
        Emit progress với throttling.

        Args:
            force: Luôn emit. Chờ worker đang report xong, và chờ hết
                throttle window nếu lần emit trước còn quá gần
        """
        if not self._callback:
            return

        if force:
            self._emit_lock.acquire()
        elif not self._emit_lock.acquire(blocking=False):
            return  # Worker khác đang report

        try:
            current_time = time.monotonic() * 1000
            remaining_ms = 0.0
            if self._last_emit_ms is not None:
                remaining_ms = self._throttle_ms - (current_time - self._last_emit_ms)
            if remaining_ms > 0:
                if not force:
                    return
                time.sleep(remaining_ms / 1000)
                current_time = time.monotonic() * 1000
            self._last_emit_ms = current_time

            with self._counter_lock:
                processed, total = self._processed, self._total

            try:
                self._callback(processed, total)
            except Exception:
                pass  # Ignore callback errors
        finally:
            self._emit_lock.release()
