"""
Cancellation token cho ingestion/token counting - thread-safe.

Moi operation nhan mot token rieng thay vi global flag,
de 2 operation chay song song khong huy lan nhau.
Worker check token truoc moi directory va moi file unit.
"""

import threading

from core.errors import CancellationRequested


class CancellationToken:
    """
    Cooperative cancellation flag.

    Su dung threading.Event nen cancel() co the goi tu bat ky thread nao
    (UI thread, signal handler, worker threads).
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        """Yeu cau huy. Idempotent."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise CancellationRequested neu da bi huy."""
        if self._event.is_set():
            raise CancellationRequested("Operation cancelled")

    def reset(self) -> None:
        """Cho phep dung lai token cho operation tiep theo."""
        self._event.clear()
