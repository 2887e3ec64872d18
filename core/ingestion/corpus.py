"""
Corpus Accumulator - Shared state thread-safe trong quá trình ingestion

Đây là cấu trúc mutable duy nhất được chia sẻ giữa các worker.

Locking:
- _lock (structural): bảo vệ extension map và tập path đã claim
- per-extension lock: bảo vệ list của từng bucket

Dedup theo "claim-before-read": worker claim path trước khi đọc file,
worker claim thành công đầu tiên thắng. Nếu đọc thất bại thì release()
để path có thể được thử lại ở lần ingest sau.
"""

import os
import threading
from typing import Dict, List, Optional, Set

from core.ingestion.types import Corpus, FileRecord


def dedup_key(path: str) -> str:
    """
    Key dedup cho một path.

    Case-insensitive trên Windows, case-sensitive trên POSIX
    (theo os.path.normcase).
    """
    return os.path.normcase(os.path.abspath(path))


class CorpusAccumulator:
    """
    Extension-grouped corpus đang được build, an toàn với nhiều threads.

    Usage:
        acc = CorpusAccumulator()
        if acc.claim(path):
            acc.add(record)
        corpus = acc.snapshot()
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._buckets: Dict[str, List[FileRecord]] = {}
        self._bucket_locks: Dict[str, threading.Lock] = {}
        self._claimed: Set[str] = set()

    @classmethod
    def from_corpus(cls, corpus: Optional[Corpus]) -> "CorpusAccumulator":
        """Tạo accumulator seed sẵn từ một corpus có sẵn."""
        acc = cls()
        if corpus:
            for records in corpus.values():
                for record in records:
                    if acc.claim(record.path):
                        acc.add(record)
        return acc

    def claim(self, path: str) -> bool:
        """
        Đánh dấu path đang/đã được ingest.

        Returns:
            True nếu caller là người claim đầu tiên, False nếu duplicate
        """
        key = dedup_key(path)
        with self._lock:
            if key in self._claimed:
                return False
            self._claimed.add(key)
            return True

    def release(self, path: str) -> None:
        """Huỷ một claim (đọc file thất bại)."""
        with self._lock:
            self._claimed.discard(dedup_key(path))

    def contains(self, path: str) -> bool:
        with self._lock:
            return dedup_key(path) in self._claimed

    def add(self, record: FileRecord) -> None:
        """Thêm record vào bucket theo extension. Caller phải claim trước."""
        with self._lock:
            bucket_lock = self._bucket_locks.get(record.extension)
            if bucket_lock is None:
                bucket_lock = threading.Lock()
                self._bucket_locks[record.extension] = bucket_lock
                self._buckets[record.extension] = []
            bucket = self._buckets[record.extension]

        with bucket_lock:
            bucket.append(record)

    def snapshot(self) -> Corpus:
        """Copy của corpus hiện tại (dict mới, list mới)."""
        with self._lock:
            items = list(self._buckets.items())
            locks = dict(self._bucket_locks)

        result: Corpus = {}
        for ext, bucket in items:
            with locks[ext]:
                if bucket:
                    result[ext] = list(bucket)
        return result

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()
            self._bucket_locks.clear()
            self._claimed.clear()

    def __len__(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._buckets.values())
