"""
Token cache voi LRU eviction, key theo noi dung text.

Thread-safe OrderedDict cache:
- Key: (encoding_name, sha1(text))
- Value: token_count
- Eviction: Khi dat MAX_CACHE_SIZE, xoa entry it dung nhat

Key theo noi dung nen khong can invalidation: text khac -> key khac.
Chi cache ket qua exact (tu encoder), khong cache heuristic.
"""

import hashlib
import threading
from collections import OrderedDict
from typing import Optional, Tuple

# Maximum so entries trong cache
MAX_CACHE_SIZE = 4000

CacheKey = Tuple[str, str]


def make_key(encoding_name: str, text: str) -> CacheKey:
    """Tao cache key tu encoding name va noi dung text."""
    digest = hashlib.sha1(text.encode("utf-8", errors="surrogatepass")).hexdigest()
    return (encoding_name, digest)


class TokenCache:
    """
    LRU cache cho token counts, thread-safe.

    Su dung OrderedDict de track thu tu truy cap.
    """

    def __init__(self, max_size: int = MAX_CACHE_SIZE):
        """
        Khoi tao cache voi max size.

        Args:
            max_size: So luong entries toi da truoc khi evict
        """
        self._store: OrderedDict[CacheKey, int] = OrderedDict()
        self._lock = threading.Lock()
        self._max_size = max(1, max_size)
        self.hits = 0
        self.misses = 0

    def get(self, encoding_name: str, text: str) -> Optional[int]:
        """
        Lay token count tu cache.

        Thread-safe. Move entry to end (LRU).

        Returns:
            Token count neu cache hit, None neu miss
        """
        key = make_key(encoding_name, text)
        with self._lock:
            count = self._store.get(key)
            if count is None:
                self.misses += 1
                return None
            self._store.move_to_end(key)
            self.hits += 1
            return count

    def put(self, encoding_name: str, text: str, count: int) -> None:
        """
        Luu token count vao cache voi LRU eviction.

        Thread-safe. Tu dong evict entries cu khi dat max_size.
        """
        key = make_key(encoding_name, text)
        with self._lock:
            self._store[key] = count
            self._store.move_to_end(key)
            while len(self._store) > self._max_size:
                self._store.popitem(last=False)

    def clear(self) -> None:
        """Xoa toan bo cache. Thread-safe."""
        with self._lock:
            self._store.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        """Tra ve so luong entries trong cache."""
        with self._lock:
            return len(self._store)


# Singleton instance - dung chung boi cac TokenEstimator
token_cache = TokenCache()
