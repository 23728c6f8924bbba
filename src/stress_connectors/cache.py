"""
TTL cache for fetched data

Small get-or-compute cache with expiry and explicit invalidation. Connectors
receive an instance instead of keeping module-level timestamps.
"""

import time
import logging
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CACHE_EXPIRATION_SECONDS = 24 * 60 * 60  # 24 hours


class TTLCache:
    """In-memory cache whose entries expire after ``ttl_seconds``"""

    def __init__(
        self,
        ttl_seconds: float = CACHE_EXPIRATION_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any], force_refresh: bool = False) -> Any:
        """
        Return the cached value for ``key`` or compute and store it

        A computed None ("no data") is returned but not cached, so the next
        call retries the fetch.
        """
        if not force_refresh:
            cached = self.get(key)
            if cached is not None:
                logger.info(f"Cache hit for {key}")
                return cached

        value = compute()
        if value is not None:
            self.set(key, value)
        return value

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        """Drop one entry, or every entry when ``key`` is None"""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None
