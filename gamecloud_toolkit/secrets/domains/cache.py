"""In-memory secret cache with a fixed time-to-live.

One instance is shared by every client that resolves credentials. It is
constructed explicitly and handed to each client.
"""
import logging
import threading
import time
from typing import Callable, Dict, Optional

from .models import SecretCacheEntry

logger = logging.getLogger(__name__)

SECRET_CACHE_TTL_SECONDS = 3600


class SecretCache:
    """Maps secret name -> resolved value, valid for one hour after resolution."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: Dict[str, SecretCacheEntry] = {}
        # Resolution may complete on worker threads (asyncio.to_thread)
        self._lock = threading.Lock()

    def get(self, name: str) -> Optional[str]:
        """
        Return the cached value for name, or None if absent or expired.

        Expired entries are dropped here; absence is a normal result.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(name)
            if entry is None:
                return None
            if not entry.is_fresh(now, SECRET_CACHE_TTL_SECONDS):
                del self._entries[name]
                logger.debug(f"Cached secret expired: {name}")
                return None
        logger.debug(f"Using cached secret: {name}")
        return entry.value

    def put(self, name: str, value: str, source: str = "secret_manager") -> None:
        """Store value under name, replacing any previous entry."""
        entry = SecretCacheEntry(name=name, value=value, resolved_at=self._clock(), source=source)
        with self._lock:
            self._entries[name] = entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Secret cache cleared")

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
