"""TTL Cache Module - In-memory lookup cache with per-entry expiry.

Philosophy:
- In-memory only, entries expire purely by time
- Thread-safe operations (internal lock, nothing exposed to callers)
- Lapsed entries are treated as absent even before they are purged
- Failed lookups are never cached

Public API (the "studs"):
    TTLCache: Generic TTL cache with optional background janitor
    CacheEntry: Data model for a cached value and its expiry

Example:
    >>> cache: TTLCache[list[str]] = TTLCache(default_ttl=1800)
    >>> names = cache.cached("subscriptions", list_subscriptions)
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """Cached value with its absolute expiry on the cache clock.

    Attributes:
        key: Cache key
        value: Cached value
        expires_at: Clock reading after which the entry is stale
    """

    key: str
    value: V
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """Check if entry has lapsed at the given clock reading."""
        return now >= self.expires_at


class TTLCache(Generic[V]):
    """Thread-safe TTL cache for discovery lookups.

    Entries are stored with the TTL given to ``set`` (or the default TTL).
    Expired entries are dropped lazily on access and, if the janitor is
    running, swept every ``cleanup_interval`` seconds.

    Example:
        >>> cache: TTLCache[int] = TTLCache(default_ttl=60)
        >>> cache.set("answer", 42)
        >>> cache.get("answer")
        (42, True)
    """

    DEFAULT_TTL = 1800.0  # 30 minutes
    DEFAULT_CLEANUP_INTERVAL = 60.0

    def __init__(
        self,
        default_ttl: float | None = None,
        cleanup_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize TTL cache.

        Args:
            default_ttl: TTL in seconds used when ``set`` gets none (default: 1800)
            cleanup_interval: Janitor sweep interval in seconds (default: 60)
            clock: Monotonic clock returning seconds
        """
        self.default_ttl = self.DEFAULT_TTL if default_ttl is None else default_ttl
        self.cleanup_interval = (
            self.DEFAULT_CLEANUP_INTERVAL if cleanup_interval is None else cleanup_interval
        )
        self._clock = clock
        self._entries: dict[str, CacheEntry[V]] = {}
        self._lock = threading.Lock()
        self._janitor: threading.Thread | None = None
        self._janitor_stop = threading.Event()

    def get(self, key: str) -> tuple[V | None, bool]:
        """Get cached value.

        Args:
            key: Cache key

        Returns:
            Tuple of (value, found); value is None when not found
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache miss: '{key}' not found")
                return None, False

            if entry.is_expired(self._clock()):
                del self._entries[key]
                logger.debug(f"Cache miss: '{key}' expired")
                return None, False

            return entry.value, True

    def set(self, key: str, value: V, ttl: float | None = None) -> None:
        """Store value, overwriting any previous entry.

        Args:
            key: Cache key
            value: Value to cache
            ttl: TTL in seconds (default: cache default TTL)
        """
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)
        logger.debug(f"Cache set: '{key}' (TTL: {ttl}s)")

    def set_default(self, key: str, value: V) -> None:
        """Store value with the default TTL."""
        self.set(key, value)

    def cached(self, key: str, producer: Callable[[], V], ttl: float | None = None) -> V:
        """Return cached value or compute, cache and return it.

        The producer runs outside the lock, so concurrent misses on the same
        key may both call it; the last result stored wins.

        Args:
            key: Cache key
            producer: Zero-argument callable fetching the value
            ttl: TTL in seconds for a freshly produced value

        Returns:
            Cached or freshly produced value

        Raises:
            Exception: Whatever the producer raises; nothing is cached then
        """
        value, found = self.get(key)
        if found:
            return value  # type: ignore[return-value]

        value = producer()
        self.set(key, value, ttl)
        return value

    def delete(self, key: str) -> None:
        """Remove entry if present."""
        with self._lock:
            self._entries.pop(key, None)

    def delete_expired(self) -> int:
        """Remove all lapsed entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.debug(f"Purged {len(expired)} expired cache entries")
        return len(expired)

    def flush(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()

    def item_count(self) -> int:
        """Number of stored entries, including lapsed ones not yet purged."""
        with self._lock:
            return len(self._entries)

    def start_janitor(self) -> None:
        """Start background sweep of expired entries (idempotent)."""
        if self._janitor is not None and self._janitor.is_alive():
            return

        self._janitor_stop.clear()
        self._janitor = threading.Thread(
            target=self._run_janitor, name="ttl-cache-janitor", daemon=True
        )
        self._janitor.start()

    def stop_janitor(self) -> None:
        """Stop background sweep and wait for it to exit."""
        self._janitor_stop.set()
        if self._janitor is not None:
            self._janitor.join(timeout=self.cleanup_interval)
            self._janitor = None

    def _run_janitor(self) -> None:
        while not self._janitor_stop.wait(self.cleanup_interval):
            self.delete_expired()


__all__ = ["CacheEntry", "TTLCache"]
