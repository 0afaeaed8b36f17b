"""Cache Module - Caching infrastructure for azscrape.

Philosophy:
- In-memory TTL cache for discovery lookups
- Byte-blob snapshot stores for restart persistence (file or Azure blob)
- Location strings resolved once, at startup

Public API (the "studs"):
    From ttl_cache:
        TTLCache: Thread-safe in-memory TTL cache
        CacheEntry: Cached value with expiry

    From snapshot_store:
        SnapshotStore: Abstract snapshot backend
        FileSnapshotStore: Atomic local file backend
        BlobSnapshotStore: Azure Blob Storage backend
        StorageUnavailableError: Backend unreachable
        SnapshotWriteError: Snapshot persistence failed

    From cache_spec:
        CacheSpec: Resolved cache location
        CacheBackend: Backend enum
        CacheConfigError: Malformed cache location
        resolve_cache_spec: Parse cache location string
        open_snapshot_store: Create store for a CacheSpec
        build_cache_tag: Derive invalidation tag from config values
"""

from azscrape.cache.cache_spec import (
    CacheBackend,
    CacheConfigError,
    CacheSpec,
    build_cache_tag,
    open_snapshot_store,
    resolve_cache_spec,
)
from azscrape.cache.snapshot_store import (
    BlobSnapshotStore,
    FileSnapshotStore,
    SnapshotStore,
    SnapshotWriteError,
    StorageUnavailableError,
)
from azscrape.cache.ttl_cache import CacheEntry, TTLCache

__all__ = [
    "BlobSnapshotStore",
    "CacheBackend",
    "CacheConfigError",
    "CacheEntry",
    "CacheSpec",
    "FileSnapshotStore",
    "SnapshotStore",
    "SnapshotWriteError",
    "StorageUnavailableError",
    "TTLCache",
    "build_cache_tag",
    "open_snapshot_store",
    "resolve_cache_spec",
]
