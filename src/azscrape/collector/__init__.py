"""Collector Module - Periodic collection with restart-safe caching.

Public API (the "studs"):
    Collector: Base class for periodic collectors
    CollectorCacheManager: Snapshot restore/save for a collector
    ScrapeScheduler: Sleep/collect cadence
    SnapshotRecord: Persisted snapshot data model
    SnapshotDecodeError: Corrupt or incompatible snapshot
    CollectorState, MetricList, MetricSample: Metric state
    ResourceGroupCollector: Built-in Azure inventory collector
"""

from azscrape.collector.cache_manager import SAFETY_MARGIN, CollectorCacheManager
from azscrape.collector.collector import Collector
from azscrape.collector.metrics import CollectorState, MetricList, MetricSample
from azscrape.collector.resource_groups import ResourceGroupCollector
from azscrape.collector.scheduler import ScrapeScheduler
from azscrape.collector.snapshot import SnapshotDecodeError, SnapshotRecord

__all__ = [
    "SAFETY_MARGIN",
    "Collector",
    "CollectorCacheManager",
    "CollectorState",
    "MetricList",
    "MetricSample",
    "ResourceGroupCollector",
    "ScrapeScheduler",
    "SnapshotDecodeError",
    "SnapshotRecord",
]
