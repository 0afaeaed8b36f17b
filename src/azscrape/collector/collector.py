"""Collector - Periodic metric collection with restart-safe caching.

Philosophy:
- Ruthless simplicity: collect -> save -> sleep, one thread per collector
- A failed cycle never replaces the metrics of the last good cycle
- Persistence problems are logged, never fatal to the loop

Public API (Studs):
    Collector - Base class for periodic collectors
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from azscrape.cache.snapshot_store import SnapshotWriteError
from azscrape.collector.cache_manager import CollectorCacheManager
from azscrape.collector.metrics import CollectorState, MetricSample
from azscrape.collector.scheduler import ScrapeScheduler

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Collector(ABC):
    """Base class for periodic collectors.

    Subclasses register their metric names in ``setup`` and fill a fresh
    state in ``collect_metrics``.

    Example:
        >>> collector = ResourceGroupCollector(discovery, timedelta(minutes=5))
        >>> collector.set_cache(cache_manager)
        >>> collector.start(stop_event)
    """

    def __init__(
        self,
        name: str,
        scrape_interval: timedelta,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize collector.

        Args:
            name: Collector name used in log messages
            scrape_interval: Time between collection cycles
            clock: Returns the current timezone-aware time
        """
        self.name = name
        self.scrape_interval = scrape_interval
        self.scheduler = ScrapeScheduler(scrape_interval)
        self.state = CollectorState()
        self.cache_manager: CollectorCacheManager | None = None
        self._clock = clock
        self._state_lock = threading.Lock()
        self.setup(self.state)

    @abstractmethod
    def setup(self, state: CollectorState) -> None:
        """Register metric names on state."""
        pass

    @abstractmethod
    def collect_metrics(self, state: CollectorState) -> None:
        """Fill state with freshly collected samples."""
        pass

    def set_cache(self, cache_manager: CollectorCacheManager | None) -> None:
        """Enable (or with None disable) snapshot persistence."""
        self.cache_manager = cache_manager

    @property
    def last_scrape_time(self) -> datetime | None:
        return self.state.last_scrape_time

    def metrics(self) -> dict[str, list[MetricSample]]:
        """Samples currently served, by metric name."""
        with self._state_lock:
            return self.state.snapshot_metrics()

    def restore(self) -> bool:
        """Seed metrics from the snapshot cache, if one is configured."""
        if self.cache_manager is None:
            return False

        with self._state_lock:
            return self.cache_manager.restore(self.state, self.scheduler)

    def run_cycle(self) -> bool:
        """Run one collect + save cycle.

        Returns:
            True if metrics were collected (saving may still have failed)
        """
        cycle_start = self._clock()
        logger.info(f"Starting {self.name} collection")

        fresh = CollectorState()
        for name in self.state.metrics:
            fresh.register(name)

        try:
            self.collect_metrics(fresh)
        except Exception as e:
            logger.error(f"{self.name} collection failed, keeping previous metrics: {e}")
            return False

        fresh.last_scrape_time = cycle_start
        with self._state_lock:
            self.state = fresh

        duration = (self._clock() - cycle_start).total_seconds()
        logger.info(f"Finished {self.name} collection in {duration:.1f}s")

        if self.cache_manager is not None:
            try:
                self.cache_manager.save(fresh, cycle_start)
            except SnapshotWriteError as e:
                logger.error(f"Failed to save {self.name} state to cache, retrying next cycle: {e}")

        return True

    def start(self, stop_event: threading.Event) -> None:
        """Restore from cache, then collect until stop_event is set."""
        restored = self.restore()
        self.scheduler.run(self._cycle, stop_event, initial_delay=restored)

    def _cycle(self) -> None:
        self.run_cycle()


__all__ = ["Collector"]
