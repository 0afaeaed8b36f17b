"""Collector Cache Manager - Restore-on-start and save-on-completion.

Philosophy:
- A snapshot is applied whole or not at all
- Missing, corrupt, mismatched or expired snapshots mean a cold start,
  never a failure
- A restored snapshot may shorten the next wait, never lengthen it beyond
  the configured scrape interval
- Save failures are reported to the caller, the collected metrics stay live

Public API (Studs):
    CollectorCacheManager - Drives snapshot reads/writes for one collector
    SAFETY_MARGIN - Added to the remaining snapshot lifetime before re-scraping
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from azscrape.cache.cache_spec import CacheSpec
from azscrape.cache.snapshot_store import (
    SnapshotStore,
    SnapshotWriteError,
    StorageUnavailableError,
)
from azscrape.collector.metrics import CollectorState
from azscrape.collector.scheduler import ScrapeScheduler
from azscrape.collector.snapshot import SnapshotDecodeError, SnapshotRecord

logger = logging.getLogger(__name__)

SAFETY_MARGIN = timedelta(seconds=60)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CollectorCacheManager:
    """Persist and restore collector state through a SnapshotStore.

    Example:
        >>> spec = resolve_cache_spec("/var/cache/azscrape/metrics.json", tag="v2")
        >>> manager = CollectorCacheManager(spec, open_snapshot_store(spec), timedelta(minutes=5))
        >>> if manager.restore(state, scheduler):
        ...     print("serving restored metrics")
    """

    def __init__(
        self,
        spec: CacheSpec,
        store: SnapshotStore,
        scrape_interval: timedelta,
        clock: Callable[[], datetime] = _utcnow,
        safety_margin: timedelta = SAFETY_MARGIN,
    ):
        """Initialize cache manager.

        Args:
            spec: Resolved cache spec (carries the invalidation tag)
            store: Snapshot store for spec
            scrape_interval: Configured collector scrape interval
            clock: Returns the current timezone-aware time
            safety_margin: Added to the remaining snapshot lifetime
        """
        self.spec = spec
        self.store = store
        self.scrape_interval = scrape_interval
        self.safety_margin = safety_margin
        self._clock = clock

    @property
    def tag(self) -> str | None:
        return self.spec.tag

    def compute_next_sleep(self, expiry: datetime, now: datetime) -> timedelta:
        """Sleep until the snapshot expires plus margin, capped at the interval."""
        remaining = max(expiry - now, timedelta(0))
        return min(remaining + self.safety_margin, self.scrape_interval)

    def load(self) -> SnapshotRecord | None:
        """Read and decode the stored snapshot.

        Returns:
            SnapshotRecord, or None if absent, unreachable or undecodable
        """
        try:
            content, found = self.store.read()
        except StorageUnavailableError as e:
            logger.warning(f"Cache storage unavailable, starting cold: {e}")
            return None

        if not found:
            logger.info(f"No cached state found at {self.store.location}, starting cold")
            return None

        try:
            return SnapshotRecord.from_json(content)
        except SnapshotDecodeError as e:
            logger.warning(f"Unable to decode cache {self.store.location}: {e}")
            return None

    def is_usable(self, record: SnapshotRecord, now: datetime) -> bool:
        """Check tag and expiry of a decoded snapshot."""
        if self.tag is not None and record.tag != self.tag:
            logger.info(
                f"Cache tag mismatch (expected {self.tag!r}, found {record.tag!r}), ignoring cache"
            )
            return False

        if record.is_expired(now):
            logger.info("Ignoring cached state, already expired")
            return False

        return True

    def restore(self, state: CollectorState, scheduler: ScrapeScheduler | None = None) -> bool:
        """Seed live state from the stored snapshot.

        Each metric list in the snapshot replaces the registered metric of the
        same name; names the collector has not registered are skipped.

        Args:
            state: Live collector state to seed
            scheduler: Scheduler whose next sleep gets shortened

        Returns:
            True if the snapshot was applied
        """
        logger.info(f"Restoring state from cache: {self.spec.raw}")

        record = self.load()
        if record is None:
            return False

        now = self._clock()
        if not self.is_usable(record, now):
            return False

        for name, samples in record.metrics.items():
            metric_list = state.metrics.get(name)
            if metric_list is None:
                logger.debug(f"Skipping unknown cached metric '{name}'")
                continue
            metric_list.replace(samples)

        state.expiry = record.expiry
        if record.created is not None:
            state.last_scrape_time = record.created

        if scheduler is not None:
            scheduler.set_next_sleep_duration(self.compute_next_sleep(record.expiry, now))  # type: ignore[arg-type]

        logger.info(
            f"Restored state from cache: {self.spec.raw} (expiring {record.expiry.isoformat()})"  # type: ignore[union-attr]
        )
        return True

    def save(self, state: CollectorState, cycle_start: datetime) -> SnapshotRecord:
        """Persist current state.

        Args:
            state: Live collector state after a successful cycle
            cycle_start: Start time of the cycle that produced state

        Returns:
            The record that was written

        Raises:
            SnapshotWriteError: If the store could not persist the snapshot
        """
        record = SnapshotRecord(
            created=cycle_start,
            expiry=cycle_start + self.scrape_interval,
            tag=self.tag,
            metrics=state.snapshot_metrics(),
        )

        try:
            content = record.to_json()
        except (TypeError, ValueError) as e:
            raise SnapshotWriteError(f"Failed to serialize snapshot: {e}") from e

        self.store.write(content)
        state.expiry = record.expiry

        logger.info(
            f"Saved state to cache: {self.spec.raw} (expiring {record.expiry.isoformat()})"  # type: ignore[union-attr]
        )
        return record


__all__ = ["SAFETY_MARGIN", "CollectorCacheManager"]
