"""Scrape Scheduler - sleep/collect cadence of a collector.

Public API (Studs):
    ScrapeScheduler - Owns the sleep interval between collection cycles
"""

import logging
import threading
from collections.abc import Callable
from datetime import timedelta

logger = logging.getLogger(__name__)


class ScrapeScheduler:
    """Sleep/collect loop with a one-shot override for the next sleep.

    Without an override every cycle is followed by the full scrape interval.
    A restored snapshot shortens the first wait through
    ``set_next_sleep_duration``.

    Example:
        >>> scheduler = ScrapeScheduler(timedelta(minutes=5))
        >>> scheduler.set_next_sleep_duration(timedelta(minutes=2))
        >>> scheduler.next_sleep_duration()
        datetime.timedelta(seconds=120)
        >>> scheduler.next_sleep_duration()
        datetime.timedelta(seconds=300)
    """

    def __init__(self, scrape_interval: timedelta):
        """Initialize scheduler.

        Args:
            scrape_interval: Configured time between collection cycles

        Raises:
            ValueError: If scrape_interval is not positive
        """
        if scrape_interval <= timedelta(0):
            raise ValueError(f"scrape interval must be positive, got {scrape_interval}")

        self.scrape_interval = scrape_interval
        self._next_sleep: timedelta | None = None
        self._lock = threading.Lock()

    def set_next_sleep_duration(self, duration: timedelta) -> None:
        """Override the duration of the next sleep only."""
        with self._lock:
            self._next_sleep = max(duration, timedelta(0))
        logger.debug(f"Next sleep set to {self._next_sleep}")

    def next_sleep_duration(self) -> timedelta:
        """Consume the override, falling back to the scrape interval."""
        with self._lock:
            duration = self._next_sleep if self._next_sleep is not None else self.scrape_interval
            self._next_sleep = None
        return duration

    def sleep(self, stop_event: threading.Event) -> bool:
        """Sleep for the next duration unless stopped.

        Returns:
            True if the sleep completed, False if stop_event was set
        """
        duration = self.next_sleep_duration()
        logger.debug(f"Sleeping {duration.total_seconds():.0f}s until next collection")
        return not stop_event.wait(duration.total_seconds())

    def run(
        self,
        cycle: Callable[[], None],
        stop_event: threading.Event,
        initial_delay: bool = False,
    ) -> None:
        """Run cycle repeatedly until stop_event is set.

        Args:
            cycle: One collection cycle; must not raise
            stop_event: Set to end the loop
            initial_delay: Sleep before the first cycle (after a restore)
        """
        if initial_delay and not self.sleep(stop_event):
            return

        while not stop_event.is_set():
            cycle()
            if not self.sleep(stop_event):
                break

        logger.info("Scrape loop stopped")


__all__ = ["ScrapeScheduler"]
