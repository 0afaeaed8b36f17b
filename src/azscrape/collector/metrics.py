"""Metric state held by a collector between scrapes."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class MetricSample:
    """Single labelled metric value."""

    labels: dict[str, str] = field(default_factory=dict)
    value: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"labels": dict(self.labels), "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MetricSample":
        """Create from dictionary.

        Raises:
            ValueError: If labels or value have the wrong shape
        """
        labels = data.get("labels")
        if labels is None:
            labels = {}
        if not isinstance(labels, dict):
            raise ValueError(f"metric labels must be a mapping, got {type(labels).__name__}")
        value = data.get("value", 0.0)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"metric value must be a number, got {value!r}")
        return cls(labels={str(k): str(v) for k, v in labels.items()}, value=float(value))


class MetricList:
    """Ordered list of samples for one metric name."""

    def __init__(self, name: str, samples: list[MetricSample] | None = None):
        self.name = name
        self.samples: list[MetricSample] = list(samples or [])

    def add(self, labels: dict[str, str], value: float = 1.0) -> None:
        self.samples.append(
            MetricSample(labels={str(k): str(v) for k, v in labels.items()}, value=float(value))
        )

    def replace(self, samples: list[MetricSample]) -> None:
        self.samples = list(samples)

    def reset(self) -> None:
        self.samples = []

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self):
        return iter(self.samples)

    def __repr__(self) -> str:
        return f"MetricList(name={self.name!r}, samples={len(self.samples)})"


class CollectorState:
    """Live metric state of a collector.

    Metrics must be registered before they are filled or restored; a
    snapshot never introduces metric names the collector does not know.

    Attributes:
        metrics: Registered metric lists by name
        last_scrape_time: Start time of the scrape that produced the metrics
        expiry: Time after which the metrics are due for a refresh
    """

    def __init__(self) -> None:
        self.metrics: dict[str, MetricList] = {}
        self.last_scrape_time: datetime | None = None
        self.expiry: datetime | None = None

    def register(self, name: str) -> MetricList:
        """Register a metric (idempotent) and return its list."""
        if name not in self.metrics:
            self.metrics[name] = MetricList(name)
        return self.metrics[name]

    def get(self, name: str) -> MetricList:
        """Get a registered metric list.

        Raises:
            KeyError: If the metric is not registered
        """
        return self.metrics[name]

    def reset(self) -> None:
        """Clear samples of all metrics, keeping registrations."""
        for metric_list in self.metrics.values():
            metric_list.reset()

    def snapshot_metrics(self) -> dict[str, list[MetricSample]]:
        """Copy of all samples by metric name."""
        return {name: list(metric_list.samples) for name, metric_list in self.metrics.items()}


__all__ = ["CollectorState", "MetricList", "MetricSample"]
