"""Snapshot Record Module - Persisted collector results.

Wire format (JSON, UTF-8):

    {
        "created": "2026-10-19T08:00:00+00:00",
        "expiry": "2026-10-19T08:05:00+00:00",
        "tag": "v2",
        "metrics": {
            "azurerm_resourcegroup_info": [
                {"labels": {"resource_group": "rg1"}, "value": 1.0}
            ]
        }
    }

Unknown fields are ignored on read so newer writers stay readable.

Public API (the "studs"):
    SnapshotRecord: Persisted snapshot data model
    SnapshotDecodeError: Corrupt or incompatible snapshot
"""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from azscrape.collector.metrics import MetricSample


class SnapshotDecodeError(Exception):
    """Raised when snapshot bytes cannot be decoded."""

    pass


def _parse_time(value: Any, field_name: str) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise SnapshotDecodeError(f"'{field_name}' must be an ISO-8601 string, got {value!r}")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise SnapshotDecodeError(f"'{field_name}' is not a valid timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _format_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


@dataclass
class SnapshotRecord:
    """Collector results plus restore metadata.

    Attributes:
        created: Start time of the scrape that produced the metrics
        expiry: Time after which the snapshot must not be restored
        tag: Invalidation tag the snapshot was written with
        metrics: Ordered samples by metric name
    """

    created: datetime | None = None
    expiry: datetime | None = None
    tag: str | None = None
    metrics: dict[str, list[MetricSample]] = field(default_factory=dict)

    def is_expired(self, now: datetime) -> bool:
        """Snapshots without expiry count as expired."""
        return self.expiry is None or self.expiry <= now

    def to_dict(self) -> dict[str, Any]:
        return {
            "created": _format_time(self.created),
            "expiry": _format_time(self.expiry),
            "tag": self.tag,
            "metrics": {
                name: [sample.to_dict() for sample in samples]
                for name, samples in self.metrics.items()
            },
        }

    def to_json(self) -> bytes:
        """Serialize to UTF-8 JSON bytes."""
        return json.dumps(self.to_dict(), sort_keys=True).encode("utf-8")

    @classmethod
    def from_dict(cls, data: Any) -> "SnapshotRecord":
        """Create from decoded JSON.

        Raises:
            SnapshotDecodeError: If required structure is missing or malformed
        """
        if not isinstance(data, dict):
            raise SnapshotDecodeError(f"snapshot must be a JSON object, got {type(data).__name__}")

        tag = data.get("tag")
        if tag is not None and not isinstance(tag, str):
            raise SnapshotDecodeError(f"'tag' must be a string, got {tag!r}")

        raw_metrics = data.get("metrics")
        if raw_metrics is None:
            raw_metrics = {}
        if not isinstance(raw_metrics, dict):
            raise SnapshotDecodeError("'metrics' must be a mapping of metric name to sample list")

        metrics: dict[str, list[MetricSample]] = {}
        for name, raw_samples in raw_metrics.items():
            if not isinstance(raw_samples, list):
                raise SnapshotDecodeError(f"samples of metric '{name}' must be a list")
            try:
                metrics[name] = [MetricSample.from_dict(sample) for sample in raw_samples]
            except (AttributeError, TypeError, ValueError, OverflowError) as e:
                raise SnapshotDecodeError(f"invalid sample in metric '{name}': {e}") from e

        return cls(
            created=_parse_time(data.get("created"), "created"),
            expiry=_parse_time(data.get("expiry"), "expiry"),
            tag=tag,
            metrics=metrics,
        )

    @classmethod
    def from_json(cls, content: bytes) -> "SnapshotRecord":
        """Deserialize from JSON bytes.

        Raises:
            SnapshotDecodeError: If content is not a valid snapshot
        """
        try:
            data = json.loads(content.decode("utf-8"))
        except (ValueError, RecursionError) as e:
            raise SnapshotDecodeError(f"snapshot is not valid JSON: {e}") from e
        return cls.from_dict(data)


__all__ = ["SnapshotDecodeError", "SnapshotRecord"]
