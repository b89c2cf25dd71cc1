"""
Sample and Result records passed from collectors to exporters.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """Format a timestamp as RFC 3339 in UTC with a 'Z' suffix."""
    return ts.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class Sample:
    """
    A single measurement.

    A timestamp of None means "not stamped yet"; the runner fills it in
    before the sample leaves a collection cycle.
    """

    name: str
    value: float
    unit: str = ""
    timestamp: datetime | None = None
    labels: dict[str, str] = field(default_factory=dict)

    def to_json_dict(self) -> dict[str, Any]:
        """Get data dict for JSON serialization."""
        data: dict[str, Any] = {"name": self.name, "value": self.value}
        if self.unit:
            data["unit"] = self.unit
        data["ts"] = format_timestamp(self.timestamp) if self.timestamp else None
        if self.labels:
            data["labels"] = dict(self.labels)
        return data


@dataclass(frozen=True)
class CollectorError:
    """A failed collector invocation, attributed by collector ID."""

    collector_id: str
    message: str

    def to_json_dict(self) -> dict[str, str]:
        return {"collector": self.collector_id, "error": self.message}


@dataclass(frozen=True)
class Result:
    """Snapshot of one collection cycle."""

    samples: tuple[Sample, ...] = ()
    errors: tuple[CollectorError, ...] = ()

    @property
    def ok(self) -> bool:
        """True when every collector succeeded."""
        return not self.errors

    def __repr__(self) -> str:
        return f"Result({len(self.samples)} samples, {len(self.errors)} errors)"
