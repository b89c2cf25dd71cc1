"""
Collector registry.

Built once at startup and handed to whoever needs the collector list;
there is no process-wide instance.
"""

from collections.abc import Iterator

from .collectors.base import Collector
from .config.loader import ConfigError


class Registry:
    """Collector lookup by ID, keeping registration order."""

    def __init__(self):
        self._collectors: dict[str, Collector] = {}

    def register(self, collector: Collector) -> None:
        """
        Add a collector.

        Raises:
            ConfigError: If the collector ID is empty or already registered
                (the registry is left unchanged)
        """
        collector_id = collector.collector_id
        if not collector_id:
            raise ConfigError(f"Collector ID cannot be empty: {collector!r}")
        if collector_id in self._collectors:
            raise ConfigError(f"Collector already registered: {collector_id}")
        self._collectors[collector_id] = collector

    def get(self, collector_id: str) -> Collector | None:
        return self._collectors.get(collector_id)

    def all(self) -> list[Collector]:
        """All collectors in registration order."""
        return list(self._collectors.values())

    def __contains__(self, collector_id: object) -> bool:
        return collector_id in self._collectors

    def __iter__(self) -> Iterator[Collector]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._collectors)
