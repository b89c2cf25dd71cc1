"""
Base collector interface for metric collection.

All collectors inherit from the abstract Collector class and implement
the collect() method. A collector either returns its samples or raises;
the runner turns the exception into a CollectorError so a failing
collector never hides the others.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from ..models import Sample


class CollectionError(Exception):
    """A collector could not produce its samples."""


class MalformedReadingError(CollectionError, ValueError):
    """A source was readable but held a value that does not parse."""


def read_int(path: str | Path) -> int:
    """
    Read a pseudo-file holding a single integer.

    Raises:
        OSError: If the file cannot be read
        MalformedReadingError: If the content is not an integer
    """
    raw = Path(path).read_text().strip()
    try:
        return int(raw)
    except ValueError as e:
        raise MalformedReadingError(f"parse {path}: {raw!r} is not an integer") from e


class Collector(ABC):
    """
    Abstract base class for metric collectors.

    Each collector owns one metric family and is identified by a short
    stable collector_id, used for error attribution and registry
    deduplication.
    """

    # Default collector ID (override in subclasses)
    COLLECTOR_ID: str = ""

    def __init__(self, collector_id: str | None = None):
        self.collector_id = collector_id or self.COLLECTOR_ID

    @abstractmethod
    async def collect(self) -> list[Sample]:
        """
        Collect samples from the source.

        Returns:
            Samples for this metric family (may be empty)

        Raises:
            OSError: If the source cannot be read
            CollectionError: If the source content is unusable
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.collector_id!r})"
