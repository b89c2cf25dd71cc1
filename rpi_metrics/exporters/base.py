"""
Base exporter interface.

An exporter consumes a finished Result. Errors are raised to the
caller, which logs them; the next scheduled export is the only retry.
"""

from abc import ABC, abstractmethod

from ..models import Result


class Exporter(ABC):
    """Abstract base class for result sinks."""

    @abstractmethod
    async def export(self, result: Result) -> None:
        """Deliver one Result."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
