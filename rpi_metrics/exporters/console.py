"""
JSON Lines console exporter.

Writes one JSON object per Result:

    {"collected_at": "...", "samples": [...], "errors": [...]}
"""

import json
import sys
from typing import Any, TextIO

from ..models import Result
from ..models.sample import format_timestamp, utc_now
from .base import Exporter


class ConsoleExporter(Exporter):
    """Writes each Result as a single JSON line."""

    def __init__(self, out: TextIO | None = None):
        self._out = out

    @property
    def out(self) -> TextIO:
        # Resolved lazily so a replaced sys.stdout is honoured
        return self._out if self._out is not None else sys.stdout

    @staticmethod
    def to_record(result: Result) -> dict[str, Any]:
        """Build the JSON record for a Result."""
        record: dict[str, Any] = {
            "collected_at": format_timestamp(utc_now()),
            "samples": [s.to_json_dict() for s in result.samples],
        }
        if result.errors:
            record["errors"] = [e.to_json_dict() for e in result.errors]
        return record

    async def export(self, result: Result) -> None:
        line = json.dumps(self.to_record(result), ensure_ascii=False)
        self.out.write(line + "\n")
        self.out.flush()
