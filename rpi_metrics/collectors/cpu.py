"""
CPU utilization collector from /proc/stat.

Utilization is a rate: it needs two observations of the tick
counters. The first collect() only records a baseline and returns no
samples; every later call reports the busy share of the ticks elapsed
since the previous call, overall and per core.

/proc/stat lines look like:

    cpu  4705 356 584 3699 23 23 0 0 0 0
    cpu0 1393 280 234 1837 12 15 0 0 0 0

Fields are user, nice, system, idle, iowait, irq, softirq, steal, ...
"""

import asyncio
from pathlib import Path
from typing import NamedTuple

from ..const import DEFAULT_PROC_STAT_PATH
from ..models import Sample
from ..models.sample import utc_now
from .base import Collector, MalformedReadingError


class CPUCounters(NamedTuple):
    """Tick counters of one stat line."""

    idle: int  # idle + iowait
    total: int


def parse_proc_stat(text: str, source: str = DEFAULT_PROC_STAT_PATH) -> dict[str, CPUCounters]:
    """
    Parse the cpu lines at the top of /proc/stat.

    Parsing stops at the first line that is not a cpu line. Lines with
    too few fields are skipped. The returned dict keeps file order, so
    the aggregate "cpu" line comes first.

    Raises:
        MalformedReadingError: If a counter is not a non-negative integer,
            or no cpu line is present
    """
    counters: dict[str, CPUCounters] = {}

    for line in text.splitlines():
        if not line.startswith("cpu"):
            break

        fields = line.split()
        if len(fields) < 5:
            continue

        cpu_id, raw_values = fields[0], fields[1:]
        values = []
        for raw in raw_values:
            if not (raw.isascii() and raw.isdigit()):
                raise MalformedReadingError(f"parse {source} field {raw!r} of {cpu_id}")
            values.append(int(raw))

        idle = values[3] + (values[4] if len(values) > 4 else 0)
        counters[cpu_id] = CPUCounters(idle=idle, total=sum(values))

    if not counters:
        raise MalformedReadingError(f"read {source}: no cpu stats found")

    return counters


def compute_utilization(
    previous: dict[str, CPUCounters], current: dict[str, CPUCounters]
) -> list[tuple[str, float]]:
    """
    Busy percentage per CPU between two snapshots.

    Cores missing from either snapshot, or whose total did not advance
    (no elapsed ticks, counter reset), are left out.

    Returns:
        (cpu_id, percent) pairs in the order of the current snapshot,
        each percent clamped to [0, 100]
    """
    usage = []
    for cpu_id, curr in current.items():
        prev = previous.get(cpu_id)
        if prev is None:
            continue

        delta_total = curr.total - prev.total
        if delta_total <= 0:
            continue
        delta_idle = curr.idle - prev.idle

        percent = (delta_total - delta_idle) / delta_total * 100.0
        usage.append((cpu_id, min(max(percent, 0.0), 100.0)))

    return usage


class CPUUtilizationCollector(Collector):
    """
    Stateful collector for CPU utilization.

    The previous snapshot is owned by the instance and only replaced
    after a complete, successful read; a failed read keeps the old
    baseline for the next call.
    """

    COLLECTOR_ID = "cpu_utilization"

    # Label value used for the aggregate "cpu" line
    TOTAL_LABEL = "total"

    def __init__(self, path: str = DEFAULT_PROC_STAT_PATH, collector_id: str | None = None):
        super().__init__(collector_id)
        self.path = path or DEFAULT_PROC_STAT_PATH

        self._lock = asyncio.Lock()
        self._last: dict[str, CPUCounters] | None = None

    async def collect(self) -> list[Sample]:
        """Report utilization since the previous call."""
        current = parse_proc_stat(Path(self.path).read_text(), self.path)

        async with self._lock:
            previous, self._last = self._last, current

        if previous is None:
            return []

        now = utc_now()
        samples = []
        for cpu_id, percent in compute_utilization(previous, current):
            label = self.TOTAL_LABEL if cpu_id == "cpu" else cpu_id
            samples.append(
                Sample(
                    name="cpu_utilization",
                    value=percent,
                    unit="percent",
                    timestamp=now,
                    labels={"source": "procfs", "path": self.path, "cpu": label},
                )
            )

        return samples
