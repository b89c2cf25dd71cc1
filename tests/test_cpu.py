"""
Tests for the /proc/stat CPU utilization collector.
"""

from pathlib import Path

import pytest

from rpi_metrics.collectors.base import MalformedReadingError
from rpi_metrics.collectors.cpu import (
    CPUCounters,
    CPUUtilizationCollector,
    compute_utilization,
    parse_proc_stat,
)

STAT_1 = """\
cpu  100 0 100 700 100 0 0 0 0 0
cpu0 50 0 50 350 50 0 0 0 0 0
cpu1 50 0 50 350 50 0 0 0 0 0
intr 12345 0 0
ctxt 999
"""

# 100 more ticks per core: 30 busy / 70 idle on cpu0, 80 busy / 20 idle on cpu1
STAT_2 = """\
cpu  210 0 100 760 130 0 0 0 0 0
cpu0 80 0 50 400 70 0 0 0 0 0
cpu1 130 0 50 360 60 0 0 0 0 0
intr 23456 0 0
"""


def write_stat(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "stat"
    path.write_text(text)
    return path


def test_parse_proc_stat() -> None:
    counters = parse_proc_stat(STAT_1)

    assert list(counters) == ["cpu", "cpu0", "cpu1"]
    assert counters["cpu"] == CPUCounters(idle=800, total=1000)
    assert counters["cpu0"] == CPUCounters(idle=400, total=500)


def test_parse_stops_at_first_non_cpu_line() -> None:
    text = "cpu  1 1 1 1 1\nintr 5\ncpu0 1 1 1 1 1\n"

    assert list(parse_proc_stat(text)) == ["cpu"]


def test_parse_without_iowait() -> None:
    counters = parse_proc_stat("cpu 10 0 10\ncpu0 10 0 10 80\ncpu1 1 2 3 4 5\n")

    # Three counters are too few; four are enough, idle is then just the idle field
    assert list(counters) == ["cpu0", "cpu1"]
    assert counters["cpu0"] == CPUCounters(idle=80, total=100)
    assert counters["cpu1"] == CPUCounters(idle=9, total=15)


def test_parse_malformed_field() -> None:
    with pytest.raises(MalformedReadingError, match="'x1'"):
        parse_proc_stat("cpu 1 2 3 x1 5\n")


def test_parse_negative_field() -> None:
    with pytest.raises(MalformedReadingError):
        parse_proc_stat("cpu 1 2 3 -4 5\n")


def test_parse_no_cpu_lines() -> None:
    with pytest.raises(MalformedReadingError, match="no cpu stats"):
        parse_proc_stat("intr 1 2 3\n")


def test_compute_utilization() -> None:
    usage = dict(compute_utilization(parse_proc_stat(STAT_1), parse_proc_stat(STAT_2)))

    assert usage["cpu0"] == pytest.approx(30.0)
    assert usage["cpu1"] == pytest.approx(80.0)
    assert usage["cpu"] == pytest.approx(55.0)


def test_compute_skips_non_advancing_and_unknown_cores() -> None:
    previous = {"cpu": CPUCounters(10, 100), "cpu0": CPUCounters(5, 50)}
    current = {
        "cpu": CPUCounters(10, 100),  # no elapsed ticks
        "cpu0": CPUCounters(5, 40),  # counter went backwards
        "cpu1": CPUCounters(5, 50),  # not in previous
    }

    assert compute_utilization(previous, current) == []


@pytest.mark.parametrize(
    "prev,curr",
    [
        (CPUCounters(0, 0), CPUCounters(0, 10)),
        (CPUCounters(0, 0), CPUCounters(10, 10)),
        # Idle advanced more than total: clamped to 0
        (CPUCounters(0, 0), CPUCounters(50, 10)),
        # Idle went backwards: clamped to 100
        (CPUCounters(50, 0), CPUCounters(0, 10)),
    ],
)
def test_usage_is_clamped(prev: CPUCounters, curr: CPUCounters) -> None:
    [(_, percent)] = compute_utilization({"cpu": prev}, {"cpu": curr})

    assert 0.0 <= percent <= 100.0


@pytest.mark.asyncio
async def test_first_collect_returns_no_samples(tmp_path: Path) -> None:
    collector = CPUUtilizationCollector(str(write_stat(tmp_path, STAT_1)))

    assert await collector.collect() == []


@pytest.mark.asyncio
async def test_second_collect_reports_utilization(tmp_path: Path) -> None:
    path = write_stat(tmp_path, STAT_1)
    collector = CPUUtilizationCollector(str(path))
    await collector.collect()

    path.write_text(STAT_2)
    samples = await collector.collect()

    by_cpu = {s.labels["cpu"]: s for s in samples}
    assert list(by_cpu) == ["total", "cpu0", "cpu1"]
    assert by_cpu["total"].value == pytest.approx(55.0)
    assert by_cpu["cpu1"].value == pytest.approx(80.0)

    sample = by_cpu["cpu0"]
    assert sample.name == "cpu_utilization"
    assert sample.unit == "percent"
    assert sample.timestamp is not None
    assert sample.labels == {"source": "procfs", "path": str(path), "cpu": "cpu0"}


@pytest.mark.asyncio
async def test_failed_read_keeps_baseline(tmp_path: Path) -> None:
    path = write_stat(tmp_path, STAT_1)
    collector = CPUUtilizationCollector(str(path))
    await collector.collect()

    path.write_text("cpu 1 2 oops 4 5\n")
    with pytest.raises(MalformedReadingError):
        await collector.collect()

    path.unlink()
    with pytest.raises(OSError):
        await collector.collect()

    # Still measured against the first snapshot
    path.write_text(STAT_2)
    samples = await collector.collect()
    assert {s.labels["cpu"]: s.value for s in samples}["cpu0"] == pytest.approx(30.0)


@pytest.mark.asyncio
async def test_unreadable_source_on_first_call(tmp_path: Path) -> None:
    collector = CPUUtilizationCollector(str(tmp_path / "missing"))

    with pytest.raises(OSError):
        await collector.collect()

    # The failed call did not count as the warm-up
    write_stat(tmp_path, STAT_1)
    collector.path = str(tmp_path / "stat")
    assert await collector.collect() == []
