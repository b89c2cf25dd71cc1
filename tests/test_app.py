"""
Tests for application wiring and the collection/notification loops.
"""

import asyncio
import io
import json
from pathlib import Path

import pytest

from rpi_metrics.app import Application, LatestResult, build_log_config, create_collectors
from rpi_metrics.config.loader import ConfigLoader
from rpi_metrics.exporters import ConsoleExporter, Exporter
from rpi_metrics.models import Result


class RecordingExporter(Exporter):
    def __init__(self):
        self.results: list[Result] = []

    async def export(self, result: Result) -> None:
        self.results.append(result)


class FailingExporter(Exporter):
    async def export(self, result: Result) -> None:
        raise RuntimeError("down")


@pytest.fixture
def config(tmp_path: Path, mountinfo_path: Path):
    """Config pointing every collector at files under tmp_path."""
    (tmp_path / "temp").write_text("50000\n")
    (tmp_path / "cur_state").write_text("1\n")
    (tmp_path / "stat").write_text("cpu  1 0 1 8 0\ncpu0 1 0 1 8 0\n")

    return ConfigLoader().load_string(
        f"""
        defaults {{ update_interval 50ms; }}
        temperature {{ path "{tmp_path / 'temp'}"; }}
        cooling {{ path "{tmp_path / 'cur_state'}"; }}
        cpu {{ path "{tmp_path / 'stat'}"; }}
        storage {{
            path "{tmp_path}";
            mountinfo "{mountinfo_path}";
        }}
        """
    )


def test_create_collectors_order(config) -> None:
    ids = [c.collector_id for c in create_collectors(config)]

    assert ids == ["cpu_temp", "cpu_utilization", "cpu_cooling_device", "storage_usage"]


def test_create_collectors_respects_enabled() -> None:
    config = ConfigLoader().load_string(
        "temperature { enabled off; } cooling { enabled off; } storage { enabled false; }"
    )

    assert [c.collector_id for c in create_collectors(config)] == ["cpu_utilization"]


def test_exporters_from_config() -> None:
    app = Application(ConfigLoader().load_string(""))
    assert isinstance(app.console, ConsoleExporter)
    assert app.webhook is None

    app = Application(
        ConfigLoader().load_string('webhook { url "https://example.com/h"; every 1m; }')
    )
    assert app.console is None
    assert app.webhook is not None


@pytest.mark.asyncio
async def test_latest_result() -> None:
    latest = LatestResult()
    assert await latest.get() is None

    result = Result()
    await latest.set(result)
    assert await latest.get() is result


@pytest.mark.asyncio
async def test_collect_tick(config, tmp_path: Path) -> None:
    out = io.StringIO()
    app = Application(config, console=ConsoleExporter(out))

    first = await app.collect_tick()
    (tmp_path / "stat").write_text("cpu  3 0 3 14 0\ncpu0 3 0 3 14 0\n")
    second = await app.collect_tick()

    assert first.ok and second.ok
    assert await app.latest.get() is second
    # CPU utilization only shows up once a baseline exists
    assert "cpu_utilization" not in {s.name for s in first.samples}
    assert "cpu_utilization" in {s.name for s in second.samples}

    records = [json.loads(line) for line in out.getvalue().splitlines()]
    assert len(records) == 2
    assert records[0]["samples"][0]["name"] == "cpu_temperature"


@pytest.mark.asyncio
async def test_collect_tick_records_errors(config, tmp_path: Path) -> None:
    (tmp_path / "temp").unlink()
    app = Application(config, console=RecordingExporter())

    result = await app.collect_tick()

    assert [e.collector_id for e in result.errors] == ["cpu_temp"]
    assert any(s.name == "cooling_state" for s in result.samples)


@pytest.mark.asyncio
async def test_notify_tick(config) -> None:
    webhook = RecordingExporter()
    app = Application(config, console=RecordingExporter(), webhook=webhook)

    await app.notify_tick()
    assert webhook.results == []

    result = await app.collect_tick()
    await app.notify_tick()
    assert webhook.results == [result]


@pytest.mark.asyncio
async def test_export_failure_does_not_stop_tick(config) -> None:
    app = Application(config, console=FailingExporter())

    result = await app.collect_tick()

    assert await app.latest.get() is result


@pytest.mark.asyncio
async def test_collection_loop_stops_on_shutdown(config) -> None:
    console = RecordingExporter()
    app = Application(config, console=console)

    task = asyncio.create_task(app._run_loop("collection", 0.01, app.collect_tick))
    await asyncio.sleep(0.1)
    app.request_shutdown()
    await asyncio.wait_for(task, timeout=1)

    assert len(console.results) >= 2


@pytest.mark.asyncio
async def test_loop_runs_at_fixed_rate(config) -> None:
    app = Application(config, console=RecordingExporter())
    waits: list[float] = []

    async def record_wait(timeout: float) -> bool:
        waits.append(timeout)
        return len(waits) < 3

    async def slow_tick() -> None:
        await asyncio.sleep(0.1)

    app._wait_tick = record_wait
    await app._run_loop("collection", 0.3, slow_tick)

    # Tick time comes out of the wait, not on top of it
    assert len(waits) == 3
    assert waits[0] < 0.25
    assert waits[0] == pytest.approx(0.2, abs=0.05)


@pytest.mark.asyncio
async def test_loop_drops_missed_deadlines(config) -> None:
    app = Application(config, console=RecordingExporter())
    waits: list[float] = []

    async def record_wait(timeout: float) -> bool:
        waits.append(timeout)
        return len(waits) < 2

    async def overrunning_tick() -> None:
        await asyncio.sleep(0.1)

    app._wait_tick = record_wait
    await app._run_loop("collection", 0.01, overrunning_tick)

    assert waits == [0.0, 0.0]


@pytest.mark.asyncio
async def test_stop_cancels_stuck_tasks(config) -> None:
    app = Application(config, console=RecordingExporter())
    stuck = asyncio.create_task(asyncio.sleep(60))
    app._tasks.append(stuck)

    await app.stop(timeout=0.01)

    assert stuck.cancelled()
    assert app._tasks == []


def test_build_log_config_from_file_settings() -> None:
    config = ConfigLoader().load_string(
        'logging { level debug; colors off; file "/tmp/rpi-metrics.log"; }'
    )

    log_config = build_log_config(config)

    assert log_config.console_level == "debug"
    assert log_config.console_colors is False
    assert log_config.file_enabled
    assert log_config.file_path == "/tmp/rpi-metrics.log"


def test_build_log_config_cli_wins() -> None:
    config = ConfigLoader().load_string(
        'logging { level debug; colors off; format "X %(message)s"; file "/tmp/a.log"; }'
    )

    log_config = build_log_config(config, {"console_level": "error"})

    assert log_config.console_level == "error"
    # Settings the command line did not touch still come from the file
    assert log_config.console_colors is False
    assert log_config.format == "X %(message)s"
    assert log_config.file_path == "/tmp/a.log"
