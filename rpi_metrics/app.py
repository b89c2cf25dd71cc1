"""
Main application orchestrator.

Handles:
- Collector construction and registration
- The collection loop (collect, cache, console export)
- The notification loop (webhook export of the cached result)
- Graceful shutdown
"""

import asyncio
import dataclasses
import signal
from collections.abc import Awaitable, Callable
from typing import Any

from .collectors import (
    Collector,
    CoolingDeviceCollector,
    CPUTemperatureCollector,
    CPUUtilizationCollector,
    StorageCollector,
)
from .config.loader import ConfigLoader
from .config.schema import Config
from .const import APP_NAME, SHUTDOWN_TIMEOUT
from .exporters import ConsoleExporter, Exporter, WebhookExporter
from .logging import LogConfig, get_logger, setup_logging
from .models import Result
from .registry import Registry
from .runner import Runner

logger = get_logger("app")


class LatestResult:
    """
    The most recent completed Result, shared between the loops.

    Results are immutable, so handing out the stored reference is a
    consistent snapshot.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._result: Result | None = None

    async def set(self, result: Result) -> None:
        async with self._lock:
            self._result = result

    async def get(self) -> Result | None:
        async with self._lock:
            return self._result


def create_collectors(config: Config) -> list[Collector]:
    """Create the enabled collectors in their fixed order."""
    collectors: list[Collector] = []

    if config.temperature.enabled:
        collectors.append(CPUTemperatureCollector(config.temperature.path))

    if config.cpu.enabled:
        collectors.append(CPUUtilizationCollector(config.cpu.path))

    if config.cooling.enabled:
        collectors.append(CoolingDeviceCollector(config.cooling.path))

    if config.storage.enabled:
        collectors.append(
            StorageCollector(config.storage.paths, mountinfo_path=config.storage.mountinfo)
        )

    return collectors


class Application:
    """
    Main application class.

    Runs the collection loop and, when a webhook is configured, an
    independent notification loop. Both loops only look at the shutdown
    event between ticks: an in-flight read or HTTP post is allowed to
    finish.
    """

    def __init__(
        self,
        config: Config,
        console: Exporter | None = None,
        webhook: Exporter | None = None,
    ):
        """
        Initialize application.

        Args:
            config: Application configuration
            console: Console exporter override (defaults from config)
            webhook: Webhook exporter override (defaults from config)

        Raises:
            ConfigError: If a collector cannot be registered
        """
        self.config = config

        self.registry = Registry()
        for collector in create_collectors(config):
            self.registry.register(collector)
        self.runner = Runner(self.registry.all())

        if console is None and config.console_active:
            console = ConsoleExporter()
        self.console = console

        if webhook is None and config.webhook.active:
            webhook = WebhookExporter(
                config.webhook.url,
                min_interval=config.webhook.min_interval,
                timeout=config.webhook.timeout,
            )
        self.webhook = webhook

        self.latest = LatestResult()

        self._tasks: list[asyncio.Task] = []
        self._shutdown_event = asyncio.Event()

    async def _wait_tick(self, interval: float) -> bool:
        """Sleep until the next tick. Returns False once shutdown is requested."""
        try:
            await asyncio.wait_for(self._shutdown_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            return True
        return False

    async def _export(self, exporter: Exporter, result: Result) -> None:
        try:
            await exporter.export(result)
        except Exception as e:
            logger.error(f"{exporter!r} export failed: {e}")

    async def collect_tick(self) -> Result:
        """One collection tick: collect, publish to the cache, print."""
        result = await self.runner.collect_once()
        await self.latest.set(result)

        if self.console is not None:
            await self._export(self.console, result)

        return result

    async def notify_tick(self) -> None:
        """One notification tick: export the cached result, if any."""
        if self.webhook is None:
            return
        result = await self.latest.get()
        if result is None:
            logger.debug("No result collected yet, skipping notification")
            return
        await self._export(self.webhook, result)

    async def _run_loop(self, name: str, interval: float, tick: Callable[[], Awaitable]) -> None:
        """
        Run tick at a fixed rate.

        Deadlines advance by interval from the loop start, so the time a
        tick takes does not push later ticks back. Deadlines already missed
        by a slow tick are dropped rather than run back to back.
        """
        logger.info(f"Starting {name} loop (interval: {interval}s)")
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while not self._shutdown_event.is_set():
            await tick()
            deadline += interval
            now = loop.time()
            if deadline < now:
                deadline = now
            if not await self._wait_tick(deadline - now):
                break
        logger.info(f"{name.capitalize()} loop stopped")

    async def _notification_loop(self) -> None:
        # First notification waits a full interval so a result exists
        if await self._wait_tick(self.config.webhook.every):
            await self._run_loop("notification", self.config.webhook.every, self.notify_tick)

    def _setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.request_shutdown)

    def request_shutdown(self) -> None:
        """Ask both loops to stop at their next tick boundary."""
        logger.info("Shutdown requested")
        self._shutdown_event.set()

    async def start(self) -> None:
        """Start the loops and wait for shutdown."""
        logger.info(f"Starting {APP_NAME}")
        logger.info(
            f"Collectors: {', '.join(c.collector_id for c in self.registry) or 'none'}"
        )

        self._setup_signal_handlers()

        self._tasks.append(
            asyncio.create_task(
                self._run_loop(
                    "collection", self.config.defaults.update_interval, self.collect_tick
                )
            )
        )
        if self.webhook is not None:
            self._tasks.append(asyncio.create_task(self._notification_loop()))

        logger.info(f"{APP_NAME} started")

        await self._shutdown_event.wait()
        await self.stop()

    async def stop(self, timeout: float = SHUTDOWN_TIMEOUT) -> None:
        """Stop the application, giving in-flight ticks up to timeout seconds."""
        logger.info(f"Stopping {APP_NAME}")
        self._shutdown_event.set()

        if self._tasks:
            _, pending = await asyncio.wait(self._tasks, timeout=timeout)
            for task in pending:
                logger.warning(f"Cancelling task still running after {timeout}s: {task!r}")
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        self._tasks.clear()
        logger.info(f"{APP_NAME} stopped")

    async def run(self) -> None:
        """Run the application until shutdown."""
        try:
            await self.start()
        except Exception as e:
            logger.error(f"Application error: {e}")
            raise


def build_log_config(config: Config, cli_overrides: dict[str, Any] | None = None) -> LogConfig:
    """
    Merge the file logging settings with CLI overrides.

    Only the LogConfig fields named in cli_overrides replace the file
    settings; everything else comes from the logging block.
    """
    file_config = LogConfig(
        console_level=config.logging.level,
        console_colors=config.logging.colors,
        file_enabled=config.logging.file is not None,
        file_path=config.logging.file or LogConfig.file_path,
        file_level=config.logging.file_level,
        file_max_bytes=config.logging.file_max_size * 1024 * 1024,
        file_backup_count=config.logging.file_keep,
        format=config.logging.format,
    )
    return dataclasses.replace(file_config, **(cli_overrides or {}))


async def run_app(config_path: str | None, cli_overrides: dict[str, Any] | None = None) -> None:
    """
    Load configuration and run the application.

    Args:
        config_path: Path to configuration file (None = built-in defaults)
        cli_overrides: LogConfig fields set on the command line (win over the file)

    Raises:
        ConfigError: If the configuration cannot be loaded or collectors
            cannot be registered
    """
    loader = ConfigLoader()
    config = loader.load_file(config_path) if config_path else Config()

    setup_logging(build_log_config(config, cli_overrides))

    if config_path:
        logger.info(f"Loaded configuration from {config_path}")
    else:
        logger.info("No configuration file, using built-in defaults")

    for warning in loader.validate(config):
        logger.warning(f"Config warning: {warning}")

    app = Application(config)
    await app.run()
