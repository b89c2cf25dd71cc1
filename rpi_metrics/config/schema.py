"""
Configuration schema with dataclasses for validation and type safety.

Defines all configuration sections, their fields and defaults. Every
section is optional; a missing block yields the built-in defaults.
"""

from dataclasses import dataclass, field

from ..const import (
    DEFAULT_COOLING_DEVICE_PATH,
    DEFAULT_CPU_TEMP_PATH,
    DEFAULT_MOUNTINFO_PATH,
    DEFAULT_PROC_STAT_PATH,
    DEFAULT_STORAGE_PATHS,
    DEFAULT_UPDATE_INTERVAL,
    WEBHOOK_TIMEOUT,
)
from .parser import Block, ConfigDocument


def _seconds(block: Block, name: str, default: float) -> float:
    """
    Read a duration directive in seconds; bare numbers are taken as seconds too.

    Raises:
        ValueError: If the value is not a number or duration (e.g. quoted "10m")
    """
    value = block.get_value(name)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{block.type}.{name} must be a number or duration, got {value!r}")
    return float(value)


@dataclass
class DefaultsConfig:
    """Settings shared by every collector."""

    update_interval: float = DEFAULT_UPDATE_INTERVAL

    @classmethod
    def from_block(cls, block: Block | None) -> "DefaultsConfig":
        if block is None:
            return cls()
        return cls(
            update_interval=_seconds(block, "update_interval", DEFAULT_UPDATE_INTERVAL),
        )


@dataclass
class SourceConfig:
    """A collector reading a single pseudo-file."""

    enabled: bool = True
    path: str = ""

    @classmethod
    def from_block(cls, block: Block | None, default_path: str) -> "SourceConfig":
        if block is None:
            return cls(path=default_path)
        return cls(
            enabled=bool(block.get_value("enabled", True)),
            path=str(block.get_value("path", default_path)),
        )


@dataclass
class StorageConfig:
    """Filesystem usage collector configuration."""

    enabled: bool = True
    paths: list[str] = field(default_factory=lambda: list(DEFAULT_STORAGE_PATHS))
    mountinfo: str = DEFAULT_MOUNTINFO_PATH

    @classmethod
    def from_block(cls, block: Block | None) -> "StorageConfig":
        if block is None:
            return cls()

        paths = [str(p) for p in block.get_all_values("path")]
        return cls(
            enabled=bool(block.get_value("enabled", True)),
            paths=paths or list(DEFAULT_STORAGE_PATHS),
            mountinfo=str(block.get_value("mountinfo", DEFAULT_MOUNTINFO_PATH)),
        )


@dataclass
class ConsoleConfig:
    """JSON Lines console output configuration."""

    enabled: bool = True
    # Keep printing when the webhook is active
    also_with_webhook: bool = False

    @classmethod
    def from_block(cls, block: Block | None) -> "ConsoleConfig":
        if block is None:
            return cls()
        return cls(
            enabled=bool(block.get_value("enabled", True)),
            also_with_webhook=bool(block.get_value("also_with_webhook", False)),
        )


@dataclass
class WebhookConfig:
    """Chat webhook notifier configuration."""

    url: str = ""
    every: float = 0.0  # 0 disables the notification loop
    min_interval: float = 0.0
    timeout: float = WEBHOOK_TIMEOUT

    @classmethod
    def from_block(cls, block: Block | None) -> "WebhookConfig":
        if block is None:
            return cls()
        return cls(
            url=str(block.get_value("url", "")),
            every=_seconds(block, "every", 0.0),
            min_interval=_seconds(block, "min_interval", 0.0),
            timeout=_seconds(block, "timeout", WEBHOOK_TIMEOUT),
        )

    @property
    def active(self) -> bool:
        """Whether the notification loop should run."""
        return bool(self.url) and self.every > 0


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"  # debug, info, warning, error
    file: str | None = None  # Log file path
    file_level: str = "debug"  # File log level
    file_max_size: int = 10  # Max file size in MB
    file_keep: int = 5  # Number of backup files to keep
    colors: bool = True  # Colored console output
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    @classmethod
    def from_block(cls, block: Block | None) -> "LoggingConfig":
        if block is None:
            return cls()

        defaults = cls()
        return cls(
            level=str(block.get_value("level", defaults.level)),
            file=block.get_value("file"),
            file_level=str(block.get_value("file_level", defaults.file_level)),
            file_max_size=int(block.get_value("file_max_size", defaults.file_max_size)),
            file_keep=int(block.get_value("file_keep", defaults.file_keep)),
            colors=bool(block.get_value("colors", defaults.colors)),
            format=str(block.get_value("format", defaults.format)),
        )


@dataclass
class Config:
    """Complete application configuration."""

    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    temperature: SourceConfig = field(
        default_factory=lambda: SourceConfig(path=DEFAULT_CPU_TEMP_PATH)
    )
    cooling: SourceConfig = field(
        default_factory=lambda: SourceConfig(path=DEFAULT_COOLING_DEVICE_PATH)
    )
    cpu: SourceConfig = field(default_factory=lambda: SourceConfig(path=DEFAULT_PROC_STAT_PATH))
    storage: StorageConfig = field(default_factory=StorageConfig)
    console: ConsoleConfig = field(default_factory=ConsoleConfig)
    webhook: WebhookConfig = field(default_factory=WebhookConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_document(cls, doc: ConfigDocument) -> "Config":
        """Create Config from a parsed ConfigDocument."""
        return cls(
            defaults=DefaultsConfig.from_block(doc.get_block("defaults")),
            temperature=SourceConfig.from_block(doc.get_block("temperature"), DEFAULT_CPU_TEMP_PATH),
            cooling=SourceConfig.from_block(doc.get_block("cooling"), DEFAULT_COOLING_DEVICE_PATH),
            cpu=SourceConfig.from_block(doc.get_block("cpu"), DEFAULT_PROC_STAT_PATH),
            storage=StorageConfig.from_block(doc.get_block("storage")),
            console=ConsoleConfig.from_block(doc.get_block("console")),
            webhook=WebhookConfig.from_block(doc.get_block("webhook")),
            logging=LoggingConfig.from_block(doc.get_block("logging")),
        )

    @property
    def console_active(self) -> bool:
        """Console output runs unless the webhook replaces it."""
        if not self.console.enabled:
            return False
        return not self.webhook.active or self.console.also_with_webhook
