"""
Configuration loader with file reading and validation.
"""

from pathlib import Path

from .lexer import LexerError
from .parser import Block, ConfigDocument, ParseError, parse_config, parse_config_file
from .schema import Config


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


class ConfigLoader:
    """
    Loads and validates configuration from files or strings.

    Usage:
        loader = ConfigLoader()
        config = loader.load_file("/etc/rpi-metrics/config.conf")
        # or
        config = loader.load_string(config_text)
    """

    # Known directives for each block type
    KNOWN_DIRECTIVES = {
        "defaults": {"update_interval"},
        "temperature": {"enabled", "path"},
        "cooling": {"enabled", "path"},
        "cpu": {"enabled", "path"},
        "storage": {"enabled", "path", "mountinfo"},
        "console": {"enabled", "also_with_webhook"},
        "webhook": {"url", "every", "min_interval", "timeout"},
        "logging": {"level", "file", "file_level", "file_max_size", "file_keep", "colors", "format"},
    }

    def __init__(self):
        self.last_document: ConfigDocument | None = None

    def load_file(self, path: str | Path) -> Config:
        """
        Load configuration from a file.

        Raises:
            ConfigError: If file cannot be read or parsed
        """
        path = Path(path)

        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        if not path.is_file():
            raise ConfigError(f"Not a file: {path}")

        try:
            document = parse_config_file(path)
        except (LexerError, ParseError) as e:
            raise ConfigError(f"Failed to parse configuration: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read configuration: {e}") from e

        return self._build(document)

    def load_string(
        self,
        source: str,
        filename: str = "<string>",
        base_path: str | Path | None = None,
    ) -> Config:
        """
        Load configuration from a string.

        Args:
            source: Configuration source text
            filename: Filename for error messages
            base_path: Base path for resolving includes

        Raises:
            ConfigError: If configuration cannot be parsed
        """
        try:
            document = parse_config(
                source, filename, Path(base_path) if base_path is not None else None
            )
        except (LexerError, ParseError) as e:
            raise ConfigError(f"Failed to parse configuration: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read included configuration: {e}") from e

        return self._build(document)

    def _build(self, document: ConfigDocument) -> Config:
        self.last_document = document
        try:
            return Config.from_document(document)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

    def validate(self, config: Config) -> list[str]:
        """
        Validate configuration and return list of warnings.

        Args:
            config: Configuration to validate

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []

        if self.last_document:
            warnings.extend(self._check_unknown_directives(self.last_document))

        if config.defaults.update_interval <= 0:
            warnings.append("defaults.update_interval must be positive; collection will spin")

        enabled = [
            config.temperature.enabled,
            config.cooling.enabled,
            config.cpu.enabled,
            config.storage.enabled,
        ]
        if not any(enabled):
            warnings.append("All collectors are disabled")

        webhook = config.webhook
        if webhook.url and not webhook.url.lower().startswith("https://"):
            warnings.append(f"Webhook URL is not HTTPS: {webhook.url}")
        if webhook.url and webhook.every <= 0:
            warnings.append("Webhook URL is set but 'every' is 0; notifications are disabled")
        if webhook.every > 0 and not webhook.url:
            warnings.append("Webhook 'every' is set but no URL is configured")

        if not config.console_active and not webhook.active:
            warnings.append("No exporter is active; samples are collected but never reported")

        return warnings

    def _check_unknown_directives(self, document: ConfigDocument) -> list[str]:
        """Check for unknown blocks and directives in parsed document."""
        warnings = []

        def check_block(block: Block) -> None:
            known = self.KNOWN_DIRECTIVES.get(block.type)
            if known is None:
                warnings.append(f"Unknown block '{block.type}' (line {block.line})")
                return
            for directive in block.directives:
                if directive.name not in known:
                    warnings.append(
                        f"Unknown directive '{directive.name}' in {block.type} block "
                        f"(line {directive.line})"
                    )
            for nested in block.blocks:
                warnings.append(
                    f"Unexpected nested block '{nested.type}' in {block.type} block "
                    f"(line {nested.line})"
                )

        for block in document.blocks:
            check_block(block)

        for directive in document.directives:
            warnings.append(
                f"Unknown top-level directive '{directive.name}' (line {directive.line})"
            )

        return warnings
