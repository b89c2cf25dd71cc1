"""
Entry point for RPi Metrics.

Usage:
    python -m rpi_metrics [/path/to/config.conf]
    python -m rpi_metrics --help
"""

import argparse
import asyncio
import dataclasses
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .app import run_app
from .config.loader import ConfigError, ConfigLoader
from .config.schema import Config
from .const import DEFAULT_CONFIG_PATH
from .logging import LogConfig, get_logger, setup_logging

logger = get_logger("main")


def resolve_config_path(path: str | None) -> str | None:
    """
    Pick the configuration file to load.

    An explicit path must exist. Without one, the default path is used
    when present, otherwise built-in defaults (None).
    """
    if path is not None:
        if not Path(path).exists():
            raise ConfigError(f"Configuration file not found: {path}")
        return path
    if Path(DEFAULT_CONFIG_PATH).exists():
        return DEFAULT_CONFIG_PATH
    return None


def validate_config(config_path: str | None) -> int:
    """Validate configuration file and print warnings."""
    try:
        loader = ConfigLoader()
        config = loader.load_file(config_path) if config_path else Config()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    warnings = loader.validate(config)
    if warnings:
        print(f"Configuration warnings ({len(warnings)}):")
        for warning in warnings:
            print(f"  - {warning}")

    def on_off(value: bool) -> str:
        return "enabled" if value else "disabled"

    print("\nConfiguration summary:")
    print(f"  Source: {config_path or 'built-in defaults'}")
    print(f"  Collection interval: {config.defaults.update_interval}s")
    print(f"  CPU temperature: {on_off(config.temperature.enabled)} ({config.temperature.path})")
    print(f"  CPU utilization: {on_off(config.cpu.enabled)} ({config.cpu.path})")
    print(f"  Cooling device: {on_off(config.cooling.enabled)} ({config.cooling.path})")
    print(f"  Storage: {on_off(config.storage.enabled)} ({', '.join(config.storage.paths)})")
    print(f"  Console output: {on_off(config.console_active)}")
    if config.webhook.active:
        print(
            f"  Webhook: every {config.webhook.every}s "
            f"(min interval {config.webhook.min_interval}s)"
        )
    else:
        print("  Webhook: disabled")
    print(f"  Logging level: {config.logging.level}")
    if config.logging.file:
        print(f"  Log file: {config.logging.file}")

    print("\nConfiguration is valid!")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rpi-metrics",
        description="Host telemetry sampler with JSON Lines and chat webhook output",
    )

    parser.add_argument(
        "config",
        nargs="?",
        default=None,
        help=f"Path to configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (INFO level)",
    )
    verbosity.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging (DEBUG level)",
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Quiet mode (only errors)",
    )

    parser.add_argument(
        "--log-file",
        metavar="PATH",
        help="Write logs to file",
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate configuration and exit",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def cli_log_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """LogConfig fields explicitly set on the command line."""
    overrides: dict[str, Any] = {}

    if args.debug:
        overrides["console_level"] = "debug"
    elif args.verbose:
        overrides["console_level"] = "info"
    elif args.quiet:
        overrides["console_level"] = "error"

    if args.no_color:
        overrides["console_colors"] = False

    if args.log_file:
        overrides["file_enabled"] = True
        overrides["file_path"] = args.log_file

    return overrides


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    overrides = cli_log_overrides(args)

    # Initial logging until the config file is read; run_app merges its settings
    setup_logging(dataclasses.replace(LogConfig(console_level="warning"), **overrides))

    try:
        config_path = resolve_config_path(args.config)
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return 1

    if args.validate:
        return validate_config(config_path)

    try:
        asyncio.run(run_app(config_path, cli_overrides=overrides))
        return 0
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
