"""
Tests for the command line entry point.
"""

from pathlib import Path

import pytest

from rpi_metrics import __main__ as cli
from rpi_metrics.app import build_log_config
from rpi_metrics.config.loader import ConfigError, ConfigLoader


def test_resolve_explicit_path(example_config_path: Path) -> None:
    assert cli.resolve_config_path(str(example_config_path)) == str(example_config_path)


def test_resolve_missing_explicit_path(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        cli.resolve_config_path(str(tmp_path / "missing.conf"))


def test_resolve_without_default(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(cli, "DEFAULT_CONFIG_PATH", str(tmp_path / "absent.conf"))

    assert cli.resolve_config_path(None) is None


def test_validate_example(example_config_path: Path, capsys: pytest.CaptureFixture) -> None:
    assert cli.main(["--validate", "--no-color", str(example_config_path)]) == 0

    out = capsys.readouterr().out
    assert "Configuration is valid!" in out
    assert "/boot/firmware" in out


def test_validate_broken_config(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    path = tmp_path / "broken.conf"
    path.write_text("cpu { path /proc/stat\n")

    assert cli.main(["--validate", str(path)]) == 1
    assert "Configuration error" in capsys.readouterr().err


def test_missing_config_exit_code(tmp_path: Path) -> None:
    assert cli.main([str(tmp_path / "missing.conf")]) == 1


def test_verbosity_flags_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["-v", "-q"])


@pytest.fixture
def captured_log_config(monkeypatch: pytest.MonkeyPatch) -> list:
    """Replace run_app with a stub that records the effective logging config."""
    captured = []

    async def fake_run_app(config_path, cli_overrides=None):
        config = ConfigLoader().load_file(config_path)
        captured.append(build_log_config(config, cli_overrides))

    monkeypatch.setattr(cli, "run_app", fake_run_app)
    return captured


LOGGING_CONF = 'logging { level debug; colors off; format "X %(message)s"; }\n'


def test_file_logging_settings_apply_without_flags(
    tmp_path: Path, captured_log_config: list
) -> None:
    path = tmp_path / "app.conf"
    path.write_text(LOGGING_CONF)

    assert cli.main([str(path)]) == 0

    [log_config] = captured_log_config
    assert log_config.console_level == "debug"
    assert log_config.console_colors is False
    assert log_config.format == "X %(message)s"


def test_cli_flags_override_file_logging(tmp_path: Path, captured_log_config: list) -> None:
    path = tmp_path / "app.conf"
    path.write_text(LOGGING_CONF)

    assert cli.main(["-q", "--log-file", str(tmp_path / "out.log"), str(path)]) == 0

    [log_config] = captured_log_config
    assert log_config.console_level == "error"
    assert log_config.file_enabled
    assert log_config.file_path == str(tmp_path / "out.log")
    assert log_config.console_colors is False
    assert log_config.format == "X %(message)s"
