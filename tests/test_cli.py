"""Tests for the root keyctl CLI."""

import pytest
from click.testing import CliRunner

from keyctl import __version__
from keyctl.cli import cli

pytestmark = pytest.mark.usefixtures("_isolated_config")


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "keyctl" in result.output
    for name in ("status", "next-check", "serve"):
        assert name in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


# --- Global flags ---


@pytest.mark.parametrize(
    "flag", ["--json", "-q", "-v", "--log-json", "--operator-mode"]
)
def test_global_flag_accepted(cli_runner: CliRunner, flag: str) -> None:
    result = cli_runner.invoke(cli, [flag, "status"])
    assert result.exit_code == 0


def test_invalid_toml_reports_error(cli_runner: CliRunner, tmp_path) -> None:
    (tmp_path / "keyctl.toml").write_text("[reminder\n")
    result = cli_runner.invoke(cli, ["status"])
    assert result.exit_code == 1
    assert "Invalid TOML" in result.output


def test_unknown_command(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["teleport"])
    assert result.exit_code == 2
