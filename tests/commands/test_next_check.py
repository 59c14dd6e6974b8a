"""Tests for the next-check command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from keyctl.cli import cli


@pytest.mark.usefixtures("_isolated_config")
class TestNextCheckCommand:
    def test_default_time(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "next-check"])
        assert result.exit_code == 0
        data = json.loads(result.output)["data"]
        assert data["check_time"] == "20:00"
        assert 0 < data["delay_ms"] <= 86_400_000 + 3_600_000

    def test_explicit_time(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "next-check", "--hour", "6", "--minute", "5"])
        assert json.loads(result.output)["data"]["check_time"] == "06:05"

    def test_time_from_config(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "keyctl.toml").write_text("[daily_check]\nhour = 7\nminute = 15\n")
        result = cli_runner.invoke(cli, ["--json", "next-check"])
        assert json.loads(result.output)["data"]["check_time"] == "07:15"

    def test_human_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["next-check"])
        assert result.exit_code == 0
        assert result.output.startswith("OK: next_check")
        assert "delay_ms:" in result.output

    def test_invalid_time_exits_1(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["next-check", "--hour", "25"])
        assert result.exit_code == 1
        assert "ERROR: next_check - hour must be 0-23 and minute 0-59" in result.output
