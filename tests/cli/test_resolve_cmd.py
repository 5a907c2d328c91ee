"""Tests for ``runtimescout resolve`` command."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from runtimescout.cli.main import cli
from runtimescout.config import ScoutConfig
from runtimescout.engine import EnvironmentsEngine
from runtimescout.locator.aggregator import Locators

from tests.locators.helpers import StaticLocator


def _interpreter(pyenv_root: Path, version: str) -> str:
    return str(pyenv_root / "versions" / version / "bin" / "python")


class TestResolveKnown:
    def test_text_output(
        self, runner: CliRunner, config_file: Path, pyenv_root: Path, cli_obj: dict,
    ) -> None:
        path = _interpreter(pyenv_root, "3.9.0")
        result = runner.invoke(cli, ["--config", str(config_file), "resolve", path], obj=cli_obj)
        assert result.exit_code == 0
        assert "Resolved Environment" in result.output
        assert "3.9.0" in result.output

    def test_json_output(
        self, runner: CliRunner, config_file: Path, pyenv_root: Path, cli_obj: dict,
    ) -> None:
        path = _interpreter(pyenv_root, "3.11.4")
        result = runner.invoke(
            cli, ["--config", str(config_file), "resolve", path, "--format", "json"], obj=cli_obj,
        )
        assert result.exit_code == 0
        env = json.loads(result.output)["environment"]
        assert env["executable"] == path
        assert env["kind"] == "pyenv"
        assert env["name"] == "3.11.4"

    def test_probe_flag_turns_probing_on(
        self, runner: CliRunner, config_file: Path, pyenv_root: Path,
    ) -> None:
        seen: list[ScoutConfig] = []

        def _factory(config: ScoutConfig) -> EnvironmentsEngine:
            seen.append(config)
            return EnvironmentsEngine(Locators([StaticLocator("static")]))

        runner.invoke(
            cli,
            ["--config", str(config_file), "resolve", _interpreter(pyenv_root, "3.9.0"), "--probe"],
            obj={"engine_factory": _factory},
        )
        assert seen[0].probe_interpreters is True


class TestResolveUnknown:
    def test_unknown_path_exits_1(
        self, runner: CliRunner, config_file: Path, tmp_path: Path, cli_obj: dict,
    ) -> None:
        path = str(tmp_path / "elsewhere" / "python")
        result = runner.invoke(cli, ["--config", str(config_file), "resolve", path], obj=cli_obj)
        assert result.exit_code == 1
        assert "Not a known Python environment" in result.output

    def test_unknown_path_json(
        self, runner: CliRunner, config_file: Path, tmp_path: Path, cli_obj: dict,
    ) -> None:
        path = str(tmp_path / "elsewhere" / "python")
        result = runner.invoke(
            cli, ["--config", str(config_file), "resolve", path, "--format", "json"], obj=cli_obj,
        )
        assert result.exit_code == 1
        assert json.loads(result.output)["environment"] is None

    def test_probe_error_exits_2(self, runner: CliRunner, tmp_path: Path) -> None:
        def _factory(config: ScoutConfig) -> EnvironmentsEngine:
            return EnvironmentsEngine(Locators([StaticLocator("broken", resolve_error=True)]))

        result = runner.invoke(
            cli, ["resolve", str(tmp_path / "python")], obj={"engine_factory": _factory},
        )
        assert result.exit_code == 2
        assert "broken cannot read" in result.output
