"""Unit tests for CLI main module."""

from pathlib import Path
import re

import pytest
from typer.testing import CliRunner
import yaml

from openadr_overlay import __version__
from openadr_overlay.cli.main import app

runner = CliRunner()


def _clean(output: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", output)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


class TestMainApp:
    """Tests for the main Typer application."""

    def test_app_has_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "OpenADR overlay" in result.output

    @pytest.mark.parametrize("flag", ["--version", "-V"])
    def test_version_option(self, flag: str) -> None:
        result = runner.invoke(app, [flag])
        assert result.exit_code == 0
        assert __version__ in _clean(result.output)

    def test_no_args_shows_help(self) -> None:
        """no_args_is_help exits with code 2."""
        result = runner.invoke(app, [])
        assert result.exit_code == 2
        assert "OpenADR overlay" in result.output

    @pytest.mark.parametrize(
        ("group", "text"),
        [
            ("config", "Manage OpenADR overlay configuration"),
            ("index", "Inspect the OpenADR event index"),
            ("ven", "Run a VEN client"),
        ],
    )
    def test_command_groups_registered(self, group: str, text: str) -> None:
        result = runner.invoke(app, [group, "--help"])
        assert result.exit_code == 0
        assert text in _clean(result.output)


class TestConfigCommands:
    """Tests for the config command group."""

    def test_init_writes_config(self, tmp_path: Path) -> None:
        target = tmp_path / "cfg"
        result = runner.invoke(app, ["config", "init", "--dir", str(target)])

        assert result.exit_code == 0
        data = yaml.safe_load((target / "config.yaml").read_text())
        assert data["ven"]["program_id"] == "residential-demand-response"

    def test_init_refuses_existing_without_force(self, tmp_path: Path) -> None:
        runner.invoke(app, ["config", "init", "--dir", str(tmp_path)])

        again = runner.invoke(app, ["config", "init", "--dir", str(tmp_path)])
        forced = runner.invoke(app, ["config", "init", "--dir", str(tmp_path), "--force"])

        assert again.exit_code == 1
        assert forced.exit_code == 0

    def test_show_section(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"ven": {"ven_id": "VEN-SHOW"}}))

        result = runner.invoke(app, ["config", "show", "ven", "--config", str(path)])

        assert result.exit_code == 0
        assert "VEN-SHOW" in _clean(result.output)

    def test_show_unknown_section(self) -> None:
        result = runner.invoke(app, ["config", "show", "nope"])
        assert result.exit_code == 1

    def test_show_missing_config_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["config", "show", "--config", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "Configuration Error" in _clean(result.output)


class TestIndexCommands:
    def test_list_empty_index(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["index", "list", "--db", str(tmp_path / "index.db")])
        assert result.exit_code == 0
        assert "No events indexed" in _clean(result.output)


class TestVenCommands:
    def test_run_help_lists_overrides(self) -> None:
        output = _clean(runner.invoke(app, ["ven", "run", "--help"]).output)
        assert "--vtn-url" in output
        assert "--interval" in output
