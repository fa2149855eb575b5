"""Tests for the skelkit command line."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from rich.console import Console

from skelkit import __version__
from skelkit.cli import cli
from skelkit.state import STATE_FILENAME


@pytest.fixture(autouse=True)
def wide_console(monkeypatch, tmp_path):
    monkeypatch.setattr("skelkit.cli.console", Console(width=200))
    monkeypatch.setenv("SKELKIT_LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestNew:
    def test_creates_skeleton(self, runner: CliRunner, tmp_path: Path) -> None:
        root = tmp_path / "app"
        result = runner.invoke(cli, ["new", str(root)])
        assert result.exit_code == 0, result.output
        assert (root / "composer.json").is_file()
        assert "Created skeleton" in result.output

    def test_refuses_existing(self, runner: CliRunner, tmp_path: Path) -> None:
        root = tmp_path / "app"
        runner.invoke(cli, ["new", str(root)])
        result = runner.invoke(cli, ["new", str(root)])
        assert result.exit_code == 1
        assert "already exists" in result.output

        result = runner.invoke(cli, ["new", str(root), "--force"])
        assert result.exit_code == 0


class TestOptions:
    def test_container(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["options", "container"])
        assert result.exit_code == 0
        assert "Aura.Di" in result.output
        assert "Chubbyphp Container" in result.output
        assert "vendor/package" in result.output

    def test_optional_question(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["options", "template-engine"])
        assert result.exit_code == 0
        assert "Answer 'n' to skip" in result.output

    def test_unknown(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["options", "database"])
        assert result.exit_code == 1
        assert "Unknown question" in result.output


class TestAnswer:
    def test_flow(self, runner: CliRunner, tmp_path: Path) -> None:
        root = str(tmp_path / "app")
        runner.invoke(cli, ["new", root])
        assert runner.invoke(cli, ["answer", root, "install-type", "flat"]).exit_code == 0

        result = runner.invoke(cli, ["answer", root, "router", "2"])
        assert result.exit_code == 0
        assert "router = 2" in result.output

        result = runner.invoke(cli, ["answer", root, "template-engine", "n"])
        assert result.exit_code == 0
        assert "Skipped template-engine" in result.output

    def test_rejected(self, runner: CliRunner, tmp_path: Path) -> None:
        root = str(tmp_path / "app")
        runner.invoke(cli, ["new", root])
        result = runner.invoke(cli, ["answer", root, "router", "2"])
        assert result.exit_code == 1
        assert "install layout" in result.output

        runner.invoke(cli, ["answer", root, "install-type", "flat"])
        result = runner.invoke(cli, ["answer", root, "router", "7"])
        assert result.exit_code == 1
        assert "Invalid answer" in result.output


class TestInstall:
    def test_finalized_install(self, runner: CliRunner, tmp_path: Path) -> None:
        root = tmp_path / "app"
        result = runner.invoke(cli, [
            "install", str(root), "-l", "modular", "-c", "3", "-r", "2", "-t", "3", "--finalize",
        ])
        assert result.exit_code == 0, result.output
        assert "Installation finalized" in result.output

        composer = json.loads((root / "composer.json").read_text())
        assert "extra" not in composer
        assert composer["autoload"]["psr-4"]["App\\"] == "src/App/src/"
        assert (root / "src/App/templates/app/home-page.phtml").is_file()

    def test_default_layout(self, runner: CliRunner, tmp_path: Path) -> None:
        root = tmp_path / "app"
        result = runner.invoke(cli, ["install", str(root), "-c", "1", "-r", "1"])
        assert result.exit_code == 0, result.output
        state = json.loads((root / STATE_FILENAME).read_text())
        assert state["layout"] == "flat"

    def test_default_layout_from_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "skelkit.yaml"
        config.write_text("default_layout: modular\n")
        root = tmp_path / "app"
        result = runner.invoke(cli, ["--config", str(config), "install", str(root), "-c", "3"])
        assert result.exit_code == 0, result.output
        assert (root / "config/config.php").is_file()
        assert (root / "src/App/src/ConfigProvider.php").is_file()

    def test_finalize_rejected(self, runner: CliRunner, tmp_path: Path) -> None:
        root = tmp_path / "app"
        result = runner.invoke(cli, ["install", str(root), "-c", "4", "-r", "2", "--finalize"])
        assert result.exit_code == 1
        assert "Auryn" in result.output


class TestStatusAndFinalize:
    def test_status(self, runner: CliRunner, tmp_path: Path) -> None:
        root = str(tmp_path / "app")
        runner.invoke(cli, ["install", root, "-c", "6", "-r", "3"])
        result = runner.invoke(cli, ["status", root])
        assert result.exit_code == 0
        assert "PHP-DI" in result.output
        assert "Laminas Router" in result.output
        assert "answering" in result.output

    def test_finalize_missing_answer(self, runner: CliRunner, tmp_path: Path) -> None:
        root = str(tmp_path / "app")
        runner.invoke(cli, ["install", root, "-r", "2"])
        result = runner.invoke(cli, ["finalize", root])
        assert result.exit_code == 1
        assert "container" in result.output

        runner.invoke(cli, ["answer", root, "container", "3"])
        result = runner.invoke(cli, ["finalize", root])
        assert result.exit_code == 0


class TestPreview:
    def test_json_home_page(self, runner: CliRunner, tmp_path: Path) -> None:
        root = str(tmp_path / "app")
        runner.invoke(cli, ["install", root, "-l", "modular", "-c", "1", "-r", "2"])
        result = runner.invoke(cli, ["preview", root])
        assert result.exit_code == 0, result.output
        assert "HTTP 200" in result.output
        assert '"routerName":"FastRoute"' in result.output

    def test_unconfigured(self, runner: CliRunner, tmp_path: Path) -> None:
        root = str(tmp_path / "app")
        runner.invoke(cli, ["new", root])
        result = runner.invoke(cli, ["preview", root])
        assert result.exit_code == 1
        assert "HTTP 500" in result.output


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_serve(runner: CliRunner, tmp_path: Path) -> None:
    root = str(tmp_path / "app")
    runner.invoke(cli, ["install", root, "-c", "3", "-r", "2"])
    with patch("uvicorn.run") as run:
        result = runner.invoke(cli, ["serve", root, "--port", "9099"])
    assert result.exit_code == 0, result.output
    run.assert_called_once()
    assert run.call_args.kwargs == {"host": "127.0.0.1", "port": 9099}
