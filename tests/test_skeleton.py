"""Tests for skelkit.skeleton, skelkit.fileio and skelkit.logging_config."""

import gc
import json
import logging
from pathlib import Path

import pytest

from skelkit import fileio
from skelkit.catalog import Option
from skelkit.fileio import atomic_write, path_lock, prune_empty_dirs, read_text, remove_file
from skelkit.logging_config import setup_logging
from skelkit.skeleton import FILES, class_map, create_project, render


class TestCreateProject:
    def test_base_files(self, tmp_path: Path) -> None:
        root = tmp_path / "app"
        written = create_project(root, catalog_version=3)
        assert root / "composer.json" in written
        assert (root / "config/pipeline.php").is_file()
        assert (root / "config/autoload/mezzio.global.php").is_file()

        composer = json.loads((root / "composer.json").read_text())
        assert composer["config"]["sort-packages"] is True
        assert composer["extra"]["skelkit"] == {"catalog-version": 3}
        assert composer["autoload"]["psr-4"] == {}

    def test_existing_project(self, project_root: Path) -> None:
        with pytest.raises(FileExistsError):
            create_project(project_root)
        create_project(project_root, overwrite=True)


class TestRender:
    def test_placeholders(self) -> None:
        text = render("app-config-provider", {"template_dir": "src/App/templates"})
        assert "'src/App/templates/app'" in text
        assert "%%" not in text

    def test_unknown_placeholder_left_alone(self) -> None:
        assert "%%template_dir%%" in render("app-config-provider")

    def test_unknown_key(self) -> None:
        with pytest.raises(KeyError):
            render("no-such-file")

    def test_every_container_names_its_target(self) -> None:
        bodies = [k for k in FILES if k.startswith("container-")]
        assert len(bodies) == 7
        for key in bodies:
            assert "/** @return \\" in FILES[key]

    def test_class_map(self) -> None:
        options = [
            Option(code=1, name="Aura.Di", docs="http://auraphp.com/", target="Aura\\Di\\Container"),
            Option(code=2, name="Custom"),
            Option(code=3, name="O'Brien", target="\\Acme\\Box"),
        ]
        assert class_map(options, indent="") == (
            "\\Aura\\Di\\Container::class => ['Aura.Di', 'http://auraphp.com/'],\n"
            "\\Acme\\Box::class => ['O\\'Brien', ''],"
        )

    def test_class_map_empty(self) -> None:
        assert class_map([]) == ""


class TestFileIO:
    def test_atomic_write_creates_parents(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "file.txt"
        atomic_write(path, "one\r\ntwo\n")
        assert read_text(path) == "one\r\ntwo\n"
        assert [p.name for p in path.parent.iterdir()] == ["file.txt"]

    def test_remove_file(self, tmp_path: Path) -> None:
        path = tmp_path / "file.txt"
        path.write_text("x")
        assert remove_file(path) is True
        assert remove_file(path) is False

    def test_prune_stops_at_root(self, tmp_path: Path) -> None:
        deep = tmp_path / "root" / "a" / "b"
        deep.mkdir(parents=True)
        (tmp_path / "root" / "keep.txt").write_text("x")
        prune_empty_dirs(deep, tmp_path / "root")
        assert not (tmp_path / "root" / "a").exists()
        assert (tmp_path / "root").is_dir()

    def test_path_lock_shared(self, tmp_path: Path) -> None:
        assert path_lock(tmp_path / "x") is path_lock(tmp_path / "." / "x")
        assert path_lock(tmp_path / "x") is not path_lock(tmp_path / "y")

    def test_path_lock_released(self, tmp_path: Path) -> None:
        key = str((tmp_path / "x").resolve())
        lock = path_lock(tmp_path / "x")
        with lock:
            assert path_lock(tmp_path / "x") is lock
        assert fileio._path_locks.get(key) is lock

        del lock
        gc.collect()
        assert key not in fileio._path_locks


def test_setup_logging(tmp_path: Path) -> None:
    log_file = setup_logging(log_dir=str(tmp_path / "logs"), level="debug")
    assert log_file.name == "skelkit.log"
    assert logging.getLogger("skelkit").level == logging.DEBUG
