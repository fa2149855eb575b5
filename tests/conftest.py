from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_SRC = (_PROJECT_ROOT / "src").resolve()
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

# Load .env from project root so local SKELKIT_* overrides are active
load_dotenv(_PROJECT_ROOT / ".env", override=False)

# Resolve relative SKELKIT_LOG_DIR against project root
_log_dir = os.environ.get("SKELKIT_LOG_DIR", "")
if _log_dir and not os.path.isabs(_log_dir):
    os.environ["SKELKIT_LOG_DIR"] = str((_PROJECT_ROOT / _log_dir).resolve())

from skelkit.session import InstallSession  # noqa: E402
from skelkit.skeleton import create_project  # noqa: E402


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    create_project(root)
    return root


@pytest.fixture
def session(project_root: Path) -> InstallSession:
    return InstallSession(project_root)


def snapshot(root: Path) -> dict[str, bytes]:
    """Every file under *root* keyed by relative posix path."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }
