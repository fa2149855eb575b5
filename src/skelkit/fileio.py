"""File I/O helpers: atomic whole-file writes and per-path exclusive locks."""

from __future__ import annotations

import os
import tempfile
import weakref
from contextlib import contextmanager
from pathlib import Path
from threading import Lock, RLock
from typing import Iterator

from .errors import IOFailure

_registry_lock = Lock()
# Entries vanish once no caller holds the lock.
_path_locks: "weakref.WeakValueDictionary[str, RLock]" = weakref.WeakValueDictionary()


def path_lock(path: Path) -> RLock:
    """Return the process-wide lock guarding *path*."""
    key = str(Path(path).resolve())
    with _registry_lock:
        lock = _path_locks.get(key)
        if lock is None:
            lock = RLock()
            _path_locks[key] = lock
        return lock


@contextmanager
def locked(path: Path) -> Iterator[None]:
    """Hold exclusive access to *path* for the duration of the block."""
    lock = path_lock(path)
    with lock:
        yield


def atomic_write(path: Path, content: str) -> None:
    """Write content to file atomically using temp file + rename."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    except OSError as e:
        raise IOFailure(f"Cannot write {path}: {e}") from e
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except OSError as e:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise IOFailure(f"Cannot write {path}: {e}") from e


def read_text(path: Path) -> str:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except OSError as e:
        raise IOFailure(f"Cannot read {path}: {e}") from e


def remove_file(path: Path) -> bool:
    """Delete *path*. Returns False when the file was already gone."""
    path = Path(path)
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        raise IOFailure(f"Cannot remove {path}: {e}") from e
    return True


def prune_empty_dirs(start: Path, stop_at: Path) -> None:
    """Remove empty directories from *start* upwards, never touching *stop_at*."""
    stop_at = Path(stop_at).resolve()
    current = Path(start).resolve()
    while current != stop_at and stop_at in current.parents:
        try:
            current.rmdir()
        except OSError:
            return
        current = current.parent
