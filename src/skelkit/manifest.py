"""composer.json manipulation: requirement entries, autoload path, installer metadata."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from .errors import IOFailure
from .fileio import atomic_write, read_text

REQUIRE = "require"
REQUIRE_DEV = "require-dev"


def _is_platform_package(name: str) -> bool:
    return name in ("php", "php-64bit", "hhvm", "composer-plugin-api") or name.startswith(("ext-", "lib-"))


def _sort_key(name: str) -> tuple[int, str]:
    return (0 if _is_platform_package(name) else 1, name)


class ComposerManifest:
    """A composer.json document treated as a mapping of package -> constraint."""

    def __init__(self, data: dict[str, Any], path: Optional[Path] = None):
        self.data = data
        self.path = path

    @classmethod
    def load(cls, path: Path) -> "ComposerManifest":
        path = Path(path)
        text = read_text(path)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise IOFailure(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise IOFailure(f"Unexpected composer.json structure in {path}")
        return cls(data, path=path)

    @property
    def sort_packages(self) -> bool:
        return bool(self.data.get("config", {}).get("sort-packages", False))

    def requirements(self, dev: bool = False) -> dict[str, str]:
        return dict(self.data.get(REQUIRE_DEV if dev else REQUIRE, {}))

    def has(self, name: str, dev: bool = False) -> bool:
        return name in self.data.get(REQUIRE_DEV if dev else REQUIRE, {})

    def require(self, name: str, constraint: str, dev: bool = False) -> None:
        section = REQUIRE_DEV if dev else REQUIRE
        packages = self.data.setdefault(section, {})
        packages[name] = constraint
        if self.sort_packages:
            self.data[section] = {k: packages[k] for k in sorted(packages, key=_sort_key)}

    def remove(self, name: str, dev: bool = False) -> bool:
        section = REQUIRE_DEV if dev else REQUIRE
        packages = self.data.get(section, {})
        if name not in packages:
            return False
        del packages[name]
        return True

    def set_autoload(self, namespace: str, path: str) -> None:
        psr4 = self.data.setdefault("autoload", {}).setdefault("psr-4", {})
        psr4[namespace] = path

    def autoload(self, namespace: str) -> Optional[str]:
        return self.data.get("autoload", {}).get("psr-4", {}).get(namespace)

    def extra(self, key: str) -> Any:
        return self.data.get("extra", {}).get(key)

    def remove_extra(self, key: str) -> bool:
        extra = self.data.get("extra")
        if not extra or key not in extra:
            return False
        del extra[key]
        if not extra:
            del self.data["extra"]
        return True

    def to_text(self) -> str:
        return json.dumps(self.data, indent=4, ensure_ascii=False) + "\n"

    def save(self, path: Optional[Path] = None) -> None:
        target = Path(path or self.path)
        atomic_write(target, self.to_text())
