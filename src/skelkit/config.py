"""Configuration for the skelkit installer."""

import os

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .catalog import InstallLayout, OptionCatalog, default_catalog
from .state import STATE_FILENAME


@dataclass
class InstallerConfig:
    """Installer settings, from a YAML file and/or SKELKIT_* environment variables."""
    catalog_path: Optional[str] = None
    state_filename: str = STATE_FILENAME
    default_layout: str = InstallLayout.FLAT.value
    log_dir: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[dict[str, str]] = None) -> "InstallerConfig":
        src = env if env is not None else os.environ

        def clean(value: Optional[str]) -> Optional[str]:
            if value is None:
                return None
            v = str(value).strip()
            return v or None

        return cls(
            catalog_path=clean(src.get("SKELKIT_CATALOG")),
            state_filename=clean(src.get("SKELKIT_STATE_FILE")) or STATE_FILENAME,
            default_layout=clean(src.get("SKELKIT_DEFAULT_LAYOUT")) or InstallLayout.FLAT.value,
            log_dir=clean(src.get("SKELKIT_LOG_DIR")),
            log_level=(clean(src.get("SKELKIT_LOG_LEVEL")) or "INFO").upper(),
        )

    @classmethod
    def from_dict(cls, data: dict, base_path: Optional[Path] = None) -> "InstallerConfig":
        catalog_path = data.get("catalog")
        if catalog_path and base_path and not os.path.isabs(catalog_path):
            catalog_path = str(base_path / catalog_path)
        return cls(
            catalog_path=catalog_path,
            state_filename=data.get("state_file", STATE_FILENAME),
            default_layout=data.get("default_layout", InstallLayout.FLAT.value),
            log_dir=data.get("log_dir"),
            log_level=str(data.get("log_level", "INFO")).upper(),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "InstallerConfig":
        """Load installer configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data, base_path=path.parent)

    def to_dict(self) -> dict:
        return {
            "catalog": self.catalog_path,
            "state_file": self.state_filename,
            "default_layout": self.default_layout,
            "log_dir": self.log_dir,
            "log_level": self.log_level,
        }

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def load_catalog(self) -> OptionCatalog:
        """The configured catalog, or the built-in one."""
        if self.catalog_path:
            path = Path(self.catalog_path)
            if not path.exists():
                raise FileNotFoundError(f"Catalog file not found: {path}")
            return OptionCatalog.from_yaml(path)
        return default_catalog()


def load_config(path: Optional[str | Path] = None) -> InstallerConfig:
    """Load installer configuration from file, falling back to the environment."""
    if path is None:
        return InstallerConfig.from_env()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    return InstallerConfig.from_yaml(path)
