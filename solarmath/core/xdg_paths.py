"""
XDG base directories for solarmath.

Lazily-stored images default to a cache directory and the YAML configuration
to a config directory, both below the solarmath data directory:

- Data: $XDG_DATA_HOME/solarmath/ (~/.local/share/solarmath/ when unset)
- Cache: <data>/cache/
- Config: <data>/config/
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

APP_DIR_NAME = "solarmath"


def _ensure(directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def get_solarmath_data_dir() -> Path:
    """
    Data directory of solarmath, created on first use.

    XDG_DATA_HOME is honored when it holds an absolute path; relative values
    are ignored as the XDG rules require.
    """
    xdg_data_home = os.environ.get("XDG_DATA_HOME", "")
    base = Path(xdg_data_home) if os.path.isabs(xdg_data_home) else Path.home() / ".local" / "share"
    return _ensure(base / APP_DIR_NAME)


def get_solarmath_cache_dir() -> Path:
    """Directory holding lazily-stored image arrays by default."""
    return _ensure(get_solarmath_data_dir() / "cache")


def get_solarmath_config_dir() -> Path:
    return _ensure(get_solarmath_data_dir() / "config")


def get_config_file_path(filename: str = "config.yaml") -> Path:
    """Path of a file inside the config directory (the file may not exist)."""
    return get_solarmath_config_dir() / filename
