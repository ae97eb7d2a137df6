"""
Disk-based storage backend implementation.

Arrays are written as .npy files under a root directory using np.save and
read back with np.load. Writes go to a temporary file that is renamed into
place, so a concurrent reader never observes a partially written array.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from solarmath.constants.constants import STORED_IMAGE_EXTENSION
from solarmath.io.base import StorageBackend, validate_key
from solarmath.io.exceptions import StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)


class DiskStorageBackend(StorageBackend):
    """StorageBackend persisting arrays as .npy files."""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        if root is None:
            from solarmath.core.xdg_paths import get_solarmath_cache_dir
            root = get_solarmath_cache_dir() / "images"
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root / f"{validate_key(key)}{STORED_IMAGE_EXTENSION}"

    def load(self, key: str) -> np.ndarray:
        path = self._path(key)
        if not path.exists():
            raise FileNotFoundError(f"No stored array at {path}")
        try:
            return np.load(path, allow_pickle=False)
        except (OSError, ValueError) as e:
            raise StorageReadError(f"Error loading array from {path}: {e}") from e

    def save(self, data: np.ndarray, key: str) -> None:
        path = self._path(key)
        if path.exists():
            raise FileExistsError(f"Array already stored at {path}")
        tmp_path = path.with_name(path.stem + ".tmp" + STORED_IMAGE_EXTENSION)
        try:
            np.save(tmp_path, np.asarray(data), allow_pickle=False)
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageWriteError(f"Error saving array to {path}: {e}") from e
        logger.debug(f"Stored array {np.shape(data)} at {path}")

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def delete(self, key: str) -> None:
        path = self._path(key)
        if not path.exists():
            raise FileNotFoundError(f"No stored array at {path}")
        path.unlink()

    def list_keys(self) -> List[str]:
        suffix = STORED_IMAGE_EXTENSION
        return sorted(
            p.name[: -len(suffix)]
            for p in self.root.glob(f"*{suffix}")
            if not p.name.endswith(".tmp" + suffix)
        )
