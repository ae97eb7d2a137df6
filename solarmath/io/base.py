"""
Abstract base classes for storage backends.

This module defines the contract that every backend persisting the pixel data
of lazily-stored images must fulfill, plus the factory creating a backend
from the storage configuration.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np

from solarmath.constants.constants import Backend
from solarmath.io.exceptions import StorageResolutionError

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """
    Abstract base class for array storage operations.

    Keys are plain strings; backends map them to their own locations. Stored
    values are numpy arrays and loading must never hand out the stored
    instance itself, so callers can never mutate persisted data.
    """

    @abstractmethod
    def load(self, key: str) -> np.ndarray:
        """
        Load an array.

        Args:
            key: Key the array was saved under

        Returns:
            A new array holding the stored data

        Raises:
            FileNotFoundError: If nothing is stored under key
        """
        pass

    @abstractmethod
    def save(self, data: np.ndarray, key: str) -> None:
        """
        Save an array.

        Args:
            data: The array to save
            key: Key to save it under

        Raises:
            FileExistsError: If something is already stored under key
        """
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Whether something is stored under key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """
        Delete a stored array.

        Raises:
            FileNotFoundError: If nothing is stored under key
        """
        pass

    @abstractmethod
    def list_keys(self) -> List[str]:
        """Sorted list of the stored keys."""
        pass


def validate_key(key: str) -> str:
    """Reject keys that could escape a backend's namespace."""
    if not isinstance(key, str) or not key:
        raise StorageResolutionError(f"Invalid storage key: {key!r}")
    if "/" in key or "\\" in key or key in (".", ".."):
        raise StorageResolutionError(f"Storage key must be a plain name: {key!r}")
    return key


def create_backend(backend: Backend, root: Optional[str] = None) -> StorageBackend:
    """
    Create a storage backend.

    Args:
        backend: Which backend to create
        root: Directory for the disk backend (None uses the XDG cache directory)

    Returns:
        A new backend instance
    """
    match backend:
        case Backend.MEMORY:
            from solarmath.io.memory import MemoryStorageBackend
            return MemoryStorageBackend()
        case Backend.DISK:
            from solarmath.io.disk import DiskStorageBackend
            return DiskStorageBackend(root)
    raise StorageResolutionError(f"Unknown storage backend: {backend!r}")
