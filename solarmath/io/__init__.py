"""Storage backends holding the pixel data of lazily-stored images."""

from solarmath.io.base import StorageBackend, create_backend
from solarmath.io.disk import DiskStorageBackend
from solarmath.io.memory import MemoryStorageBackend

__all__ = [
    "DiskStorageBackend",
    "MemoryStorageBackend",
    "StorageBackend",
    "create_backend",
]
