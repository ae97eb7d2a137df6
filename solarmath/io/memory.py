"""
Memory storage backend module for solarmath.

This module provides an in-memory implementation of the StorageBackend
interface. Arrays are copied on the way in and on the way out so that
neither the writer nor any reader can alias the stored data.
"""

import logging
import threading
from typing import Dict, List

import numpy as np

from solarmath.io.base import StorageBackend, validate_key

logger = logging.getLogger(__name__)


class MemoryStorageBackend(StorageBackend):
    def __init__(self):
        self._memory_store: Dict[str, np.ndarray] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> np.ndarray:
        key = validate_key(key)
        with self._lock:
            if key not in self._memory_store:
                raise FileNotFoundError(f"Memory key not found: {key}")
            value = self._memory_store[key]
        return value.copy()

    def save(self, data: np.ndarray, key: str) -> None:
        key = validate_key(key)
        stored = np.array(data, copy=True)
        stored.setflags(write=False)
        with self._lock:
            if key in self._memory_store:
                raise FileExistsError(f"Memory key already exists: {key}")
            self._memory_store[key] = stored
        logger.debug(f"Stored array {stored.shape} in memory under {key}")

    def exists(self, key: str) -> bool:
        key = validate_key(key)
        with self._lock:
            return key in self._memory_store

    def delete(self, key: str) -> None:
        key = validate_key(key)
        with self._lock:
            if key not in self._memory_store:
                raise FileNotFoundError(f"Memory key not found: {key}")
            del self._memory_store[key]

    def list_keys(self) -> List[str]:
        with self._lock:
            return sorted(self._memory_store)
