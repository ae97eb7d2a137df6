"""
Processing Context for solarmath.

This module defines the ProcessingContext class, which carries the fallback
values and shared resources of one pipeline run.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from solarmath.core.config import SolarMathConfig, get_default_config
from solarmath.core.exceptions import ImmutabilityError
from solarmath.core.geometry.ellipse import Ellipse
from solarmath.core.geometry.pixel_shift import PixelShiftRange
from solarmath.core.orchestrator.parallel_executor import ParallelExecutor
from solarmath.core.image.model import FileBackedImage
from solarmath.core.progress import LoggingProgressSink, ProgressEvent, ProgressSink
from solarmath.io.base import StorageBackend, create_backend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageStats:
    """Statistics of the source images used as defaults by some operations."""
    blackpoint: float = 0.0


class ProcessingContext:
    """
    Explicit state of one pipeline run.

    A context is passed to every operation. It supplies the values used when
    an argument is omitted (disk ellipse, image statistics, pixel-shift range,
    configuration defaults) and owns the shared worker pool and the storage
    backing lazily-stored images. There is no process-wide context.

    Attributes:
        config: SolarMathConfig holding operation defaults and pool size.
        ellipse: Fallback disk ellipse for operations needing one.
        image_stats: Fallback image statistics (e.g. fill blackpoint).
        pixel_shift_range: Pixel-shift range of the source scan.
        progress: Progress sink; logs at DEBUG level when none is given.
        _is_frozen: Internal flag indicating if the context is immutable.
    """

    def __init__(
        self,
        config: Optional[SolarMathConfig] = None,
        ellipse: Optional[Ellipse] = None,
        image_stats: Optional[ImageStats] = None,
        pixel_shift_range: Optional[PixelShiftRange] = None,
        progress: Optional[ProgressSink] = None,
        executor: Optional[ParallelExecutor] = None,
        storage: Optional[StorageBackend] = None,
    ):
        # Direct assignment bypasses the custom __setattr__ during initialization.
        object.__setattr__(self, "_is_frozen", False)

        self.config = config or get_default_config()
        self.ellipse = ellipse
        self.image_stats = image_stats or ImageStats()
        self.pixel_shift_range = pixel_shift_range
        self.progress = progress if progress is not None else LoggingProgressSink()
        self._executor = executor
        self._owns_executor = executor is None
        self._storage = storage

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_is_frozen", False) and not name.startswith("_"):
            raise ImmutabilityError(f"Cannot modify attribute '{name}' of a frozen ProcessingContext.")
        super().__setattr__(name, value)

    def freeze(self) -> "ProcessingContext":
        """Make the public attributes immutable."""
        object.__setattr__(self, "_is_frozen", True)
        return self

    def is_frozen(self) -> bool:
        return self._is_frozen

    @property
    def executor(self) -> ParallelExecutor:
        """Shared pool, created on first use from config.num_workers."""
        if self._executor is None:
            self._executor = ParallelExecutor(self.config.num_workers)
        return self._executor

    @property
    def storage(self) -> StorageBackend:
        """Storage for lazily-stored images, created on first use from config.storage."""
        if self._storage is None:
            storage_config = self.config.storage
            self._storage = create_backend(storage_config.backend, storage_config.root)
        return self._storage

    def store(self, image) -> FileBackedImage:
        """Persist an image in the context storage and return the lazy reference."""
        return FileBackedImage.wrap(image, self.storage)

    def report_progress(self, fraction: float, label: str) -> None:
        if self.progress is not None:
            self.progress(ProgressEvent(fraction, label))

    def close(self) -> None:
        """Shut down the worker pool if this context created it."""
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown()
            self._executor = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
