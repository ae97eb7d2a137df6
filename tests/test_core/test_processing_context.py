"""Tests for the per-run processing context."""
import logging
from unittest.mock import MagicMock

import numpy as np
import pytest

from solarmath.core.config import SolarMathConfig
from solarmath.core.context.processing_context import ImageStats, ProcessingContext
from solarmath.core.exceptions import ImmutabilityError
from solarmath.core.geometry import Ellipse
from solarmath.core.image.model import FileBackedImage, MonoImage
from solarmath.core.orchestrator.parallel_executor import ParallelExecutor
from solarmath.core.progress import LoggingProgressSink, ProgressEvent, RecordingProgressSink
from solarmath.io import MemoryStorageBackend


class TestProcessingContext:

    def setup_method(self):
        self.context = ProcessingContext(config=SolarMathConfig(num_workers=2))

    def teardown_method(self):
        self.context.close()

    def test_defaults(self):
        assert self.context.ellipse is None
        assert self.context.image_stats == ImageStats(0.0)
        assert self.context.pixel_shift_range is None
        assert isinstance(self.context.storage, MemoryStorageBackend)

    def test_executor_is_created_lazily_once(self):
        assert self.context._executor is None
        executor = self.context.executor
        assert executor.max_workers == 2
        assert self.context.executor is executor

    def test_freeze(self):
        self.context.ellipse = Ellipse.circle(1, 1, 1)
        self.context.freeze()
        assert self.context.is_frozen()
        with pytest.raises(ImmutabilityError):
            self.context.ellipse = None
        # lazily created resources stay available after freezing
        assert self.context.executor is not None

    def test_report_progress(self):
        sink = RecordingProgressSink()
        self.context.progress = sink
        self.context.report_progress(0.5, "step")
        assert sink.events == [ProgressEvent(0.5, "step")]

    def test_default_sink_logs_progress(self, caplog):
        assert isinstance(self.context.progress, LoggingProgressSink)
        with caplog.at_level(logging.DEBUG, logger="solarmath.core.progress"):
            self.context.report_progress(0.5, "step")
        assert "step: 50%" in caplog.text

    def test_store_uses_context_storage(self):
        image = MonoImage(np.arange(6.0).reshape(2, 3))
        stored = self.context.store(image)
        assert isinstance(stored, FileBackedImage)
        assert stored.backend is self.context.storage
        assert self.context.storage.exists(stored.key)
        np.testing.assert_array_equal(stored.unwrap_to_memory().data, image.data)


def test_close_keeps_external_executor():
    executor = MagicMock(spec=ParallelExecutor)
    with ProcessingContext(executor=executor) as context:
        assert context.executor is executor
    executor.shutdown.assert_not_called()


def test_close_shuts_down_owned_executor():
    context = ProcessingContext(config=SolarMathConfig(num_workers=1))
    executor = context.executor
    context.close()
    assert executor._executor is None
    assert context._executor is None
