"""
Progress reporting for bulk operations.

A progress sink is any callable accepting a ProgressEvent. Reporting is a
one-way notification: the reporting thread never waits on the sink beyond
the call itself.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    """A progress fraction in [0, 1] and a short label."""
    fraction: float
    label: str

    def __post_init__(self):
        object.__setattr__(self, "fraction", min(1.0, max(0.0, float(self.fraction))))


ProgressSink = Callable[[ProgressEvent], None]


class LoggingProgressSink:
    """Sink writing every event to the log at DEBUG level."""

    def __call__(self, event: ProgressEvent) -> None:
        logger.debug(f"{event.label}: {event.fraction:.0%}")


class RecordingProgressSink:
    """Sink keeping every event, safe to call from worker threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: List[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[ProgressEvent]:
        with self._lock:
            return list(self._events)
