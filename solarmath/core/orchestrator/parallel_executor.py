"""
Ordered parallel fan-out.

ParallelExecutor applies a function to every element of a sequence on a
shared, bounded thread pool and returns the results in input order. Results
are written by index into a list pre-sized to the input length, so the output
order never depends on completion order.

The call blocks until every task has settled. If any task raised, the error of
the lowest failing index is re-raised once all siblings are done; no partial
result is ever returned.
"""

import concurrent.futures
import logging
import threading
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from solarmath.constants.constants import PROGRESS_LABEL_PREFIX
from solarmath.core.progress import ProgressEvent, ProgressSink

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class ParallelExecutor:
    """
    Runs one task per element on a shared ThreadPoolExecutor.

    Calls to map made from one of this executor's own worker threads (nested
    broadcasts) run sequentially in the calling worker, so a bounded pool can
    never deadlock waiting on itself.
    """

    def __init__(self, max_workers: int):
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
        self._lock = threading.Lock()
        self._local = threading.local()

    def _get_executor(self) -> concurrent.futures.ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = concurrent.futures.ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="solarmath",
                    initializer=self._mark_worker,
                )
                logger.debug(f"Created ThreadPoolExecutor with {self.max_workers} workers")
            return self._executor

    def _mark_worker(self) -> None:
        self._local.is_worker = True

    def _in_worker(self) -> bool:
        return getattr(self._local, "is_worker", False)

    def map(self, fn: Callable[[T], R], items: Sequence[T],
            label: Optional[str] = None,
            progress: Optional[ProgressSink] = None) -> List[R]:
        """
        Apply fn to every item and return the results in input order.

        Args:
            fn: Function applied to each element.
            items: Elements to process.
            label: Operation name used in progress events.
            progress: Optional sink receiving done/total after each completion.

        Returns:
            List of results, results[i] == fn(items[i]).

        Raises:
            Exception: The error raised for the lowest failing index, after all
                tasks have settled.
        """
        items = list(items)
        total = len(items)
        if total == 0:
            return []
        progress_label = f"{PROGRESS_LABEL_PREFIX}: {label}" if label else PROGRESS_LABEL_PREFIX

        if self._in_worker() or total == 1:
            return self._map_sequential(fn, items, progress_label, progress)

        executor = self._get_executor()
        logger.debug(f"Fanning out {total} tasks for {progress_label}")
        results: List[Any] = [None] * total
        errors: List[Optional[BaseException]] = [None] * total
        future_to_index = {executor.submit(fn, item): index for index, item in enumerate(items)}

        if progress is not None:
            progress(ProgressEvent(0.0, progress_label))
        done_count = 0
        for future in concurrent.futures.as_completed(future_to_index):
            index = future_to_index[future]
            error = future.exception()
            if error is None:
                results[index] = future.result()
            else:
                errors[index] = error
            done_count += 1
            if progress is not None:
                progress(ProgressEvent(done_count / total, progress_label))

        for index, error in enumerate(errors):
            if error is not None:
                failed = sum(1 for e in errors if e is not None)
                logger.error(f"{progress_label}: {failed}/{total} tasks failed, first at index {index}: {error}")
                raise error
        return results

    def _map_sequential(self, fn, items, progress_label, progress):
        results = []
        total = len(items)
        if progress is not None:
            progress(ProgressEvent(0.0, progress_label))
        for index, item in enumerate(items):
            results.append(fn(item))
            if progress is not None:
                progress(ProgressEvent((index + 1) / total, progress_label))
        return results

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
        return False
