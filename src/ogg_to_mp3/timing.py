from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

logger = logging.getLogger(__name__)


class Stopwatch:
    def __init__(self, name: str) -> None:
        self.name = name
        self._start = time.perf_counter()
        self._stop: Optional[float] = None

    def stop(self) -> float:
        if self._stop is None:
            self._stop = time.perf_counter()
        return self.elapsed

    @property
    def elapsed(self) -> float:
        end = self._stop if self._stop is not None else time.perf_counter()
        return end - self._start


@contextmanager
def timed(name: str, report: Optional[Callable[[Stopwatch], None]] = None) -> Iterator[Stopwatch]:
    """Measure the wrapped block and log ``"<name>: <seconds>s"`` at DEBUG.

    *report*, when given, is called with the stopped watch instead of logging.
    """
    watch = Stopwatch(name)
    try:
        yield watch
    finally:
        watch.stop()
        if report is not None:
            report(watch)
        else:
            logger.debug("%s: %.3fs", name, watch.elapsed)
