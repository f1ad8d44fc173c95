"""In-process counters and timings for decode, encode and search work.

Timings are kept as running aggregates per key, so a long-lived host that
pushes many runs through a ``PipelineLoader`` holds a fixed amount of state.

Usage:
    from compress_resize.image_engine.metrics import metrics
    metrics.inc("search.attempts")
    with metrics.timed("pipeline.encode_duration"):
        ...
    metrics.timing("pipeline.encode_duration").mean
"""

from __future__ import annotations

import time
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from threading import RLock
from typing import Any


@dataclass
class TimingStats:
    count: int = 0
    total: float = 0.0
    max: float = 0.0
    last: float = 0.0

    def add(self, elapsed: float) -> None:
        self.count += 1
        self.total += elapsed
        self.last = elapsed
        if elapsed > self.max:
            self.max = elapsed

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0


class _Metrics:
    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._timings: dict[str, TimingStats] = defaultdict(TimingStats)
        self._lock = RLock()

    def inc(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[key] += int(amount)

    def count(self, key: str) -> int:
        with self._lock:
            return self._counters.get(key, 0)

    def timing(self, key: str) -> TimingStats:
        """Copy of the aggregate for ``key``; empty when nothing was timed."""
        with self._lock:
            stats = self._timings.get(key)
            return TimingStats(**asdict(stats)) if stats else TimingStats()

    @contextmanager
    def timed(self, key: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            with self._lock:
                self._timings[key].add(elapsed)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "timings": {k: asdict(v) for k, v in self._timings.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()


metrics = _Metrics()
