from __future__ import annotations

import asyncio
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from compress_resize.logger import get_logger
from compress_resize.settings_manager import CompressionSettings

from .metrics import metrics
from .models import EncodedResult
from .pipeline import run

_logger = get_logger("loader")

RunFn = Callable[..., EncodedResult]


class PipelineLoader:
    """Runs pipeline calls off the caller's thread.

    Each submission gets an increasing request id. A run is never cancelled
    once started; when a newer submission exists its result is reported as
    stale so the caller can drop it. run_fn must have the signature of
    ``pipeline.run``.
    """

    def __init__(self, run_fn: RunFn = run, max_workers: int = 1):
        self._run_fn = run_fn
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="compress-resize")
        self._next_id = 1
        self._latest_id: int | None = None
        self._lock = threading.Lock()

    def submit(
        self, source: bytes, mime_type: str | None, config: CompressionSettings | None = None
    ) -> Future[EncodedResult]:
        with self._lock:
            req_id = self._next_id
            self._next_id += 1
            self._latest_id = req_id
        future = self.executor.submit(self._run_fn, source, mime_type, config)
        future._req_id = req_id  # type: ignore[attr-defined]
        metrics.inc("loader.submitted")
        future.add_done_callback(self._on_finished)
        return future

    def _on_finished(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            _logger.debug("pipeline run failed: %s", exc)
        if self.is_stale(future):
            metrics.inc("loader.stale")
            _logger.debug("request %s finished after a newer submission", self.request_id(future))

    @staticmethod
    def request_id(future: Future) -> int | None:
        return getattr(future, "_req_id", None)

    def is_stale(self, future: Future) -> bool:
        """True when a newer request was submitted after ``future``."""
        with self._lock:
            req_id = self.request_id(future)
            return req_id is not None and self._latest_id is not None and req_id != self._latest_id

    async def run_async(
        self, source: bytes, mime_type: str | None, config: CompressionSettings | None = None
    ) -> EncodedResult:
        return await asyncio.wrap_future(self.submit(source, mime_type, config))

    def shutdown(self) -> None:
        self.executor.shutdown(wait=True)

    def __enter__(self) -> PipelineLoader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
