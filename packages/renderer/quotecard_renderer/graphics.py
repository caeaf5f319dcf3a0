"""Single graphics worker that serializes rasterization jobs."""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable

from .errors import GraphicsContextFailure

logger = logging.getLogger("quotecard.graphics")

_STOP = object()


class GraphicsContext:
    """Runs submitted callables one at a time on a dedicated thread.

    The queue is bounded; ``submit`` blocks while it is full. A job that raises
    fails only its own future.
    """

    def __init__(self, queue_size: int = 8, name: str = "quotecard-graphics") -> None:
        self._queue: queue.Queue = queue.Queue(maxsize=max(1, queue_size))
        self._lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        with self._lock:
            if self._closed:
                raise GraphicsContextFailure("Graphics context is closed")
            future: Future = Future()
            self._queue.put((future, fn, args, kwargs))
        return future

    def call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return self.submit(fn, *args, **kwargs).result()

    def close(self, wait: bool = True) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)
        if wait and threading.current_thread() is not self._thread:
            self._thread.join()

    def __enter__(self) -> "GraphicsContext":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            future, fn, args, kwargs = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = fn(*args, **kwargs)
            except Exception as exc:
                logger.debug(f"graphics job failed: {exc}", extra={"event": "graphics_job_failed"})
                future.set_exception(exc)
            else:
                future.set_result(result)
