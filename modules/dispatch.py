from __future__ import annotations

"""Single-thread dispatcher standing in for a UI main thread.

State read by a renderer (overlay boxes, the admission flag release) is only
mutated from tasks posted here, so every mutation is serialized on one named
thread.
"""

import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional

from loguru import logger

from core import events
from core.errors import DispatcherStopped
from core.lifecycle import StoppableThread
from utils import logx

_STOP = object()


class MainThreadDispatcher(StoppableThread):
    """Run posted callables one at a time on a dedicated thread."""

    def __init__(self, name: str = "dispatch-main") -> None:
        super().__init__(daemon=True, name=name)
        self._tasks: "queue.Queue[Any]" = queue.Queue()
        self._accepting = threading.Lock()
        self._open = False

    def start(self) -> None:
        with self._accepting:
            self._open = True
        super().start()

    def is_dispatch_thread(self) -> bool:
        return threading.current_thread() is self

    def post(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Queue ``fn(*args, **kwargs)`` and return a future for its result."""
        fut: Future = Future()
        with self._accepting:
            if not self._open:
                raise DispatcherStopped(f"{self.name} is not running")
            self._tasks.put((fut, fn, args, kwargs))
        return fut

    def call(
        self,
        fn: Callable[..., Any],
        *args: Any,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> Any:
        """Run ``fn`` on the dispatch thread and wait for its result.

        Calling from the dispatch thread itself runs ``fn`` inline.
        """
        if self.is_dispatch_thread():
            return fn(*args, **kwargs)
        return self.post(fn, *args, **kwargs).result(timeout=timeout)

    def stop(self, drain: bool = True, timeout: Optional[float] = 5.0) -> None:
        """Stop accepting tasks; run queued ones first when ``drain`` is set."""
        with self._accepting:
            if not self._open:
                return
            self._open = False
            if not drain:
                self._cancel_pending()
            self._tasks.put(_STOP)
        super().stop()
        if self.is_alive() and not self.is_dispatch_thread():
            self.join(timeout)

    def run(self) -> None:
        while True:
            item = self._tasks.get()
            if item is _STOP:
                break
            fut, fn, args, kwargs = item
            if not fut.set_running_or_notify_cancel():
                continue
            try:
                result = fn(*args, **kwargs)
            except Exception as exc:
                logger.exception("dispatched task failed")
                logx.error(events.DISPATCH_FAILED, task=getattr(fn, "__name__", repr(fn)), error=str(exc))
                fut.set_exception(exc)
            else:
                fut.set_result(result)

    def _cancel_pending(self) -> None:
        while True:
            try:
                item = self._tasks.get_nowait()
            except queue.Empty:
                return
            if item is not _STOP:
                item[0].cancel()


__all__ = ["MainThreadDispatcher"]
