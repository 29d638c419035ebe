from __future__ import annotations

"""Helpers for managing thread lifecycle and stalled frame recovery."""

import signal
import threading
import time
import weakref
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:  # pragma: no cover
    from modules.frame_analyser import FrameAnalyser


# Global event signalling application shutdown
shutdown_event = threading.Event()


class StoppableThread(threading.Thread):
    """Thread with a ``stop_event`` for graceful termination."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.stop_event = threading.Event()

    def stop(self) -> None:
        """Request the thread to stop."""
        self.stop_event.set()

    @property
    def running(self) -> bool:
        """Whether the thread should keep running."""
        return not (self.stop_event.is_set() or shutdown_event.is_set())


_signals_registered = False


def _handle_stop_signal(signum, frame) -> None:  # pragma: no cover - simple handler
    shutdown_event.set()


def register_signal_handlers() -> None:
    """Register SIGINT/SIGTERM handlers to set the global stop flag."""
    global _signals_registered
    if _signals_registered:
        return
    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _handle_stop_signal)
    _signals_registered = True


# --- Watchdog ---------------------------------------------------------------

# analysers dropped without close() fall out of the registry
_analysers: weakref.WeakValueDictionary[int, FrameAnalyser] = weakref.WeakValueDictionary()
_watchdog: Watchdog | None = None
_registry_lock = threading.Lock()


class Watchdog(StoppableThread):
    """Force-reset analysers whose in-flight frame exceeded its timeout."""

    def __init__(self, *, interval: float = 0.5) -> None:
        super().__init__(daemon=True, name="watchdog")
        self.interval = interval

    def check_once(self, now: float | None = None) -> int:
        """Check every registered analyser once and return the reset count."""
        now = time.monotonic() if now is None else now
        with _registry_lock:
            analysers = list(_analysers.values())
        resets = 0
        for analyser in analysers:
            try:
                if analyser.check_stalled(now):
                    resets += 1
            except Exception:
                logger.exception("watchdog check failed")
        return resets

    def run(self) -> None:  # pragma: no cover - simple loop
        while self.running:
            self.check_once()
            self.stop_event.wait(self.interval)


def register_analyser(analyser: FrameAnalyser, *, interval: float = 0.5) -> None:
    """Add an analyser to be monitored by the watchdog."""
    global _watchdog
    with _registry_lock:
        _analysers[id(analyser)] = analyser
        if _watchdog is None or not _watchdog.is_alive():
            _watchdog = Watchdog(interval=interval)
            _watchdog.start()
        else:
            _watchdog.interval = min(_watchdog.interval, interval)


def unregister_analyser(analyser: FrameAnalyser) -> None:
    """Remove an analyser from watchdog monitoring."""
    with _registry_lock:
        _analysers.pop(id(analyser), None)


def registered_analysers() -> list:
    with _registry_lock:
        return list(_analysers.values())


__all__ = [
    "shutdown_event",
    "StoppableThread",
    "register_signal_handlers",
    "Watchdog",
    "register_analyser",
    "unregister_analyser",
    "registered_analysers",
]
