"""Lightweight structured logging helpers used across the pipeline.

Provides convenience wrappers around :mod:`loguru` so modules can emit
structured events that are also mirrored to a bounded in-memory history for
consumption by a diagnostics panel.
"""

from __future__ import annotations

import json
import threading
import time
from collections import deque
from typing import Any, Deque, Dict, List

from loguru import logger

HISTORY_SIZE = 2000

# in-memory state for throttling helpers
_last_times: Dict[str, float] = {}
_last_values: Dict[str, Any] = {}
_history: Deque[Dict[str, Any]] = deque(maxlen=HISTORY_SIZE)
_history_lock = threading.Lock()

# required field map for known events
_REQUIRED: dict[str, list[str]] = {
    "frame_admitted": ["seq"],
    "detection_failed": ["seq", "error"],
    "region_failed": ["seq", "index", "stage", "error"],
    "result_delivered": ["seq", "crops"],
    "watchdog_reset": ["seq", "busy_s"],
    "config_loaded": ["path"],
}


def _validate(event: str, fields: Dict[str, Any]) -> None:
    required = _REQUIRED.get(event)
    if not required:
        return
    missing = [k for k in required if k not in fields]
    if missing:
        raise KeyError(f"missing fields for {event}: {', '.join(missing)}")


def push_history(payload: Dict[str, Any]) -> None:
    """Append *payload* to the recent events history.

    The history is capped at :data:`HISTORY_SIZE` entries, oldest first out.
    """

    with _history_lock:
        _history.append(payload)


def recent(event: str | None = None) -> List[Dict[str, Any]]:
    """Return recent payloads, optionally filtered by *event* name."""

    with _history_lock:
        items = list(_history)
    if event is None:
        return items
    return [p for p in items if p.get("event") == event]


def clear_history() -> None:
    with _history_lock:
        _history.clear()


def _log(level: str, event: str, **fields: Any) -> None:
    """Internal helper to emit a structured log and mirror it to history."""

    _validate(event, fields)
    payload: Dict[str, Any] = {
        "ts": time.time(),
        "level": level,
        "event": event,
        **fields,
    }
    logger.log(level.upper(), json.dumps(payload, default=str))
    push_history(payload)


def event(event: str, **fields: Any) -> None:
    """Log an informational *event* with structured *fields*."""

    _log("info", event, **fields)


def warn(event: str, **fields: Any) -> None:
    """Log a warning *event*."""

    _log("warning", event, **fields)


def error(event: str, **fields: Any) -> None:
    """Log an error *event*."""

    _log("error", event, **fields)


def debug(event: str, **fields: Any) -> None:
    """Log a debug *event*."""

    _log("debug", event, **fields)


def every(seconds: float, key: str) -> bool:
    """Return ``True`` if ``seconds`` elapsed since last call with *key*.

    This is useful for rate-limiting noisy logs.
    """

    now = time.time()
    last = _last_times.get(key, 0)
    if now - last >= seconds:
        _last_times[key] = now
        return True
    return False


def on_change(key: str, value: Any) -> bool:
    """Return ``True`` when *value* differs from the previous call."""

    if _last_values.get(key) != value:
        _last_values[key] = value
        return True
    return False


__all__ = [
    "event",
    "warn",
    "error",
    "debug",
    "every",
    "on_change",
    "push_history",
    "recent",
    "clear_history",
]
