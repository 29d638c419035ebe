from __future__ import annotations

"""Single-slot admission control for frame analysers.

A frame is admitted only while no other frame is in flight. Rejected frames
are dropped by the caller; this is the expected backpressure path and not an
error.
"""

import threading
import time
from typing import Dict, Optional


class AdmissionGate:
    """Thread safe ``busy`` flag with test-and-set admission.

    Each admission hands out a ticket. :meth:`release` only clears the flag
    for the ticket currently holding it, so a frame that was force-released
    by the watchdog cannot clear the flag of a newer frame.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._busy = False
        self._ticket = 0
        self._since = 0.0
        self.admitted = 0
        self.rejected = 0
        self.forced = 0
        self.last_busy_s = 0.0

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    @property
    def current(self) -> Optional[int]:
        """Ticket of the frame in flight, ``None`` when idle."""
        with self._lock:
            return self._ticket if self._busy else None

    def try_acquire(self) -> Optional[int]:
        """Set ``busy`` and return a ticket, or ``None`` if already busy."""
        with self._lock:
            if self._busy:
                self.rejected += 1
                return None
            self._busy = True
            self._ticket += 1
            self._since = time.monotonic()
            self.admitted += 1
            return self._ticket

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return self._busy and self._ticket == ticket

    def release(self, ticket: int) -> bool:
        """Clear ``busy`` if ``ticket`` still holds it."""
        with self._lock:
            if not self._busy or self._ticket != ticket:
                return False
            self._clear()
            return True

    def force_release(
        self, older_than: float = 0.0, now: Optional[float] = None
    ) -> Optional[int]:
        """Clear ``busy`` if held for at least ``older_than`` seconds.

        Returns the evicted ticket, or ``None`` when nothing was released.
        """
        now = time.monotonic() if now is None else now
        with self._lock:
            if not self._busy or now - self._since < older_than:
                return None
            self.forced += 1
            self._clear()
            return self._ticket

    def busy_for(self, now: Optional[float] = None) -> float:
        """Seconds the current frame has been in flight, ``0`` when idle."""
        now = time.monotonic() if now is None else now
        with self._lock:
            if not self._busy:
                return 0.0
            return max(0.0, now - self._since)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no frame is in flight; return ``False`` on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: not self._busy, timeout=timeout)

    def stats(self) -> Dict[str, object]:
        with self._lock:
            return {
                "busy": self._busy,
                "admitted": self.admitted,
                "rejected": self.rejected,
                "forced": self.forced,
                "last_busy_s": self.last_busy_s,
            }

    def _clear(self) -> None:
        # caller holds the lock
        self._busy = False
        self.last_busy_s = time.monotonic() - self._since
        self._idle.notify_all()


__all__ = ["AdmissionGate"]
