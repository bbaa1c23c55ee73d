"""Cancellation and first-failure signalling shared by pipeline threads."""

from __future__ import annotations

import threading
import time
from typing import Optional

from .errors import Cancelled, PipelineError


class CancelToken:
    """External cancellation signal with an optional deadline.

    Any thread may call ``cancel``; every pipeline thread polls ``cancelled``
    between blocking waits, so a cancelled run winds down within one poll
    interval.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason = "operation cancelled"
        self._timed_out = False
        self._deadline: Optional[float] = None
        if timeout is not None and timeout > 0:
            self._deadline = time.monotonic() + timeout

    def cancel(self, reason: str = "operation cancelled") -> None:
        self._mark(reason, timed_out=False)

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._mark("operation timed out", timed_out=True)
            return True
        return False

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def error(self) -> Cancelled:
        with self._lock:
            return Cancelled(self._reason, timed_out=self._timed_out)

    def _mark(self, reason: str, *, timed_out: bool) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._timed_out = timed_out
            self._event.set()


class FailureSignal:
    """Single-slot holder for the first pipeline failure."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._error: Optional[PipelineError] = None

    def set(self, error: PipelineError) -> bool:
        """Record ``error`` unless another failure got there first."""
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            self._event.set()
            return True

    def is_set(self) -> bool:
        return self._event.is_set()

    @property
    def error(self) -> Optional[PipelineError]:
        with self._lock:
            return self._error


__all__ = ["CancelToken", "FailureSignal"]
