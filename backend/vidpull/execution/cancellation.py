"""
Cancellation token shared by every blocking call of one job.

A token fires either when cancel() is called or when its deadline
passes. Both look identical to the pipeline: the next check raises
JobCancelled. cancel() is idempotent and safe after the job ended.
"""

import threading
import time
from typing import Optional

from ..jobs.errors import JobCancelled


REASON_USER = "user"
REASON_TIMEOUT = "timeout"


class CancellationToken:
    """Thread-safe cancel flag with an optional deadline."""

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[str] = None
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self, reason: str = REASON_USER) -> bool:
        """
        Fire the token.

        Returns:
            True if this call fired it, False if it had already fired
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._reason = reason
            self._event.set()
            return True

    def is_cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel(REASON_TIMEOUT)
            return True
        return False

    @property
    def reason(self) -> Optional[str]:
        """REASON_USER, REASON_TIMEOUT, or None while the token is live."""
        self.is_cancelled()
        with self._lock:
            return self._reason

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, None if there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the token fires or timeout elapses.

        Returns:
            True if the token fired
        """
        remaining = self.remaining()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        self._event.wait(timeout)
        return self.is_cancelled()

    def raise_if_cancelled(self) -> None:
        if self.is_cancelled():
            raise JobCancelled(self.reason or REASON_USER)
