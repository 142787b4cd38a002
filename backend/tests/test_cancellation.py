"""
Tests for CancellationToken.
"""

import threading
import time

import pytest

from vidpull.execution import REASON_TIMEOUT, REASON_USER, CancellationToken
from vidpull.jobs.errors import JobCancelled


class TestCancellationToken:

    def test_live_token(self):
        token = CancellationToken()
        assert not token.is_cancelled()
        assert token.reason is None
        assert token.remaining() is None
        token.raise_if_cancelled()

    def test_cancel_is_idempotent(self):
        token = CancellationToken()
        assert token.cancel() is True
        assert token.cancel() is False
        assert token.is_cancelled()
        assert token.reason == REASON_USER

    def test_first_reason_wins(self):
        token = CancellationToken()
        token.cancel(REASON_USER)
        token.cancel(REASON_TIMEOUT)
        assert token.reason == REASON_USER

    def test_deadline_fires_with_timeout_reason(self):
        token = CancellationToken(timeout=0.01)
        time.sleep(0.05)
        assert token.is_cancelled()
        assert token.reason == REASON_TIMEOUT
        with pytest.raises(JobCancelled) as exc_info:
            token.raise_if_cancelled()
        assert exc_info.value.reason == REASON_TIMEOUT

    def test_wait_returns_when_cancelled_from_another_thread(self):
        token = CancellationToken()
        timer = threading.Timer(0.05, token.cancel)
        timer.start()
        try:
            assert token.wait(timeout=5) is True
        finally:
            timer.cancel()

    def test_wait_times_out(self):
        token = CancellationToken()
        assert token.wait(timeout=0.01) is False

    def test_wait_bounded_by_deadline(self):
        token = CancellationToken(timeout=0.05)
        started = time.monotonic()
        assert token.wait(timeout=5) is True
        assert time.monotonic() - started < 2
