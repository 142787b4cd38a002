"""
Tests for ProcessRunner against real child processes.

Uses the current interpreter as the "tool" so no external binaries are
needed.
"""

import os
import sys
import threading
import time

import pytest

from vidpull.execution import REASON_TIMEOUT, CancellationToken, ProcessRunner
from vidpull.execution.runner import combine_output
from vidpull.jobs.errors import JobCancelled, ToolExecutionError, ToolNotFoundError


@pytest.fixture
def runner():
    return ProcessRunner(poll_interval=0.05, terminate_grace=2.0)


class TestProcessRunner:

    def test_success_captures_output(self, runner):
        run = runner.run(
            CancellationToken(),
            sys.executable,
            ["-c", "import sys; print('hello'); print('warn', file=sys.stderr)"],
            name="python",
        )
        assert run.returncode == 0
        assert run.stdout.strip() == "hello"
        assert run.stderr.strip() == "warn"

    def test_failure_raises_with_combined_log(self, runner):
        with pytest.raises(ToolExecutionError) as exc_info:
            runner.run(
                CancellationToken(),
                sys.executable,
                ["-c", "import sys; print('out'); print('boom', file=sys.stderr); sys.exit(3)"],
                name="python",
            )
        error = exc_info.value
        assert error.returncode == 3
        assert "out" in error.log
        assert "boom" in error.log
        assert error.detail.startswith("python failed:\n")

    def test_failure_without_output(self, runner):
        with pytest.raises(ToolExecutionError) as exc_info:
            runner.run(CancellationToken(), sys.executable, ["-c", "import sys; sys.exit(2)"])
        assert "exit code 2" in exc_info.value.log

    def test_cancelled_token_never_spawns(self, runner, tmp_path):
        marker = tmp_path / "spawned"
        token = CancellationToken()
        token.cancel()
        with pytest.raises(JobCancelled):
            runner.run(token, sys.executable, ["-c", f"open({str(marker)!r}, 'w').close()"])
        assert not marker.exists()

    def test_missing_executable(self, runner, tmp_path):
        with pytest.raises(ToolNotFoundError):
            runner.run(CancellationToken(), str(tmp_path / "no-such-tool"), [])

    def test_cancel_kills_running_child(self, runner):
        """
        GIVEN: A child sleeping for 60 seconds
        WHEN: The token is cancelled from another thread
        THEN: JobCancelled is raised well before the sleep ends
        """
        token = CancellationToken()
        timer = threading.Timer(0.3, token.cancel)
        timer.start()
        started = time.monotonic()
        try:
            with pytest.raises(JobCancelled):
                runner.run(token, sys.executable, ["-c", "import time; time.sleep(60)"])
        finally:
            timer.cancel()
        assert time.monotonic() - started < 15

    @pytest.mark.skipif(os.name == "nt", reason="SIGTERM handling is POSIX-only")
    def test_cancel_escalates_when_sigterm_ignored(self):
        runner = ProcessRunner(poll_interval=0.05, terminate_grace=0.5)
        token = CancellationToken()
        timer = threading.Timer(0.3, token.cancel)
        timer.start()
        script = (
            "import signal, sys, time\n"
            "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
            "print('ready', flush=True)\n"
            "time.sleep(60)\n"
        )
        started = time.monotonic()
        try:
            with pytest.raises(JobCancelled):
                runner.run(token, sys.executable, ["-c", script])
        finally:
            timer.cancel()
        assert time.monotonic() - started < 15

    def test_deadline_cancels_with_timeout_reason(self, runner):
        token = CancellationToken(timeout=0.3)
        with pytest.raises(JobCancelled) as exc_info:
            runner.run(token, sys.executable, ["-c", "import time; time.sleep(60)"])
        assert exc_info.value.reason == REASON_TIMEOUT


class TestCombineOutput:

    def test_trims_and_joins(self):
        assert combine_output("  a\n", "b  ") == "a\n\nb"

    def test_handles_missing_streams(self):
        assert combine_output(None, None) == ""
