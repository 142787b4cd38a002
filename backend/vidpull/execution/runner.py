"""
External tool execution.

Runs one yt-dlp / ffmpeg invocation bound to a CancellationToken.

Design rules:
- One subprocess per call, blocking the calling thread
- Capture stdout + stderr; the combined log is the failure detail
- Non-zero exit = ToolExecutionError
- Token fired before or during the run = JobCancelled, never a failure
- SIGTERM → SIGKILL escalation on the whole process group, because
  yt-dlp spawns ffmpeg itself for merging
"""

import logging
import os
import signal
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

from ..jobs.errors import JobCancelled, ToolExecutionError, ToolNotFoundError
from .cancellation import CancellationToken, REASON_USER

logger = logging.getLogger(__name__)


DEFAULT_POLL_INTERVAL = 0.2
DEFAULT_TERMINATE_GRACE = 5.0


@dataclass(frozen=True)
class ToolRun:
    """Captured result of a successful tool invocation."""

    tool: str
    args: Tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


def combine_output(stdout: Optional[str], stderr: Optional[str]) -> str:
    return f"{stdout or ''}\n{stderr or ''}".strip()


def _spawn_kwargs() -> dict:
    """Put the child in its own process group so the whole tree can be signalled."""
    if os.name == "nt":
        flags = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)
        flags |= getattr(subprocess, "CREATE_NO_WINDOW", 0)
        return {"creationflags": flags}
    return {"start_new_session": True}


def _kill_tree(process: subprocess.Popen, force: bool) -> None:
    if process.poll() is not None:
        return
    if os.name == "nt":
        # taskkill /T is the only way to reach grandchildren on Windows
        result = subprocess.run(
            ["taskkill", "/F", "/T", "/PID", str(process.pid)],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )
        if result.returncode != 0 and process.poll() is None:
            process.kill()
        return
    sig = signal.SIGKILL if force else signal.SIGTERM
    try:
        os.killpg(process.pid, sig)
    except ProcessLookupError:
        pass  # Process already dead
    except PermissionError:
        process.send_signal(sig)


class ProcessRunner:
    """
    Blocking, cancellable subprocess runner.

    Waits with communicate(timeout=poll_interval) so output is never lost
    while the token is polled between rounds.
    """

    def __init__(
        self,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        terminate_grace: float = DEFAULT_TERMINATE_GRACE,
    ):
        self.poll_interval = poll_interval
        self.terminate_grace = terminate_grace

    def run(
        self,
        token: CancellationToken,
        tool: str,
        args: Sequence[str],
        name: Optional[str] = None,
    ) -> ToolRun:
        """
        Run a tool to completion.

        Args:
            token: Job cancellation token
            tool: Executable path
            args: Arguments after the executable
            name: Short label for logs and errors (defaults to the file stem)

        Returns:
            ToolRun for an exit code of 0

        Raises:
            JobCancelled: Token fired before or during the run
            ToolExecutionError: Non-zero exit for any other reason
            ToolNotFoundError: Executable vanished between lookup and spawn
        """
        name = name or Path(tool).stem
        token.raise_if_cancelled()

        cmd = [tool, *args]
        logger.info(f"[{name}] Executing: {' '.join(cmd)}")

        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                **_spawn_kwargs(),
            )
        except FileNotFoundError:
            raise ToolNotFoundError(tool)

        logger.info(f"[{name}] Started PID {process.pid}")

        try:
            while True:
                try:
                    stdout, stderr = process.communicate(timeout=self.poll_interval)
                    break
                except subprocess.TimeoutExpired:
                    if token.is_cancelled():
                        self._terminate(process, name)
                        logger.info(f"[{name}] PID {process.pid} stopped by cancellation")
                        raise JobCancelled(token.reason or REASON_USER)
        except BaseException:
            # Never leave a child behind, whatever interrupted the wait
            if process.poll() is None:
                _kill_tree(process, force=True)
                process.wait()
            raise

        exit_code = process.returncode
        logger.info(f"[{name}] PID {process.pid} exited with code {exit_code}")

        if exit_code != 0:
            if token.is_cancelled():
                raise JobCancelled(token.reason or REASON_USER)
            log = combine_output(stdout, stderr) or f"(no output, exit code {exit_code})"
            logger.error(f"[{name}] Failed with code {exit_code}")
            raise ToolExecutionError(name, exit_code, log)

        return ToolRun(
            tool=name,
            args=tuple(args),
            returncode=exit_code,
            stdout=stdout or "",
            stderr=stderr or "",
        )

    def _terminate(self, process: subprocess.Popen, name: str) -> None:
        """SIGTERM the process group, escalate to SIGKILL after the grace period."""
        logger.info(f"[{name}] Sending SIGTERM to PID {process.pid}")
        _kill_tree(process, force=False)
        try:
            process.communicate(timeout=self.terminate_grace)
        except subprocess.TimeoutExpired:
            logger.warning(f"[{name}] PID {process.pid} did not terminate, sending SIGKILL")
            _kill_tree(process, force=True)
            process.communicate()
