"""
Job-specific error types.

All errors inherit from JobError for easy catching.
Every error exposes a ``detail`` string that the controller copies
into the job status when the job ends because of it.
"""

from typing import Optional


class JobError(Exception):
    """Base exception for all job-related failures."""

    @property
    def detail(self) -> str:
        return str(self)


class ValidationError(JobError):
    """Raised when a request is rejected before any tool runs."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class JobConflictError(JobError):
    """Raised when a job is started while another one is in flight."""

    def __init__(self, message: str = "A job is already running. Wait for it to finish."):
        super().__init__(message)


class NoActiveJobError(JobError):
    """Raised when cancel is requested but nothing is running."""

    def __init__(self):
        super().__init__("No job is running.")


class ToolNotFoundError(JobError):
    """Raised when a required external tool cannot be located."""

    def __init__(self, tool: str, searched: Optional[list[str]] = None):
        self.tool = tool
        self.searched = searched or []
        where = ", ".join(self.searched) if self.searched else "PATH"
        super().__init__(f"{tool} not found (searched {where})")


class ToolExecutionError(JobError):
    """
    Raised when an external tool ran and exited non-zero.

    Carries the captured combined log. The pipeline may replace the
    user-facing detail (e.g. to label the logs of a fallback attempt)
    without losing the raw log of the last run.
    """

    def __init__(self, tool: str, returncode: Optional[int], log: str, detail: Optional[str] = None):
        self.tool = tool
        self.returncode = returncode
        self.log = log
        self._detail = detail
        super().__init__(f"{tool} exited with code {returncode}")

    @property
    def detail(self) -> str:
        if self._detail is not None:
            return self._detail
        return f"{self.tool} failed:\n{self.log}"

    def with_detail(self, detail: str) -> "ToolExecutionError":
        """Return a copy of this error carrying a different detail."""
        return ToolExecutionError(self.tool, self.returncode, self.log, detail=detail)


class OutputNotFoundError(JobError):
    """Raised when a tool reported success but its output cannot be found."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(f"Output file not found for pattern: {pattern}")


class JobCancelled(JobError):
    """
    Cancellation sentinel.

    Raised when the job's cancellation token fired (operator cancel or
    timeout). Never reported as a failure.
    """

    def __init__(self, reason: str = "cancelled"):
        self.reason = reason
        super().__init__(f"Job cancelled ({reason})")
