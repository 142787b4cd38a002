"""
Job slot: request/status models, stage machine and error taxonomy.

The controller lives in vidpull.jobs.controller and is imported
from there directly.
"""

from .errors import (
    JobError,
    ValidationError,
    JobConflictError,
    NoActiveJobError,
    ToolNotFoundError,
    ToolExecutionError,
    OutputNotFoundError,
    JobCancelled,
)
from .models import (
    JobAction,
    JobStage,
    JobRequest,
    JobStatus,
    validate_request,
    validate_trim_window,
)
from .state import (
    TERMINAL_STAGES,
    can_transition,
    is_terminal,
)

__all__ = [
    # Errors
    "JobError",
    "ValidationError",
    "JobConflictError",
    "NoActiveJobError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "OutputNotFoundError",
    "JobCancelled",
    # Models
    "JobAction",
    "JobStage",
    "JobRequest",
    "JobStatus",
    "validate_request",
    "validate_trim_window",
    # Stage machine
    "TERMINAL_STAGES",
    "can_transition",
    "is_terminal",
]
