"""
Job controller: the single in-flight job slot.

Owns the JobStatus, the cancellation handle of the running job and the
busy flag. Runs the selected pipeline on the caller's thread.

Locking:
- _status_lock guards _status and _busy
- _handle_lock guards _cancel_handle
- The pipeline runs without holding either, so status() and cancel()
  never wait on tool execution.

The slot stays busy until the pipeline has returned and cleaned up,
even after cancel() has already reported the job as cancelled. A new
job cannot start while a cancelled one is still removing its temp
directory.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from ..execution.cancellation import CancellationToken, REASON_TIMEOUT, REASON_USER
from ..execution.pipeline import Pipeline
from ..settings import RuntimeSettings
from .errors import JobCancelled, JobConflictError, JobError, NoActiveJobError
from .models import JobRequest, JobStage, JobStatus, validate_request
from .state import can_transition

logger = logging.getLogger(__name__)


CANCELLED_BY_USER = "Cancelled by user."
CANCELLED_BY_TIMEOUT = "Job exceeded the time limit."


def _cancelled_detail(reason: Optional[str]) -> str:
    if reason == REASON_TIMEOUT:
        return CANCELLED_BY_TIMEOUT
    return CANCELLED_BY_USER


class JobController:
    """
    Accepts at most one job at a time and exposes its status.

    Boundary for every adapter (HTTP, CLI): start(), cancel(), status().
    """

    def __init__(
        self,
        settings: Optional[RuntimeSettings] = None,
        pipeline: Optional[Pipeline] = None,
    ):
        self.settings = settings or RuntimeSettings()
        self.pipeline = pipeline or Pipeline(self.settings)

        self._status_lock = threading.Lock()
        self._handle_lock = threading.Lock()
        self._status = JobStatus()
        self._busy = False
        self._cancel_handle: Optional[Callable[[str], bool]] = None

    # -------------------------------------------------------------------------
    # Boundary
    # -------------------------------------------------------------------------

    def status(self) -> JobStatus:
        """Snapshot of the job slot."""
        with self._status_lock:
            return self._status.model_copy()

    @property
    def busy(self) -> bool:
        """True while a pipeline is executing, cancelled or not."""
        with self._status_lock:
            return self._busy

    def start(self, request: JobRequest) -> Path:
        """
        Run one job to completion on the calling thread.

        Returns:
            Path of the produced file

        Raises:
            JobConflictError: Another job is in flight, status untouched
            ValidationError: Request rejected, status untouched
            JobCancelled: Cancelled by the operator or by the time limit
            JobError: Any other job failure (status already FAILED)
        """
        token = CancellationToken(timeout=self.settings.job_timeout_seconds)

        with self._status_lock:
            if self._busy or self._status.running:
                logger.info("[LIFECYCLE] start() rejected, a job is already running")
                raise JobConflictError()
            validate_request(request)

            self._busy = True
            # A new job always resets the slot, whatever the previous outcome
            old_stage = self._status.stage
            self._status = JobStatus(running=True, stage=JobStage.IDLE, detail="Starting job...")
            # Published before the lock drops: running=True always has a cancel handle
            with self._handle_lock:
                self._cancel_handle = token.cancel
            logger.info(f"[LIFECYCLE] Job slot claimed: {old_stage.value} -> idle")

        logger.info(
            f"[LIFECYCLE] Starting {request.action.value} job "
            f"(profile={request.profile.value}, url={request.source_url})"
        )

        try:
            outcome = self.pipeline.run(request, token, self._report)
            self._finish(JobStage.FINISHED, outcome.detail)
            return outcome.output_path
        except JobCancelled as e:
            self._finish(JobStage.CANCELLED, _cancelled_detail(e.reason))
            raise
        except JobError as e:
            logger.error(f"[LIFECYCLE] Job failed: {e}")
            self._finish(JobStage.FAILED, e.detail)
            raise
        except Exception as e:
            logger.exception(f"[LIFECYCLE] Job crashed: {e}")
            self._finish(JobStage.FAILED, str(e) or type(e).__name__)
            raise
        finally:
            with self._handle_lock:
                self._cancel_handle = None
            token.cancel()
            with self._status_lock:
                self._busy = False
            logger.info("[LIFECYCLE] Job slot released")

    def cancel(self) -> None:
        """
        Cancel the running job.

        Status flips to CANCELLED immediately; the pipeline unwinds and
        cleans up on its own thread.

        Raises:
            NoActiveJobError: Nothing to cancel, status untouched
        """
        with self._handle_lock:
            handle = self._cancel_handle
            if handle is None:
                raise NoActiveJobError()
            self._cancel_handle = None

        handle(REASON_USER)
        logger.info("[LIFECYCLE] cancel() fired the job token")

        with self._status_lock:
            self._transition(JobStage.CANCELLED, CANCELLED_BY_USER, running=False)

    # -------------------------------------------------------------------------
    # Stage updates
    # -------------------------------------------------------------------------

    def _report(self, stage: JobStage, detail: str) -> None:
        """Progress callback handed to the pipeline."""
        with self._status_lock:
            if not self._status.running:
                logger.debug(f"[LIFECYCLE] Ignoring progress after job ended: {stage.value} ({detail})")
                return
            self._transition(stage, detail, running=True)

    def _finish(self, stage: JobStage, detail: str) -> None:
        with self._status_lock:
            self._transition(stage, detail, running=False)

    def _transition(self, stage: JobStage, detail: str, running: bool) -> bool:
        """Apply a stage change. Caller holds _status_lock."""
        current = self._status.stage
        if not can_transition(current, stage):
            logger.warning(
                f"[LIFECYCLE] Dropped illegal transition {current.value} -> {stage.value} ({detail!r})"
            )
            return False
        if current != stage:
            logger.info(f"[LIFECYCLE] Job transitioned: {current.value} -> {stage.value}")
        self._status = JobStatus(running=running, stage=stage, detail=detail)
        return True
