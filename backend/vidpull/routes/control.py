"""
Control endpoints: start, observe and cancel the single job.

Thin HTTP adapter over JobController. Handlers are plain defs so the
blocking /action call runs in the server threadpool while /status and
/cancel stay responsive.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from ..jobs.controller import JobController
from ..jobs.errors import (
    JobCancelled,
    JobConflictError,
    JobError,
    NoActiveJobError,
    ValidationError,
)
from ..jobs.models import JobAction, JobRequest, JobStatus
from ..execution.cancellation import REASON_TIMEOUT

logger = logging.getLogger(__name__)

router = APIRouter(tags=["control"])


class ActionRequest(BaseModel):
    """Request body for POST /action."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    action: str
    url: str = ""
    profile: str = ""
    start: Optional[str] = None
    end: Optional[str] = None
    output_dir: str = Field(default="", alias="outputDir")


class CancelResponse(BaseModel):
    ok: bool = True


def _controller(request: Request) -> JobController:
    return request.app.state.controller


def _parse_action(value: str) -> JobAction:
    try:
        return JobAction(value.strip().lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown action: {value}")


@router.post("/action", response_class=PlainTextResponse)
def action_endpoint(body: ActionRequest, request: Request):
    """
    Run a download or convert job and wait for it to end.

    Status codes:
        200: Job finished, body names the output file
        400: Invalid request or unknown action
        408: Cancelled by the operator or the time limit
        409: Another job is running
        500: Tool missing, tool failure or output not found
    """
    action = _parse_action(body.action)
    job = JobRequest(
        action=action,
        source_url=body.url,
        destination_dir=body.output_dir,
        profile=body.profile,
        trim_start=body.start,
        trim_end=body.end,
    )

    if action == JobAction.DOWNLOAD:
        done_label, error_label = "Download complete", "Download error"
    else:
        done_label, error_label = "Conversion complete", "Conversion error"

    try:
        output = _controller(request).start(job)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except JobConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except JobCancelled as e:
        if e.reason == REASON_TIMEOUT:
            raise HTTPException(status_code=408, detail="Operation exceeded the time limit.")
        raise HTTPException(status_code=408, detail="Operation cancelled by the user.")
    except JobError as e:
        raise HTTPException(status_code=500, detail=f"{error_label}: {e.detail}")
    except Exception as e:
        logger.error(f"[HTTP] /action failed unexpectedly: {e}")
        raise HTTPException(status_code=500, detail=f"{error_label}: {e}")

    return f"{done_label}: {output.name}"


@router.get("/status", response_model=JobStatus)
def status_endpoint(request: Request):
    return _controller(request).status()


@router.post("/cancel", response_model=CancelResponse)
def cancel_endpoint(request: Request):
    """Cancel the running job. 400 when nothing is running."""
    try:
        _controller(request).cancel()
    except NoActiveJobError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CancelResponse(ok=True)


@router.get("/health")
def health_endpoint():
    return {"service": "vidpull", "status": "running"}
