"""
Job request and status models.

JobRequest is the immutable description of one job.
JobStatus is the observable state of the single in-flight job slot.

All models use Pydantic. Business validation (trim window, required
fields) raises vidpull's own ValidationError, not pydantic's, so the
caller sees one error type for every rejected request.
"""

import re
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from ..presets.catalog import Profile, parse_profile
from .errors import ValidationError


TIMECODE_RE = re.compile(r"[0-9]{2}:[0-5][0-9]:[0-5][0-9]")


class JobAction(str, Enum):
    """What the operator asked for."""

    DOWNLOAD = "download"
    CONVERT = "convert"


class JobStage(str, Enum):
    """
    Stage of the single in-flight job.

    FINISHED, FAILED and CANCELLED are terminal for one job invocation.
    """

    IDLE = "idle"
    DOWNLOADING = "downloading"
    CONVERTING = "converting"
    FINISHED = "finished"
    FAILED = "failed"
    CANCELLED = "cancelled"


class JobRequest(BaseModel):
    """
    Immutable job request.

    profile accepts any string; unknown names resolve to Profile.DEFAULT.
    trim_start / trim_end are HH:MM:SS timecodes, both or neither.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    action: JobAction
    source_url: str
    destination_dir: str
    profile: Profile = Profile.ORIGINAL
    trim_start: Optional[str] = None
    trim_end: Optional[str] = None

    @field_validator("profile", mode="before")
    @classmethod
    def resolve_profile(cls, v):
        if isinstance(v, Profile):
            return v
        return parse_profile(v)

    @field_validator("source_url", "destination_dir", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("trim_start", "trim_end", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @property
    def routes_to_download(self) -> bool:
        """Download action, or a convert whose profile is pass-through."""
        return self.action == JobAction.DOWNLOAD or self.profile == Profile.ORIGINAL


class JobStatus(BaseModel):
    """Observable state of the job slot."""

    model_config = ConfigDict(extra="forbid")

    running: bool = False
    stage: JobStage = JobStage.IDLE
    detail: str = ""


def timecode_to_seconds(value: str) -> int:
    hours, minutes, seconds = (int(part) for part in value.split(":"))
    return hours * 3600 + minutes * 60 + seconds


def validate_trim_window(start: Optional[str], end: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Validate an optional trim window.

    Returns:
        (start, end) when a window is set, None when both are empty

    Raises:
        ValidationError: One bound missing, malformed timecode, or start >= end
    """
    if not start and not end:
        return None
    if not start or not end:
        raise ValidationError("Fill in both start and end, or leave both empty.")
    if not TIMECODE_RE.fullmatch(start) or not TIMECODE_RE.fullmatch(end):
        raise ValidationError("Times must use the HH:MM:SS format.")
    if timecode_to_seconds(start) >= timecode_to_seconds(end):
        raise ValidationError("Start time must be before end time.")
    return start, end


def validate_request(request: JobRequest) -> None:
    """
    Reject a request before any state changes or tools run.

    Raises:
        ValidationError: If any field is unusable
    """
    if not request.source_url:
        raise ValidationError("Video URL is required.")
    if not request.destination_dir:
        raise ValidationError("Choose a destination folder.")
    if Path(request.destination_dir).exists() and not Path(request.destination_dir).is_dir():
        raise ValidationError(f"Destination is not a folder: {request.destination_dir}")
    validate_trim_window(request.trim_start, request.trim_end)
