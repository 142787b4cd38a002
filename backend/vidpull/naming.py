"""
Output naming.

Derives a filesystem-safe base filename from the video title reported
by yt-dlp, or from the current time when the title cannot be fetched.
"""

import logging
import re
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from .jobs.errors import ToolExecutionError

if TYPE_CHECKING:
    from .execution.cancellation import CancellationToken
    from .execution.runner import ProcessRunner

logger = logging.getLogger(__name__)


MAX_NAME_LENGTH = 150
FALLBACK_NAME = "video"

_INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(name: str) -> str:
    """
    Make a title safe to use as a filename on every platform.

    Invalid and control characters become "_", whitespace runs collapse
    to one space, and the result is capped at MAX_NAME_LENGTH characters.
    Idempotent: sanitize_filename(sanitize_filename(x)) == sanitize_filename(x).
    """
    name = name.strip()
    name = _INVALID_CHARS.sub("_", name)
    name = _WHITESPACE.sub(" ", name)
    name = name.strip()
    if not name:
        name = FALLBACK_NAME
    if len(name) > MAX_NAME_LENGTH:
        name = name[:MAX_NAME_LENGTH].rstrip()
    return name


def timestamp_name(now: Optional[datetime] = None) -> str:
    """Timestamp in YYYYMMDD-HHMMSS form."""
    return (now or datetime.now()).strftime("%Y%m%d-%H%M%S")


def fallback_title(now: Optional[datetime] = None) -> str:
    return f"video-{timestamp_name(now)}"


def resolve_title(
    runner: "ProcessRunner",
    token: "CancellationToken",
    downloader: str,
    url: str,
) -> str:
    """
    Ask yt-dlp for the video title and sanitize it.

    Falls back to a timestamp name when yt-dlp fails or prints nothing.
    JobCancelled is not caught: a cancelled title query ends the job.
    """
    try:
        run = runner.run(token, downloader, ["--get-title", "--no-playlist", url], name="yt-dlp")
    except ToolExecutionError as e:
        logger.warning(f"[Naming] Title lookup failed, using timestamp name: {e}")
        return fallback_title()

    title = next((line.strip() for line in run.stdout.splitlines() if line.strip()), "")
    if not title:
        logger.warning("[Naming] Empty title, using timestamp name")
        return fallback_title()
    return sanitize_filename(title)
