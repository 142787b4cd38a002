"""
Tool execution for download and transcode jobs.

The pipelines that combine these pieces live in
vidpull.execution.pipeline.
"""

from .cancellation import CancellationToken, REASON_TIMEOUT, REASON_USER
from .runner import ProcessRunner, ToolRun
from .tools import ToolLocator
from .artifacts import (
    cleanup_convert_temp,
    cleanup_download_artifacts,
    find_artifact,
    find_by_prefix,
)

__all__ = [
    "CancellationToken",
    "REASON_TIMEOUT",
    "REASON_USER",
    "ProcessRunner",
    "ToolRun",
    "ToolLocator",
    "cleanup_convert_temp",
    "cleanup_download_artifacts",
    "find_artifact",
    "find_by_prefix",
]
