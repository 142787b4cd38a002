"""
Runtime settings.

All values come from environment variables with the VIDPULL_ prefix.
Every variable is optional; defaults reproduce a plain local install
where yt-dlp and ffmpeg are on PATH.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional


ENV_TOOLS_DIR = "VIDPULL_TOOLS_DIR"
ENV_TEMP_DIR = "VIDPULL_TEMP_DIR"
ENV_JOB_TIMEOUT = "VIDPULL_JOB_TIMEOUT_SECONDS"
ENV_DOWNLOADER = "VIDPULL_DOWNLOADER"
ENV_TRANSCODER = "VIDPULL_TRANSCODER"
ENV_LOG_LEVEL = "VIDPULL_LOG_LEVEL"
ENV_HOST = "VIDPULL_HOST"
ENV_PORT = "VIDPULL_PORT"

DEFAULT_TEMP_DIR = Path.home() / ".vidpull" / "temp"
DEFAULT_JOB_TIMEOUT_SECONDS = 30 * 60
DEFAULT_HOST = "127.0.0.1"  # Localhost only by default
DEFAULT_PORT = 8080


@dataclass(frozen=True)
class RuntimeSettings:
    """
    Immutable runtime configuration.

    tools_dir: extra directory searched first for yt-dlp / ffmpeg
    temp_dir: working directory owned by the running convert job
    job_timeout_seconds: upper bound for one job, cancel included
    """

    tools_dir: Optional[Path] = None
    temp_dir: Path = field(default_factory=lambda: DEFAULT_TEMP_DIR)
    job_timeout_seconds: float = DEFAULT_JOB_TIMEOUT_SECONDS
    downloader: str = "yt-dlp"
    transcoder: str = "ffmpeg"
    log_level: str = "INFO"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RuntimeSettings":
        """
        Build settings from environment variables.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        env = os.environ if environ is None else environ

        tools_dir = env.get(ENV_TOOLS_DIR)
        temp_dir = env.get(ENV_TEMP_DIR)

        try:
            timeout = float(env.get(ENV_JOB_TIMEOUT, DEFAULT_JOB_TIMEOUT_SECONDS))
        except ValueError:
            raise ValueError(f"{ENV_JOB_TIMEOUT} must be a number of seconds")
        if timeout <= 0:
            raise ValueError(f"{ENV_JOB_TIMEOUT} must be positive")

        try:
            port = int(env.get(ENV_PORT, DEFAULT_PORT))
        except ValueError:
            raise ValueError(f"{ENV_PORT} must be an integer")

        return cls(
            tools_dir=Path(tools_dir).expanduser() if tools_dir else None,
            temp_dir=Path(temp_dir).expanduser() if temp_dir else DEFAULT_TEMP_DIR,
            job_timeout_seconds=timeout,
            downloader=env.get(ENV_DOWNLOADER, "yt-dlp"),
            transcoder=env.get(ENV_TRANSCODER, "ffmpeg"),
            log_level=env.get(ENV_LOG_LEVEL, "INFO").upper(),
            host=env.get(ENV_HOST, DEFAULT_HOST),
            port=port,
        )
