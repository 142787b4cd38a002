"""
Download and convert pipelines.

Each pipeline is a fixed sequence of stages driving yt-dlp / ffmpeg:

DOWNLOAD (profile "original" always lands here):
1. Resolve destination folder and tools
2. Resolve title (timestamp fallback)
3. yt-dlp straight into the destination, mp4 preferred
4. Locate the output by prefix

CONVERT:
1. Validate trim window
2. Resolve destination, tools and title
3. yt-dlp into a fresh temp directory
4. ffmpeg with the profile's preset into the destination
5. On a trimmed ffmpeg failure, retry once without the trim
6. Remove temp artifacts

Pipelines never read the job status. They learn about cancellation only
through the token handed to every tool run, and they report progress
through a stage callback. Every abnormal exit removes the artifacts the
pipeline created before the exception leaves the pipeline.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..jobs.errors import (
    JobCancelled,
    OutputNotFoundError,
    ToolExecutionError,
    ValidationError,
)
from ..jobs.models import JobRequest, JobStage, validate_trim_window
from ..naming import resolve_title
from ..presets.catalog import Profile, is_audio_only, output_extension, params_for
from ..settings import RuntimeSettings
from .artifacts import (
    cleanup_convert_temp,
    cleanup_download_artifacts,
    find_artifact,
    find_by_prefix,
    prefix_pattern,
    recreate_dir,
    remove_path,
)
from .cancellation import CancellationToken
from .runner import ProcessRunner
from .tools import ToolLocator

logger = logging.getLogger(__name__)


# Prefer a pre-merged mp4, else best video + best audio merged to mp4
DOWNLOAD_FORMAT = "bv*[ext=mp4]+ba[ext=m4a]/b[ext=mp4]/bv*+ba/b"
MERGE_FORMAT = "mp4"
TEMP_STEM = "video-temp"

StageReporter = Callable[[JobStage, str], None]


@dataclass(frozen=True)
class PipelineOutcome:
    """Where the output landed and how to describe the finished job."""

    output_path: Path
    detail: str


def output_template(prefix: Path) -> str:
    """yt-dlp output template for '<prefix>.<ext>'; literal % must be doubled."""
    return str(prefix).replace("%", "%%") + ".%(ext)s"


def build_transcode_args(
    input_file: Path,
    output_file: Path,
    profile: Profile,
    trim: Optional[Tuple[str, str]] = None,
) -> List[str]:
    """
    Build ffmpeg arguments for one conversion attempt.

    Trim range goes before -i (input seeking); timestamp normalization is
    applied to everything except audio-only output.
    """
    args = ["-hide_banner", "-loglevel", "info"]
    if trim:
        start, end = trim
        args.extend(["-ss", start, "-to", end])
    args.extend(["-i", str(input_file)])
    args.extend(params_for(profile))
    if not is_audio_only(profile):
        args.extend(["-avoid_negative_ts", "make_zero"])
    args.extend(["-y", str(output_file)])
    return args


class Pipeline:
    """
    The two job algorithms, bound to a runner and a tool locator.

    Stateless between jobs apart from the tool path cache.
    """

    def __init__(
        self,
        settings: Optional[RuntimeSettings] = None,
        runner: Optional[ProcessRunner] = None,
        locator: Optional[ToolLocator] = None,
    ):
        self.settings = settings or RuntimeSettings()
        self.runner = runner or ProcessRunner()
        self.locator = locator or ToolLocator(self.settings.tools_dir)

    def run(self, request: JobRequest, token: CancellationToken, report: StageReporter) -> PipelineOutcome:
        """Dispatch a request to the pipeline its action and profile select."""
        if request.routes_to_download:
            return self.download(request, token, report)
        return self.convert(request, token, report)

    # ------------------------------------------------------------------
    # DOWNLOAD
    # ------------------------------------------------------------------

    def download(self, request: JobRequest, token: CancellationToken, report: StageReporter) -> PipelineOutcome:
        """
        Download without re-encoding, straight into the destination folder.

        Raises:
            ValidationError: Destination cannot be created
            ToolNotFoundError: yt-dlp missing
            ToolExecutionError: yt-dlp failed (partial files removed)
            OutputNotFoundError: yt-dlp succeeded but wrote nothing we can find
            JobCancelled: Token fired (partial files removed)
        """
        target_dir = self._resolve_output_dir(request.destination_dir)
        downloader = self.locator.find(self.settings.downloader)

        report(JobStage.DOWNLOADING, "Downloading without re-encoding (merging streams only)")

        title = resolve_title(self.runner, token, downloader, request.source_url)
        prefix = target_dir / title

        args = [
            "-o", output_template(prefix),
            "-f", DOWNLOAD_FORMAT,
            "--merge-output-format", MERGE_FORMAT,
            request.source_url,
        ]
        try:
            self.runner.run(token, downloader, args, name="yt-dlp")
        except JobCancelled:
            cleanup_download_artifacts(prefix)
            raise
        except ToolExecutionError as e:
            cleanup_download_artifacts(prefix)
            raise e.with_detail(f"yt-dlp failed:\n{e.log}")

        output = find_by_prefix(prefix, f".{MERGE_FORMAT}")
        if output is None:
            raise OutputNotFoundError(prefix_pattern(prefix))

        logger.info(f"[Pipeline] Download complete: {output}")
        return PipelineOutcome(output_path=output, detail="Download complete")

    # ------------------------------------------------------------------
    # CONVERT
    # ------------------------------------------------------------------

    def convert(self, request: JobRequest, token: CancellationToken, report: StageReporter) -> PipelineOutcome:
        """
        Download to a temp directory, then transcode into the destination.

        Raises:
            ValidationError: Bad trim window or destination
            ToolNotFoundError: yt-dlp or ffmpeg missing
            ToolExecutionError: A tool failed (both logs when the fallback ran)
            OutputNotFoundError: yt-dlp succeeded but the temp file is missing
            JobCancelled: Token fired
        """
        # ====================================================================
        # STAGE 1: VALIDATION
        # ====================================================================
        trim = validate_trim_window(request.trim_start, request.trim_end)

        downloader = self.locator.find(self.settings.downloader)
        transcoder = self.locator.find(self.settings.transcoder)
        target_dir = self._resolve_output_dir(request.destination_dir)

        title = resolve_title(self.runner, token, downloader, request.source_url)
        output_file = target_dir / f"{title}{output_extension(request.profile)}"

        temp_dir = Path(self.settings.temp_dir)
        temp_pattern = prefix_pattern(temp_dir / TEMP_STEM)

        # ====================================================================
        # STAGE 2: TEMP DOWNLOAD
        # ====================================================================
        report(JobStage.DOWNLOADING, "Downloading original video...")

        succeeded = False
        input_file: Optional[Path] = None
        try:
            recreate_dir(temp_dir)
            try:
                self.runner.run(
                    token,
                    downloader,
                    ["-o", output_template(temp_dir / TEMP_STEM), request.source_url],
                    name="yt-dlp",
                )
            except ToolExecutionError as e:
                raise e.with_detail(f"yt-dlp failed:\n{e.log}")

            input_file = find_artifact(temp_pattern)
            if input_file is None:
                token.raise_if_cancelled()
                raise OutputNotFoundError(temp_pattern)

            # ================================================================
            # STAGE 3: TRANSCODE
            # ================================================================
            report(JobStage.CONVERTING, "Processing with ffmpeg...")
            detail = self._transcode(token, transcoder, input_file, output_file, request.profile, trim, report)
            succeeded = True
        finally:
            if succeeded:
                remove_path(input_file)
                remove_path(temp_dir)
            else:
                cleanup_convert_temp(temp_dir, temp_pattern, output_file)

        logger.info(f"[Pipeline] Conversion complete: {output_file}")
        return PipelineOutcome(output_path=output_file, detail=detail)

    def _transcode(
        self,
        token: CancellationToken,
        transcoder: str,
        input_file: Path,
        output_file: Path,
        profile: Profile,
        trim: Optional[Tuple[str, str]],
        report: StageReporter,
    ) -> str:
        """
        Run ffmpeg, retrying once without the trim range if a trimmed run fails.

        Returns:
            Completion detail for the job status
        """
        try:
            self.runner.run(
                token, transcoder, build_transcode_args(input_file, output_file, profile, trim), name="ffmpeg"
            )
            return "Conversion completed successfully."
        except ToolExecutionError as e:
            if trim is None:
                raise e.with_detail(f"ffmpeg failed:\n{e.log}")
            trimmed_log = e.log

        logger.warning("[Pipeline] Trimmed conversion failed, retrying without trim")
        report(JobStage.CONVERTING, "Trimmed conversion failed, retrying without trim...")

        try:
            self.runner.run(
                token, transcoder, build_transcode_args(input_file, output_file, profile, None), name="ffmpeg"
            )
        except ToolExecutionError as e:
            raise e.with_detail(
                "ffmpeg failed.\n"
                f"---LOG 1 (with trim)---\n{trimmed_log}\n"
                f"---LOG 2 (without trim)---\n{e.log}"
            )
        return "Conversion complete (fallback without trim)."

    @staticmethod
    def _resolve_output_dir(destination: str) -> Path:
        if not destination or not destination.strip():
            raise ValidationError("Choose a destination folder.")
        target = Path(destination).expanduser()
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ValidationError(f"Cannot create destination folder {target}: {e}")
        return target
