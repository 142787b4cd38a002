"""
vidpull CLI - thin entrypoint for operator commands.

Commands:
- serve: run the HTTP control service
- run: run one job in the foreground, Ctrl+C cancels it

Exit Codes:
===========
- 0: Success
- 1: Validation error (bad arguments, bad settings)
- 2: Job failed
- 3: Job cancelled
- 4: Required tool not found
"""

import argparse
import logging
import sys
import threading
from typing import List, NoReturn, Optional, Tuple

from . import __version__
from .jobs.controller import JobController
from .jobs.errors import (
    JobCancelled,
    NoActiveJobError,
    ToolNotFoundError,
    ValidationError,
)
from .jobs.models import JobAction, JobRequest, JobStatus
from .settings import RuntimeSettings

logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_VALIDATION = 1
EXIT_FAILED = 2
EXIT_CANCELLED = 3
EXIT_TOOL_MISSING = 4

STATUS_POLL_SECONDS = 0.5


def exit_code_for(error: Optional[BaseException]) -> int:
    """Map a job outcome to a process exit code."""
    if error is None:
        return EXIT_OK
    if isinstance(error, ValidationError):
        return EXIT_VALIDATION
    if isinstance(error, JobCancelled):
        return EXIT_CANCELLED
    if isinstance(error, ToolNotFoundError):
        return EXIT_TOOL_MISSING
    return EXIT_FAILED


def parse_addr(addr: str) -> Tuple[str, int]:
    """
    Split HOST:PORT.

    Raises:
        ValueError: Missing or non-numeric port
    """
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Address must be HOST:PORT, got {addr!r}")
    return host or "127.0.0.1", int(port)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_settings() -> RuntimeSettings:
    try:
        return RuntimeSettings.from_env()
    except ValueError as e:
        print(f"ERROR: Invalid settings: {e}", file=sys.stderr)
        sys.exit(EXIT_VALIDATION)


def cmd_serve(args: argparse.Namespace) -> NoReturn:
    """
    Run the HTTP control service until interrupted.

    Exit codes:
        0: Server stopped
        1: Invalid address or settings
    """
    import uvicorn

    from .main import create_app

    settings = _load_settings()
    configure_logging(settings.log_level)

    try:
        host, port = parse_addr(args.addr) if args.addr else (settings.host, settings.port)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(EXIT_VALIDATION)

    app = create_app(JobController(settings))

    print(f"vidpull {__version__} listening on http://{host}:{port}")
    if host == "0.0.0.0":
        print("WARNING: LAN exposure is enabled. No authentication is configured.")

    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())
    sys.exit(EXIT_OK)


def _print_status(status: JobStatus, last: Optional[JobStatus]) -> JobStatus:
    if last is None or status.stage != last.stage or status.detail != last.detail:
        print(f"[{status.stage.value}] {status.detail}", file=sys.stderr)
    return status


def cmd_run(args: argparse.Namespace) -> NoReturn:
    """
    Run one job in the foreground.

    The job runs on a worker thread; the main thread prints stage changes
    and turns Ctrl+C into a cancel.
    """
    settings = _load_settings()
    configure_logging(settings.log_level)

    request = JobRequest(
        action=JobAction.DOWNLOAD if args.download_only else JobAction.CONVERT,
        source_url=args.url,
        destination_dir=args.out,
        profile=args.profile,
        trim_start=args.start,
        trim_end=args.end,
    )
    controller = JobController(settings)

    outcome = {}

    def worker():
        try:
            outcome["path"] = controller.start(request)
        except Exception as e:
            outcome["error"] = e

    thread = threading.Thread(target=worker, name="vidpull-job", daemon=True)
    thread.start()

    last = None
    try:
        while thread.is_alive():
            thread.join(timeout=STATUS_POLL_SECONDS)
            last = _print_status(controller.status(), last)
    except KeyboardInterrupt:
        print("\nCancelling...", file=sys.stderr)
        try:
            controller.cancel()
        except NoActiveJobError:
            logger.debug("Job ended before it could be cancelled")
        thread.join()

    _print_status(controller.status(), last)

    error = outcome.get("error")
    if error is None:
        print(outcome["path"])
    else:
        print(f"ERROR: {getattr(error, 'detail', error)}", file=sys.stderr)
    sys.exit(exit_code_for(error))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vidpull",
        description="vidpull - download and convert online videos with yt-dlp and ffmpeg",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to execute")

    # Serve command
    parser_serve = subparsers.add_parser("serve", help="Run the HTTP control service")
    parser_serve.add_argument(
        "--addr",
        default=None,
        help="HOST:PORT to bind (default: VIDPULL_HOST:VIDPULL_PORT, i.e. 127.0.0.1:8080)",
    )
    parser_serve.set_defaults(func=cmd_serve)

    # Run command
    parser_run = subparsers.add_parser("run", help="Run one job in the foreground")
    parser_run.add_argument("url", help="Video URL")
    parser_run.add_argument("--out", required=True, help="Destination folder")
    parser_run.add_argument(
        "--profile",
        default="default",
        help="original, whatsapp, 480p, 720p, 1080p, 4k or mp3 (default: default)",
    )
    parser_run.add_argument("--start", default=None, help="Trim start, HH:MM:SS")
    parser_run.add_argument("--end", default=None, help="Trim end, HH:MM:SS")
    parser_run.add_argument(
        "--download-only",
        action="store_true",
        help="Download without re-encoding; --profile is not applied, --start/--end are validated but not applied",
    )
    parser_run.set_defaults(func=cmd_run)

    return parser


def main(argv: Optional[List[str]] = None) -> NoReturn:
    """Parse arguments and dispatch to subcommands."""
    args = build_parser().parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
