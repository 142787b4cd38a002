"""
Artifact discovery and cleanup.

Tools pick their own output extension, so artifacts are located by
prefix. Prefixes come from video titles and may contain glob
metacharacters ("[", "]", "*"), so they are always glob-escaped.

Cleanup is best-effort: a failed removal is logged and never masks the
error that triggered the cleanup.
"""

import glob
import logging
import shutil
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def prefix_pattern(prefix: PathLike) -> str:
    """Glob pattern matching '<prefix>.<anything>' literally."""
    return glob.escape(str(prefix)) + ".*"


def find_artifacts(pattern: str) -> List[Path]:
    """All paths matching an already-escaped glob pattern, sorted."""
    return sorted(Path(p) for p in glob.glob(pattern))


def find_artifact(pattern: str) -> Optional[Path]:
    """
    First file matching a glob pattern.

    Returns:
        The match, or None when nothing matched
    """
    matches = [p for p in find_artifacts(pattern) if p.is_file()]
    return matches[0] if matches else None


def find_by_prefix(prefix: PathLike, preferred_ext: Optional[str] = None) -> Optional[Path]:
    """
    Locate the file a tool wrote for '<prefix>.%(ext)s'.

    Args:
        prefix: Path without extension
        preferred_ext: Extension (with dot) checked before globbing

    Returns:
        The artifact path, or None when nothing was written
    """
    if preferred_ext:
        preferred = Path(f"{prefix}{preferred_ext}")
        if preferred.is_file():
            return preferred
    return find_artifact(prefix_pattern(prefix))


def remove_path(path: Optional[PathLike]) -> None:
    """Remove a file or directory tree if it exists."""
    if not path:
        return
    target = Path(path)
    try:
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
    except OSError as e:
        logger.warning(f"[Cleanup] Could not remove {target}: {e}")


def remove_glob(pattern: str) -> None:
    for match in find_artifacts(pattern):
        remove_path(match)


def cleanup_download_artifacts(prefix: Optional[PathLike]) -> None:
    """
    Remove everything a download left for '<prefix>.*'.

    Covers merged outputs, .part files and per-format fragments.
    """
    if not prefix:
        return
    logger.info(f"[Cleanup] Removing download artifacts for {prefix}.*")
    remove_glob(prefix_pattern(prefix))


def cleanup_convert_temp(
    temp_dir: Optional[PathLike],
    temp_pattern: Optional[str],
    output_file: Optional[PathLike],
) -> None:
    """
    Remove the temp download, the temp directory and any partial output.
    """
    logger.info(f"[Cleanup] Removing temp dir {temp_dir} and partial output {output_file}")
    if temp_pattern:
        remove_glob(temp_pattern)
    remove_path(temp_dir)
    remove_path(output_file)


def recreate_dir(path: PathLike) -> Path:
    """
    Discard a directory's contents and recreate it empty.

    Raises:
        OSError: If the directory cannot be created
    """
    target = Path(path)
    remove_path(target)
    target.mkdir(parents=True, exist_ok=True)
    return target
