"""
External tool discovery.

Looks for yt-dlp / ffmpeg in, in order:
1. The configured tools directory (VIDPULL_TOOLS_DIR)
2. The current working directory
3. PATH
4. Common install locations
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Dict, List, Optional

from ..jobs.errors import ToolNotFoundError

logger = logging.getLogger(__name__)


COMMON_TOOL_DIRS = [
    "/usr/local/bin",
    "/usr/bin",
    "/opt/homebrew/bin",
]


def _candidate_names(name: str) -> List[str]:
    if os.name == "nt" and not name.lower().endswith(".exe"):
        return [name + ".exe", name]
    return [name]


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


class ToolLocator:
    """
    Resolves tool names to executable paths.

    Hits are cached per name; misses are not, so a tool installed while
    the service runs is picked up by the next job.
    """

    def __init__(self, tools_dir: Optional[Path] = None):
        self.tools_dir = tools_dir
        self._cache: Dict[str, str] = {}

    def search_dirs(self) -> List[Path]:
        dirs = []
        if self.tools_dir:
            dirs.append(Path(self.tools_dir))
        dirs.append(Path.cwd())
        return dirs

    def find(self, name: str) -> str:
        """
        Find an executable by name.

        Raises:
            ToolNotFoundError: If the tool is nowhere to be found
        """
        if name in self._cache:
            return self._cache[name]

        # Explicit path given in settings
        if os.sep in name or (os.altsep and os.altsep in name):
            if _is_executable(Path(name)):
                self._cache[name] = name
                return name
            raise ToolNotFoundError(name, [name])

        for directory in self.search_dirs():
            for candidate in _candidate_names(name):
                path = directory / candidate
                if _is_executable(path):
                    return self._remember(name, str(path))

        which = shutil.which(name)
        if which:
            return self._remember(name, which)

        for directory in COMMON_TOOL_DIRS:
            path = Path(directory) / name
            if _is_executable(path):
                return self._remember(name, str(path))

        searched = [str(d) for d in self.search_dirs()] + ["PATH"] + COMMON_TOOL_DIRS
        raise ToolNotFoundError(name, searched)

    def _remember(self, name: str, path: str) -> str:
        logger.debug(f"[Tools] {name} resolved to {path}")
        self._cache[name] = path
        return path
