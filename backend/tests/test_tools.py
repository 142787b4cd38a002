"""
Tests for ToolLocator.
"""

import os

import pytest

from vidpull.execution import ToolLocator
from vidpull.jobs.errors import ToolNotFoundError

pytestmark = pytest.mark.skipif(os.name == "nt", reason="uses POSIX executable bits")


def _make_tool(directory, name):
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return path


class TestToolLocator:

    def test_tools_dir_searched_first(self, tmp_path):
        tool = _make_tool(tmp_path / "bin", "vidpull-fake-tool")
        locator = ToolLocator(tmp_path / "bin")
        assert locator.find("vidpull-fake-tool") == str(tool)

    def test_explicit_path(self, tmp_path):
        tool = _make_tool(tmp_path / "opt", "ffmpeg")
        assert ToolLocator().find(str(tool)) == str(tool)

    def test_explicit_path_missing(self, tmp_path):
        with pytest.raises(ToolNotFoundError) as exc_info:
            ToolLocator().find(str(tmp_path / "missing" / "ffmpeg"))
        assert exc_info.value.tool.endswith("ffmpeg")

    def test_non_executable_file_ignored(self, tmp_path):
        directory = tmp_path / "bin"
        directory.mkdir()
        (directory / "vidpull-fake-tool").write_text("not runnable")
        with pytest.raises(ToolNotFoundError) as exc_info:
            ToolLocator(directory).find("vidpull-fake-tool")
        assert str(directory) in exc_info.value.searched

    def test_hits_are_cached(self, tmp_path):
        tool = _make_tool(tmp_path / "bin", "vidpull-fake-tool")
        locator = ToolLocator(tmp_path / "bin")
        locator.find("vidpull-fake-tool")
        tool.unlink()
        assert locator.find("vidpull-fake-tool") == str(tool)

    def test_found_on_path(self, tmp_path, monkeypatch):
        tool = _make_tool(tmp_path / "pathdir", "vidpull-fake-tool")
        monkeypatch.setenv("PATH", str(tmp_path / "pathdir"))
        assert ToolLocator(tmp_path / "empty").find("vidpull-fake-tool") == str(tool)
