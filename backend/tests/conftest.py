"""
Shared fixtures for vidpull tests.
"""

import sys
from pathlib import Path

import pytest

# Add backend directory to path if not already there
_backend_dir = Path(__file__).parent.parent.resolve()
if str(_backend_dir) not in sys.path:
    sys.path.insert(0, str(_backend_dir))

from vidpull.execution.pipeline import Pipeline
from vidpull.settings import RuntimeSettings

from fakes import FakeLocator, FakeRunner, StageRecorder


@pytest.fixture
def settings(tmp_path):
    return RuntimeSettings(temp_dir=tmp_path / "temp", job_timeout_seconds=30)


@pytest.fixture
def out_dir(tmp_path):
    target = tmp_path / "out"
    target.mkdir()
    return target


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def make_pipeline(settings):
    def _make(runner):
        return Pipeline(settings, runner=runner, locator=FakeLocator())
    return _make


@pytest.fixture
def recorder():
    return StageRecorder()
