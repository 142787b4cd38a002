"""
Tests for request models and up-front validation.
"""

import pytest

from vidpull.jobs import (
    JobAction,
    JobRequest,
    JobStage,
    JobStatus,
    ValidationError,
    validate_request,
    validate_trim_window,
)
from vidpull.presets import Profile


def _request(**overrides):
    fields = dict(
        action=JobAction.CONVERT,
        source_url="https://example.com/watch?v=1",
        destination_dir="/tmp",
        profile="720p",
    )
    fields.update(overrides)
    return JobRequest(**fields)


class TestTrimWindow:

    def test_both_empty_is_no_window(self):
        assert validate_trim_window(None, None) is None
        assert validate_trim_window("", "") is None

    def test_valid_window(self):
        assert validate_trim_window("00:00:10", "00:01:00") == ("00:00:10", "00:01:00")

    @pytest.mark.parametrize("start,end", [("00:00:10", None), (None, "00:00:10"), ("00:00:10", "")])
    def test_one_bound_missing(self, start, end):
        with pytest.raises(ValidationError, match="both start and end"):
            validate_trim_window(start, end)

    @pytest.mark.parametrize("value", ["0:00:10", "00:60:00", "00:00:60", "aa:bb:cc", "00:00"])
    def test_malformed_timecode(self, value):
        with pytest.raises(ValidationError, match="HH:MM:SS"):
            validate_trim_window(value, "01:00:00")

    @pytest.mark.parametrize("start,end", [("00:00:10\n", "00:01:00"), ("00:00:10", "00:01:00\n")])
    def test_trailing_newline_rejected(self, start, end):
        with pytest.raises(ValidationError, match="HH:MM:SS"):
            validate_trim_window(start, end)

    @pytest.mark.parametrize("start,end", [("00:01:00", "00:01:00"), ("01:00:00", "00:59:59")])
    def test_start_must_precede_end(self, start, end):
        with pytest.raises(ValidationError, match="before end"):
            validate_trim_window(start, end)


class TestJobRequest:

    def test_profile_resolved(self):
        assert _request(profile="MP3").profile == Profile.MP3
        assert _request(profile="bogus").profile == Profile.DEFAULT

    def test_blank_trim_becomes_none(self):
        req = _request(trim_start="  ", trim_end="")
        assert req.trim_start is None
        assert req.trim_end is None

    def test_convert_original_routes_to_download(self):
        assert _request(profile="original").routes_to_download
        assert not _request(profile="720p").routes_to_download
        assert _request(action=JobAction.DOWNLOAD, profile="720p").routes_to_download

    def test_extra_fields_rejected(self):
        with pytest.raises(Exception):
            JobRequest(
                action="download",
                source_url="https://example.com",
                destination_dir="/tmp",
                surprise=True,
            )


class TestValidateRequest:

    def test_valid_request(self, tmp_path):
        validate_request(_request(destination_dir=str(tmp_path)))

    def test_missing_destination_folder_is_allowed(self, tmp_path):
        validate_request(_request(destination_dir=str(tmp_path / "new" / "folder")))

    def test_empty_url(self, tmp_path):
        with pytest.raises(ValidationError, match="URL is required"):
            validate_request(_request(source_url="  ", destination_dir=str(tmp_path)))

    def test_empty_destination(self):
        with pytest.raises(ValidationError, match="destination folder"):
            validate_request(_request(destination_dir=" "))

    def test_destination_is_a_file(self, tmp_path):
        target = tmp_path / "file.txt"
        target.write_text("x")
        with pytest.raises(ValidationError, match="not a folder"):
            validate_request(_request(destination_dir=str(target)))

    def test_trim_checked_for_downloads_too(self, tmp_path):
        with pytest.raises(ValidationError):
            validate_request(_request(
                action=JobAction.DOWNLOAD, destination_dir=str(tmp_path), trim_start="00:00:05",
            ))


class TestJobStatus:

    def test_initial_status(self):
        status = JobStatus()
        assert status.running is False
        assert status.stage == JobStage.IDLE
        assert status.detail == ""

    def test_serializes_lowercase_stage(self):
        data = JobStatus(running=True, stage=JobStage.CONVERTING, detail="x").model_dump(mode="json")
        assert data == {"running": True, "stage": "converting", "detail": "x"}
