"""
Tests for the transcode preset catalog.
"""

import pytest

from vidpull.presets import (
    PRESET_CATALOG,
    Profile,
    is_audio_only,
    output_extension,
    params_for,
    parse_profile,
)


class TestParseProfile:

    @pytest.mark.parametrize("name,expected", [
        ("original", Profile.ORIGINAL),
        ("whatsapp", Profile.WHATSAPP),
        ("480p", Profile.SD_480P),
        ("720p", Profile.HD_720P),
        ("1080p", Profile.HD_1080P),
        ("4k", Profile.UHD_4K),
        ("mp3", Profile.MP3),
        ("  MP3 ", Profile.MP3),
        ("2160p", Profile.UHD_4K),
    ])
    def test_known_names(self, name, expected):
        assert parse_profile(name) == expected

    @pytest.mark.parametrize("name", ["", None, "8k", "potato"])
    def test_unknown_names_resolve_to_default(self, name):
        assert parse_profile(name) == Profile.DEFAULT

    def test_catalog_covers_every_profile(self):
        assert set(PRESET_CATALOG) == set(Profile)


class TestPresetArgs:

    def test_original_is_stream_copy(self):
        assert params_for(Profile.ORIGINAL) == ["-c", "copy"]

    def test_mp3_drops_video(self):
        assert params_for(Profile.MP3) == ["-vn", "-c:a", "libmp3lame", "-b:a", "160k"]

    def test_720p(self):
        assert params_for(Profile.HD_720P) == [
            "-vf", "scale=-2:720",
            "-c:v", "libx264",
            "-pix_fmt", "yuv420p",
            "-preset", "fast",
            "-crf", "23",
            "-c:a", "aac",
            "-b:a", "160k",
            "-movflags", "+faststart",
        ]

    @pytest.mark.parametrize("profile,scale,crf", [
        (Profile.WHATSAPP, "scale=1280:-2", "28"),
        (Profile.SD_480P, "scale=-2:480", "27"),
        (Profile.HD_1080P, "scale=-2:1080", "20"),
        (Profile.UHD_4K, "scale=-2:2160", "18"),
    ])
    def test_scaled_profiles(self, profile, scale, crf):
        args = params_for(profile)
        assert args[args.index("-vf") + 1] == scale
        assert args[args.index("-crf") + 1] == crf

    def test_default_has_no_scale(self):
        args = params_for(Profile.DEFAULT)
        assert "-vf" not in args
        assert args[args.index("-preset") + 1] == "veryfast"

    def test_args_are_deterministic(self):
        assert params_for(Profile.HD_1080P) == params_for(Profile.HD_1080P)


class TestOutputExtension:

    @pytest.mark.parametrize("profile", [p for p in Profile if p != Profile.MP3])
    def test_video_profiles_are_mp4(self, profile):
        assert output_extension(profile) == ".mp4"
        assert not is_audio_only(profile)

    def test_mp3(self):
        assert output_extension(Profile.MP3) == ".mp3"
        assert is_audio_only(Profile.MP3)
