"""
Transcode preset catalog.

Maps a named output profile to a deterministic ffmpeg argument vector.

Profiles are a closed enumeration with an explicit DEFAULT variant.
parse_profile() is total: every input string resolves to exactly one
Profile, unknown names included, so the catalog can never miss a key.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class Profile(str, Enum):
    """
    Output profiles selectable by the operator.

    ORIGINAL is pass-through (download only, never transcoded).
    MP3 drops the video stream.
    DEFAULT is what any unrecognized profile name resolves to.
    """

    ORIGINAL = "original"
    WHATSAPP = "whatsapp"
    SD_480P = "480p"
    HD_720P = "720p"
    HD_1080P = "1080p"
    UHD_4K = "4k"
    MP3 = "mp3"
    DEFAULT = "default"


# Alternate spellings accepted from clients
PROFILE_ALIASES: Dict[str, Profile] = {
    "2160p": Profile.UHD_4K,
    "uhd": Profile.UHD_4K,
}


def parse_profile(name: Optional[str]) -> Profile:
    """
    Resolve a client-supplied profile name.

    Matching is case and whitespace insensitive.
    Unknown or empty names resolve to Profile.DEFAULT.
    """
    key = (name or "").strip().lower()
    if key in PROFILE_ALIASES:
        return PROFILE_ALIASES[key]
    try:
        return Profile(key)
    except ValueError:
        return Profile.DEFAULT


@dataclass(frozen=True)
class TranscodePreset:
    """
    Fully resolved encoder parameters for one profile.

    Flat and immutable; to_args() is the only thing the pipeline uses.
    """

    stream_copy: bool = False
    drop_video: bool = False

    # Video
    scale: Optional[str] = None  # ffmpeg scale filter expression, e.g. "-2:720"
    video_codec: Optional[str] = "libx264"
    pixel_format: Optional[str] = "yuv420p"
    encoder_preset: Optional[str] = None
    crf: Optional[int] = None

    # Audio
    audio_codec: str = "aac"
    audio_bitrate: Optional[str] = None

    # Container
    faststart: bool = True

    def to_args(self) -> List[str]:
        """Render the preset as ffmpeg output arguments."""
        if self.stream_copy:
            return ["-c", "copy"]

        args: List[str] = []
        if self.drop_video:
            args.append("-vn")
        else:
            if self.scale:
                args.extend(["-vf", f"scale={self.scale}"])
            if self.video_codec:
                args.extend(["-c:v", self.video_codec])
            if self.pixel_format:
                args.extend(["-pix_fmt", self.pixel_format])
            if self.encoder_preset:
                args.extend(["-preset", self.encoder_preset])
            if self.crf is not None:
                args.extend(["-crf", str(self.crf)])

        args.extend(["-c:a", self.audio_codec])
        if self.audio_bitrate:
            args.extend(["-b:a", self.audio_bitrate])

        if self.faststart and not self.drop_video:
            args.extend(["-movflags", "+faststart"])
        return args


PRESET_CATALOG: Dict[Profile, TranscodePreset] = {
    Profile.ORIGINAL: TranscodePreset(stream_copy=True),
    Profile.WHATSAPP: TranscodePreset(
        scale="1280:-2", encoder_preset="veryfast", crf=28, audio_bitrate="128k",
    ),
    Profile.SD_480P: TranscodePreset(
        scale="-2:480", encoder_preset="veryfast", crf=27, audio_bitrate="128k",
    ),
    Profile.HD_720P: TranscodePreset(
        scale="-2:720", encoder_preset="fast", crf=23, audio_bitrate="160k",
    ),
    Profile.HD_1080P: TranscodePreset(
        scale="-2:1080", encoder_preset="fast", crf=20, audio_bitrate="192k",
    ),
    Profile.UHD_4K: TranscodePreset(
        scale="-2:2160", encoder_preset="slow", crf=18, audio_bitrate="192k",
    ),
    Profile.MP3: TranscodePreset(
        drop_video=True, video_codec=None, pixel_format=None,
        audio_codec="libmp3lame", audio_bitrate="160k", faststart=False,
    ),
    Profile.DEFAULT: TranscodePreset(
        encoder_preset="veryfast", crf=23, audio_bitrate="160k",
    ),
}


def params_for(profile: Profile) -> List[str]:
    """Return the ffmpeg output arguments for a profile."""
    return PRESET_CATALOG[profile].to_args()


def is_audio_only(profile: Profile) -> bool:
    return PRESET_CATALOG[profile].drop_video


def output_extension(profile: Profile) -> str:
    """Extension (with dot) of the file a profile produces."""
    return ".mp3" if is_audio_only(profile) else ".mp4"
