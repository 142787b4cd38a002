"""
Output profiles and their ffmpeg parameters.

Presets are pure data with no side effects.
"""

from .catalog import (
    Profile,
    TranscodePreset,
    PRESET_CATALOG,
    parse_profile,
    params_for,
    is_audio_only,
    output_extension,
)

__all__ = [
    "Profile",
    "TranscodePreset",
    "PRESET_CATALOG",
    "parse_profile",
    "params_for",
    "is_audio_only",
    "output_extension",
]
