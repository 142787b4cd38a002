"""
vidpull: single-flight download and transcode orchestration.

Fetches a remote video with yt-dlp, optionally transcodes it with ffmpeg,
and delivers one output file to an operator-chosen directory.
"""

__version__ = "0.1.0"
