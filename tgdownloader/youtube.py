"""Querying and downloading YouTube videos with yt-dlp."""

from __future__ import annotations

import asyncio
import os

from .errors import ExternalCommandError, FileSystemError, YoutubeError

VIDEO_FORMAT = "bestvideo[height<=1440][ext=mp4]+bestaudio[ext=m4a]/mp4"
MAX_VIDEO_DURATION_SECONDS = 3600
DOWNLOAD_DIR = "videos"

_YT_DLP = "yt-dlp"
_NETWORK_ARGS = ["--no-playlist", "--socket-timeout", "5", "--retries", "3"]


def output_template(unique_id: str) -> str:
    """The yt-dlp output template for a download tagged with *unique_id*."""
    return f"{DOWNLOAD_DIR}/%(id)s_{unique_id}.%(ext)s"


def build_base_command(url: str, unique_id: str) -> list[str]:
    """The yt-dlp command line shared by filename lookup and download."""
    return [
        _YT_DLP,
        *_NETWORK_ARGS,
        "-f",
        VIDEO_FORMAT,
        "-o",
        output_template(unique_id),
        url,
    ]


async def _run(args: list[str]) -> tuple[int, bytes, bytes]:
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
    except OSError as exc:
        raise ExternalCommandError(args[0], str(exc)) from exc
    return proc.returncode, stdout, stderr


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


async def get_filename(url: str, unique_id: str) -> str:
    """Ask yt-dlp which file the download of *url* will produce."""
    code, stdout, stderr = await _run([*build_base_command(url, unique_id), "--print", "filename"])
    if code != 0:
        raise YoutubeError(_decode(stderr))
    return _decode(stdout).strip()


async def download_video(url: str, unique_id: str) -> None:
    """Download *url* into the videos directory."""
    try:
        os.makedirs(DOWNLOAD_DIR, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(exc) from exc
    code, _, stderr = await _run(build_base_command(url, unique_id))
    if code != 0:
        raise YoutubeError(_decode(stderr))


async def get_video_duration(url: str) -> int:
    """Return the duration of *url* in whole seconds."""
    code, stdout, stderr = await _run([_YT_DLP, *_NETWORK_ARGS, "--print", "duration", url])
    if code != 0:
        raise YoutubeError(_decode(stderr))
    text = _decode(stdout).strip()
    if text in ("", "NA"):
        raise YoutubeError("Video duration is not available")
    try:
        duration = float(text)
    except ValueError as exc:
        raise YoutubeError(f"Invalid duration format: {text}") from exc
    return max(0, int(duration))


def is_video_too_long(duration_seconds: int) -> bool:
    """Whether a video exceeds the allowed duration."""
    return duration_seconds > MAX_VIDEO_DURATION_SECONDS


def format_duration(seconds: int) -> str:
    """Render seconds as H:MM:SS, or M:SS under an hour."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02}:{secs:02}"
    return f"{minutes}:{secs:02}"