"""Reading video properties with ffprobe."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

from .errors import ExternalCommandError, ParseError

_FFPROBE = "ffprobe"


@dataclass(frozen=True)
class VideoInfo:
    """Dimensions and duration of a video file."""

    width: int
    height: int
    duration: float


def _parse_float(text: str) -> float:
    try:
        return float(text)
    except ValueError as exc:
        raise ParseError(f"Failed to parse duration '{text}': {exc}") from exc


def _unsigned(stream: dict, key: str, label: str) -> int:
    value = stream.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ParseError(f"{label} not found in video stream")
    return value


def parse_probe_json(data: Any) -> VideoInfo:
    """Build a VideoInfo from parsed ffprobe JSON output."""
    if not isinstance(data, dict):
        data = {}
    streams = data.get("streams")
    if not isinstance(streams, list):
        raise ParseError("No streams found in ffprobe output")
    video = next(
        (s for s in streams if isinstance(s, dict) and s.get("codec_type") == "video"),
        None,
    )
    if video is None:
        raise ParseError("No video stream found")
    width = _unsigned(video, "width", "Width")
    height = _unsigned(video, "height", "Height")
    fmt = data.get("format")
    duration_text = fmt.get("duration") if isinstance(fmt, dict) else None
    if not isinstance(duration_text, str):
        raise ParseError("Duration not found in format section")
    return VideoInfo(width=width, height=height, duration=_parse_float(duration_text))


async def _probe(args: list[str]) -> str:
    try:
        proc = await asyncio.create_subprocess_exec(
            _FFPROBE,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
    except OSError as exc:
        raise ExternalCommandError(_FFPROBE, str(exc)) from exc
    if proc.returncode != 0:
        raise ExternalCommandError(_FFPROBE, stderr.decode("utf-8", errors="replace"))
    try:
        return stdout.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Failed to parse ffprobe output as UTF-8: {exc}") from exc


async def probe_video(path: str) -> VideoInfo:
    """Read width, height and duration of the video at *path*."""
    text = await _probe(
        ["-v", "quiet", "-print_format", "json", "-show_format", "-show_streams", path]
    )
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"JSON parsing error: {exc}") from exc
    return parse_probe_json(data)


async def get_duration(path: str) -> float:
    """Read only the duration, in seconds, of the media at *path*."""
    text = await _probe(
        ["-v", "quiet", "-show_entries", "format=duration", "-of", "csv=p=0", path]
    )
    return _parse_float(text.strip())