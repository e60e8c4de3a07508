"""Converting media with ffmpeg, with optional progress reporting."""

from __future__ import annotations

import asyncio
import os
import tempfile
import time
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

from .errors import BotError, FfmpegFailedError, FileSystemError, FileTooLargeError, NonUtf8PathError
from .info import get_duration

MAX_FILE_SIZE = 200 * 1024 * 1024
CONVERTED_DIR = "converted"

_FFMPEG = "ffmpeg"
_INITIAL_DELAY = 0.5
_POLL_INTERVAL = 2.0
_MAX_IDLE_POLLS = 30
_STOP_TIMEOUT = 2.0

_VIDEO_NOTE_ARGS = [
    "-t",
    "60",
    "-vf",
    "scale=(iw*sar)*max(512/(iw*sar)\\,512/ih):ih*max(512/(iw*sar)\\,512/ih), crop=512:512",
]
_VIDEO_ARGS = ["-fs", "240M"]
_COMPRESS_ARGS = [
    "-crf",
    "32",
    "-preset",
    "fast",
    "-vf",
    "scale=iw*min(1280/iw\\,720/ih):ih*min(1280/iw\\,720/ih)",
]


@dataclass(frozen=True)
class ProgressInfo:
    """A snapshot of conversion progress; times are in seconds."""

    percentage: float
    estimated_time_remaining: float | None
    current_time: float
    total_duration: float | None


def move_to_new_folder(path: str | Path, new_folder: str) -> Path:
    """Place the file name of *path* inside *new_folder*."""
    name = Path(path).name
    if name in ("", ".."):
        return Path(new_folder)
    return Path(new_folder) / name


def parse_progress(content: str) -> tuple[float | None, bool]:
    """Read an ffmpeg progress report.

    Returns the last reported output time in seconds (or None) and whether
    ffmpeg has reported the end of processing.
    """
    out_time: float | None = None
    finished = False
    for line in content.splitlines():
        if line.startswith("out_time_us="):
            value = line.replace("out_time_us=", "")
            if value.isascii() and value.isdigit():
                out_time = int(value) / 1_000_000
        elif line.startswith("progress=") and "end" in line:
            finished = True
    return out_time, finished


def estimate_progress(
    processed: float, elapsed: float, total_duration: float | None
) -> tuple[float, float | None, float | None]:
    """Estimate completion from processed media time and wall-clock time.

    Returns the percentage, the estimated seconds remaining (or None) and the
    total duration, which is guessed when unknown and processing is fast.
    """
    total = total_duration
    if total is None and int(elapsed) > 10:
        if processed / elapsed > 0.5:
            # Conservative guess: assume about 40% of the work is done.
            total = processed / 0.4

    if total is None:
        return min(int(elapsed) * 2.0, 95.0), None, None

    percentage = 100.0 if total <= 0 else min(processed / total * 100.0, 100.0)
    remaining = max(0.0, total - processed)
    eta: float | None
    if int(processed) > 0 and percentage < 99.0:
        if elapsed <= 0:
            eta = 0.0
        else:
            speed = processed / elapsed
            eta = remaining / speed if speed > 0 else None
    else:
        eta = 0.0
    return percentage, eta, total


def _read_text(path: str) -> str | None:
    try:
        with open(path, encoding="utf-8") as handle:
            return handle.read()
    except (OSError, UnicodeDecodeError):
        return None


async def monitor_progress(
    progress_file: str, queue: asyncio.Queue, video_duration: float | None
) -> None:
    """Poll an ffmpeg progress file and put ProgressInfo items on *queue*."""
    start = time.monotonic()
    last_time = 0.0
    total = video_duration
    idle_polls = 0

    await asyncio.sleep(_INITIAL_DELAY)

    while idle_polls <= _MAX_IDLE_POLLS:
        if not os.path.exists(progress_file):
            break
        content = _read_text(progress_file)
        if content is None:
            idle_polls += 1
        else:
            out_time, finished = parse_progress(content)
            if finished:
                queue.put_nowait(ProgressInfo(100.0, 0.0, out_time or 0.0, total))
                break
            if out_time is not None and out_time > last_time:
                idle_polls = 0
                elapsed = time.monotonic() - start
                percentage, eta, total = estimate_progress(out_time, elapsed, total)
                queue.put_nowait(ProgressInfo(percentage, eta, out_time, total))
                last_time = out_time
            else:
                idle_polls += 1
        await asyncio.sleep(_POLL_INTERVAL)

    queue.put_nowait(ProgressInfo(100.0, 0.0, last_time, total))


def _progress_file() -> str:
    return os.path.join(tempfile.gettempdir(), f"ffmpeg_progress_{os.getpid()}.txt")


async def convert_with_progress(
    file: str | Path,
    ext: str,
    args: list[str],
    progress_queue: asyncio.Queue | None = None,
) -> str:
    """Convert *file* with ffmpeg into the converted directory as *ext*.

    Returns the path of the produced file.
    """
    input_path = Path(file)
    try:
        os.makedirs(CONVERTED_DIR, exist_ok=True)
    except OSError as exc:
        raise FileSystemError(exc) from exc

    renamed = input_path.with_suffix(f".{ext}") if input_path.name else input_path
    output_path = move_to_new_folder(renamed, CONVERTED_DIR)
    progress_file = _progress_file()

    command = [
        _FFMPEG,
        "-y",
        "-i",
        str(input_path),
        *args,
        "-progress",
        progress_file,
        str(output_path),
    ]
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise FileSystemError(exc) from exc

    monitor: asyncio.Task | None = None
    try:
        if progress_queue is not None:
            duration: float | None = None
            if ext == "mp4":
                with suppress(BotError):
                    duration = await get_duration(str(input_path))
            monitor = asyncio.create_task(
                monitor_progress(progress_file, progress_queue, duration)
            )
        _, stderr = await proc.communicate()
    finally:
        with suppress(OSError):
            os.remove(progress_file)
        if monitor is not None:
            monitor.cancel()
            await asyncio.wait({monitor}, timeout=_STOP_TIMEOUT)

    if proc.returncode != 0:
        raise FfmpegFailedError(proc.returncode, stderr.decode("utf-8", errors="replace"))

    result = str(output_path)
    try:
        result.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise NonUtf8PathError() from exc
    return result


def _file_size(path: str) -> int:
    try:
        return os.path.getsize(path)
    except OSError as exc:
        raise FileSystemError(exc) from exc


def _remove(path: str) -> None:
    try:
        os.remove(path)
    except OSError as exc:
        raise FileSystemError(exc) from exc


async def convert_video_note(file: str | Path) -> str:
    """Produce a square video note, cut to one minute."""
    return await convert_with_progress(file, "mp4", _VIDEO_NOTE_ARGS)


async def convert_video(file: str | Path, progress_queue: asyncio.Queue | None = None) -> str:
    """Convert to mp4; raise FileTooLargeError if the result exceeds the limit."""
    converted = await convert_with_progress(file, "mp4", _VIDEO_ARGS, progress_queue)
    size = _file_size(converted)
    if size <= MAX_FILE_SIZE:
        return converted
    _remove(converted)
    raise FileTooLargeError(f"File size {size} bytes exceeds {MAX_FILE_SIZE} bytes limit")


async def compress_video(file: str | Path, progress_queue: asyncio.Queue | None = None) -> str:
    """Re-encode at lower quality; raise FileTooLargeError if still too big."""
    compressed = await convert_with_progress(file, "mp4", _COMPRESS_ARGS, progress_queue)
    size = _file_size(compressed)
    if size > MAX_FILE_SIZE:
        _remove(compressed)
        raise FileTooLargeError(
            f"Even compressed file size {size} bytes exceeds {MAX_FILE_SIZE} bytes limit"
        )
    return compressed


async def convert_audio(file: str | Path) -> str:
    """Extract the audio track as mp3."""
    return await convert_with_progress(file, "mp3", [])