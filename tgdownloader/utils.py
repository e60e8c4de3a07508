"""Small helpers: link detection, file naming, media formats, progress text."""

from __future__ import annotations

import enum
from pathlib import Path

from .errors import ParseError

_YOUTUBE_PREFIXES = (
    "https://www.youtube.com/watch?",
    "http://www.youtube.com/watch?",
    "https://youtube.com/watch?",
    "http://youtube.com/watch?",
    "https://youtu.be/",
    "http://youtu.be/",
)


def is_youtube_video_link(url: str) -> bool:
    """Tell whether *url* looks like a link to a single YouTube video."""
    url = url.strip().lower()
    if not url.startswith(_YOUTUBE_PREFIXES):
        return False
    if "youtube.com/watch?" in url:
        return "v=" in url and url.index("v=") < 100
    if "youtu.be/" in url:
        parts = url.split("youtu.be/")
        return len(parts) == 2 and parts[1] != ""
    return False


def get_unique_file_id(chat_id: int, message_id: int) -> str:
    """Build an identifier unique to one message in one chat."""
    return f"chat{chat_id}_msg{message_id}"


def replace_path_keep_extension(original_path: str | Path, new_dir: str, new_filename: str) -> Path:
    """Put *new_filename* in *new_dir*, keeping the extension of *original_path*."""
    suffix = Path(original_path).suffix
    return Path(new_dir) / f"{new_filename}{suffix}"


class MediaFormatType(enum.Enum):
    """Formats a user can ask for; the value is the button label."""

    VIDEO = "🎥 Видео"
    AUDIO = "🔈 Аудио"
    VIDEO_NOTE = "📷 Кружочек"
    VOICE = "🎙️ Войс"

    def __str__(self) -> str:
        return self.value


def parse_media_format(label: str) -> MediaFormatType:
    """Return the format whose label is *label*."""
    try:
        return MediaFormatType(label)
    except ValueError as exc:
        raise ParseError("Enum parsing error: Matching variant not found") from exc


def create_progress_bar(percentage: float) -> str:
    """Render a ten-cell bar for *percentage*."""
    filled = max(0, int(percentage / 10.0))
    empty = max(0, 10 - filled)
    return f"[{'█' * filled}{'░' * empty}]"


def format_eta(seconds: float) -> str:
    """Render a remaining time as minutes and seconds."""
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    if minutes > 0:
        return f"{minutes}м {secs}с"
    return f"{secs}с"