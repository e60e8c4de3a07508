"""Handling a YouTube link: check, download, then offer formats."""

from __future__ import annotations

import logging
from typing import Any

from ..api import CHAT_ACTION_TYPING, CHAT_ACTION_UPLOAD_VIDEO, PARSE_MODE_HTML, Message
from ..errors import BotError
from ..state import Dialogue, ReceiveFormat
from ..utils import MediaFormatType, get_unique_file_id
from ..youtube import (
    MAX_VIDEO_DURATION_SECONDS,
    download_video,
    format_duration,
    get_filename,
    get_video_duration,
    is_video_too_long,
)

log = logging.getLogger(__name__)

FORMAT_PROMPT = "Видео загружено. Теперь выбери формат в котором ты хочешь получить это видео"
NOT_FOUND_TEXT = "Не могу найти это видео, попробуй другую ссылку."
DOWNLOAD_FAILED_TEXT = "❌ Не могу скачать это видео, попробуй другое."


def format_keyboard() -> dict:
    """An inline keyboard with one button per media format, two per row."""
    buttons = [{"text": str(fmt), "callback_data": str(fmt)} for fmt in MediaFormatType]
    return {"inline_keyboard": [buttons[:2], buttons[2:4]]}


async def send_format_message(
    bot: Any, dialogue: Dialogue, message: Message, filename: str
) -> None:
    """Ask which format to produce and remember the downloaded file."""
    await bot.send_message(message.chat_id, FORMAT_PROMPT, reply_markup=format_keyboard())
    dialogue.update(ReceiveFormat(filename=filename))


async def link_received(bot: Any, dialogue: Dialogue, message: Message) -> None:
    """Download the linked video and offer the formats it can be turned into."""
    url = message.text
    if url is None:
        raise BotError("Text should be here. It's invalid state")

    unique_id = get_unique_file_id(message.chat_id, message.message_id)
    await bot.send_chat_action(message.chat_id, CHAT_ACTION_TYPING)

    try:
        duration = await get_video_duration(url)
    except BotError:
        # The video may still be valid when its duration is unknown.
        log.warning("Could not get video duration for URL: %s", url)
    else:
        if is_video_too_long(duration):
            await bot.send_message(
                message.chat_id,
                f"<b>❌ Видео слишком длинное</b> ({format_duration(duration)}).\n"
                f"Максимальная длительность: {format_duration(MAX_VIDEO_DURATION_SECONDS)}",
                parse_mode=PARSE_MODE_HTML,
            )
            return

    try:
        filename = await get_filename(url, unique_id)
    except BotError:
        await bot.send_message(message.chat_id, NOT_FOUND_TEXT)
        return
    log.info("Downloading file: %s", filename)

    await bot.send_chat_action(message.chat_id, CHAT_ACTION_UPLOAD_VIDEO)

    try:
        await download_video(url, unique_id)
    except BotError as exc:
        log.error("yt-dlp error: %s", exc)
        await bot.send_message(message.chat_id, DOWNLOAD_FAILED_TEXT)
        return
    await send_format_message(bot, dialogue, message, filename)