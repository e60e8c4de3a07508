"""Handling a video sent straight to the bot."""

from __future__ import annotations

import logging
from typing import Any

from ..api import Message
from ..errors import BotError, FileSystemError
from ..state import Dialogue
from ..utils import get_unique_file_id, replace_path_keep_extension
from ..youtube import DOWNLOAD_DIR
from .link import send_format_message

log = logging.getLogger(__name__)

DOWNLOAD_FAILED_TEXT = "⚠️ Мы не смогли скачать ваше видео, попробуйте еще раз."


async def video_received(bot: Any, dialogue: Dialogue, message: Message) -> None:
    """Save the uploaded video locally and offer the formats it can become."""
    if message.video_file_id is None:
        raise BotError("Video should be here. It's invalid state")

    file_path = await bot.get_file(message.video_file_id)
    unique_id = get_unique_file_id(message.chat_id, message.message_id)
    output_path = replace_path_keep_extension(file_path, DOWNLOAD_DIR, f"custom_{unique_id}")
    log.debug("Starting downloading video... %s", file_path)

    try:
        destination = open(output_path, "wb")
    except OSError as exc:
        raise FileSystemError(exc) from exc
    with destination:
        try:
            await bot.download_file(file_path, destination)
        except (BotError, OSError) as exc:
            log.error("Error downloading file: %r", exc)
            await bot.send_message(message.chat_id, DOWNLOAD_FAILED_TEXT)
            raise BotError("Error downloading file") from exc
    log.debug("Video downloaded")

    await send_format_message(bot, dialogue, message, str(output_path))