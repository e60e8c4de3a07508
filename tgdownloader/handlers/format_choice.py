"""Handling the user's choice of output format for a downloaded video."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Sequence

from ..api import PARSE_MODE_HTML, CallbackQuery
from ..convert import compress_video, convert_audio, convert_video, convert_video_note
from ..errors import BotError, FfmpegFailedError, FileSystemError, FileTooLargeError, TelegramError
from ..info import probe_video
from ..loading import COMPRESSION_MESSAGES, LOADING_MESSAGES, run_loading_screen
from ..state import Dialogue
from ..utils import MediaFormatType, parse_media_format

log = logging.getLogger(__name__)

START_TEXT = "🚀 Начинаем конвертацию..."
VIDEO_NOTE_WARNING = "<b>⚠️ Внимание</b> кружочек будет обрезан до 1 минуты."
FFMPEG_FAILED_TEXT = (
    "❌ Мы не смогли конвертировать ваше видео, попробуйте выбрать другой формат. "
    "Или попробуйте загрузить другое видео использовав команду /cancel"
)
COMPRESSION_START_TEXT = "🔧 Видео получилось слишком большим (>200МБ), начинаем сжатие..."
COMPRESSION_DONE_TEXT = "✅ Видео успешно сжато до допустимого размера!"
COMPRESSION_FAILED_TEXT = (
    "❌ К сожалению, не удалось сжать видео до 200МБ. "
    "Попробуйте загрузить видео меньшего размера или более низкого качества."
)
DONE_TEXT = "✅ Готово! Ваше видео успешно конвертировано!"
NEXT_TEXT = "Можете теперь отправить еще одно видео, чтобы сконвертировать и его."
TOO_LARGE_TEXT = "❌ Ваше видео получилось слишком большим, мы не можем его отправить."


class _LoadingScreen:
    """A running animated status message that can be stopped any number of times."""

    def __init__(self, bot: Any, chat_id: int, message_id: int, messages: Sequence[str]) -> None:
        self.progress: asyncio.Queue = asyncio.Queue()
        self._stop = asyncio.Event()
        self._task = asyncio.create_task(
            run_loading_screen(bot, chat_id, message_id, self._stop, messages, self.progress)
        )

    async def stop(self) -> None:
        self._stop.set()
        self._task.cancel()
        await asyncio.wait({self._task})


def _remove(path: str) -> None:
    try:
        os.remove(path)
    except OSError as exc:
        raise FileSystemError(exc) from exc


async def _convert(
    bot: Any, chat_id: int, media_format: MediaFormatType, filename: str, progress: asyncio.Queue
) -> str:
    if media_format is MediaFormatType.VIDEO:
        return await convert_video(filename, progress)
    if media_format is MediaFormatType.VIDEO_NOTE:
        await bot.send_message(chat_id, VIDEO_NOTE_WARNING, parse_mode=PARSE_MODE_HTML)
        return await convert_video_note(filename)
    return await convert_audio(filename)


async def _compress(bot: Any, chat_id: int, message_id: int, filename: str) -> str | None:
    """Compress an oversized video; None means the user has been told it failed."""
    await bot.edit_message_text(chat_id, message_id, COMPRESSION_START_TEXT)
    screen = _LoadingScreen(bot, chat_id, message_id, COMPRESSION_MESSAGES)
    try:
        compressed = await compress_video(filename, screen.progress)
    except FileTooLargeError:
        await screen.stop()
        _remove(filename)
        await bot.edit_message_text(chat_id, message_id, COMPRESSION_FAILED_TEXT)
        return None
    except BotError:
        await screen.stop()
        _remove(filename)
        raise
    finally:
        await screen.stop()
    await bot.edit_message_text(chat_id, message_id, COMPRESSION_DONE_TEXT)
    return compressed


async def _send(bot: Any, chat_id: int, media_format: MediaFormatType, path: str) -> None:
    if media_format is MediaFormatType.VIDEO:
        info = await probe_video(path)
        await bot.send_video(
            chat_id, path, width=info.width, height=info.height, duration=int(info.duration)
        )
    elif media_format is MediaFormatType.AUDIO:
        await bot.send_audio(chat_id, path)
    elif media_format is MediaFormatType.VIDEO_NOTE:
        await bot.send_video_note(chat_id, path)
    else:
        await bot.send_voice(chat_id, path)


async def format_received(bot: Any, dialogue: Dialogue, filename: str, query: CallbackQuery) -> None:
    """Convert the downloaded file into the chosen format and send it back."""
    if query.data is None:
        return
    message = query.message
    if message is None:
        raise BotError("Couldn't find message")
    chat_id = message.chat_id

    await bot.answer_callback_query(query.id)
    if message.inaccessible:
        sent = await bot.send_message(chat_id, START_TEXT)
        message_id = sent.message_id
    else:
        await bot.edit_message_text(chat_id, message.message_id, START_TEXT)
        message_id = message.message_id

    media_format = parse_media_format(query.data)
    log.info("Found media format %s", media_format.name)

    screen = _LoadingScreen(bot, chat_id, message_id, LOADING_MESSAGES)
    try:
        try:
            converted = await _convert(bot, chat_id, media_format, filename, screen.progress)
        except FfmpegFailedError as exc:
            log.error("Ffmpeg error: Exit code %s, output: %s", exc.returncode, exc.stderr)
            await screen.stop()
            _remove(filename)
            await bot.edit_message_text(chat_id, message_id, FFMPEG_FAILED_TEXT)
            return
        except FileTooLargeError:
            await screen.stop()
            if media_format is not MediaFormatType.VIDEO:
                _remove(filename)
                raise
            compressed = await _compress(bot, chat_id, message_id, filename)
            if compressed is None:
                return
            converted = compressed
        except BotError:
            await screen.stop()
            _remove(filename)
            raise

        try:
            await _send(bot, chat_id, media_format, converted)
        except TelegramError as exc:
            await screen.stop()
            if not exc.entity_too_large():
                raise
            await bot.edit_message_text(chat_id, message_id, TOO_LARGE_TEXT)
        else:
            await screen.stop()
            await bot.edit_message_text(chat_id, message_id, DONE_TEXT)
            await bot.send_message(chat_id, NEXT_TEXT)
    finally:
        await screen.stop()

    dialogue.exit()
    _remove(converted)
    _remove(filename)