"""Handlers of the /start and /cancel commands."""

from __future__ import annotations

from typing import Any

from .api import Message
from .state import Dialogue

WELCOME_TEXT = (
    "Привет 👋\n\nОтправь мне ссылку на YouTube видео, и я превращу его в любой формат, "
    "который ты захочешь."
)
CANCEL_TEXT = "Загрузка отменена."


async def start(bot: Any, message: Message) -> None:
    """Greet the user and explain what to send."""
    await bot.send_message(message.chat_id, WELCOME_TEXT)


async def cancel(bot: Any, dialogue: Dialogue, message: Message) -> None:
    """Abandon the current download and reset the conversation."""
    await bot.send_message(message.chat_id, CANCEL_TEXT)
    dialogue.exit()