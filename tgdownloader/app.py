"""Routing of updates to handlers, the polling loop and the command entry point."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections import defaultdict
from contextlib import suppress
from typing import Any

from dotenv import find_dotenv, load_dotenv

from .api import Message, bot_from_env, parse_callback_query, parse_message
from .commands import cancel, start
from .errors import BotError
from .handlers.format_choice import format_received
from .handlers.link import link_received
from .handlers.video import video_received
from .state import Command, Dialogue, DialogueStorage, ReceiveFormat, StartState, parse_command
from .utils import is_youtube_video_link

log = logging.getLogger(__name__)

_RETRY_DELAY = 1.0
_LOG_LEVEL_ENV = "LOG_LEVEL"


async def _dispatch_message(bot: Any, storage: DialogueStorage, message: Message) -> bool:
    dialogue = Dialogue(storage, message.chat_id)
    state = dialogue.get()
    text = message.text
    if text is not None:
        command = parse_command(text)
        if command is Command.CANCEL:
            await cancel(bot, dialogue, message)
            return True
        if command is Command.START and isinstance(state, StartState):
            await start(bot, message)
            return True
        if is_youtube_video_link(text):
            await link_received(bot, dialogue, message)
            return True
    if message.video_file_id is not None:
        await video_received(bot, dialogue, message)
        return True
    return False


async def _dispatch_callback(bot: Any, storage: DialogueStorage, data: Any) -> bool:
    query = parse_callback_query(data)
    if query.message is None:
        return False
    dialogue = Dialogue(storage, query.message.chat_id)
    state = dialogue.get()
    if not isinstance(state, ReceiveFormat):
        return False
    await format_received(bot, dialogue, state.filename, query)
    return True


async def dispatch(bot: Any, storage: DialogueStorage, update: dict) -> bool:
    """Route one update to its handler; return whether any handler took it."""
    if "message" in update:
        return await _dispatch_message(bot, storage, parse_message(update["message"]))
    if "callback_query" in update:
        return await _dispatch_callback(bot, storage, update["callback_query"])
    return False


def _chat_of(update: dict) -> Any:
    source = update.get("message")
    if source is None:
        query = update.get("callback_query")
        source = query.get("message") if isinstance(query, dict) else None
    chat = source.get("chat") if isinstance(source, dict) else None
    return chat.get("id") if isinstance(chat, dict) else None


async def _handle(bot: Any, storage: DialogueStorage, update: dict, lock: asyncio.Lock) -> None:
    async with lock:
        try:
            handled = await dispatch(bot, storage, update)
        except Exception:
            log.exception("Error while handling update %s", update.get("update_id"))
            return
    if not handled:
        log.debug("Unhandled update %s", update.get("update_id"))


async def run(bot: Any, storage: DialogueStorage) -> None:
    """Poll for updates forever, handling each chat's updates in order."""
    locks: defaultdict[Any, asyncio.Lock] = defaultdict(asyncio.Lock)
    tasks: set[asyncio.Task] = set()
    offset: int | None = None
    try:
        while True:
            try:
                updates = await bot.get_updates(offset)
            except BotError as exc:
                log.error("Failed to fetch updates: %s", exc)
                await asyncio.sleep(_RETRY_DELAY)
                continue
            for update in updates:
                update_id = update.get("update_id")
                if isinstance(update_id, int):
                    offset = update_id + 1
                task = asyncio.create_task(_handle(bot, storage, update, locks[_chat_of(update)]))
                tasks.add(task)
                task.add_done_callback(tasks.discard)
    finally:
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


def _log_level() -> int:
    level = logging.getLevelName(os.environ.get(_LOG_LEVEL_ENV, "ERROR").upper())
    return level if isinstance(level, int) else logging.ERROR


async def _serve(bot: Any) -> None:
    async with bot:
        await run(bot, DialogueStorage())


def main(argv: list[str] | None = None) -> int:
    """Start the bot; the token is read from the environment or a .env file."""
    parser = argparse.ArgumentParser(
        prog="tgdownloader",
        description="Telegram bot that turns YouTube links and videos into other formats.",
    )
    parser.parse_args(argv)

    load_dotenv(find_dotenv(usecwd=True))
    logging.basicConfig(level=_log_level())
    log.info("Starting command bot...")

    try:
        bot = bot_from_env()
    except BotError as exc:
        print(f"tgdownloader: {exc}", file=sys.stderr)
        return 1

    with suppress(KeyboardInterrupt):
        asyncio.run(_serve(bot))
    return 0