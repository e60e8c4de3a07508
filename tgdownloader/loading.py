"""Animated status messages shown while long work is running."""

from __future__ import annotations

import asyncio
import itertools
from typing import Any, Iterable, Sequence

from .convert import ProgressInfo
from .utils import create_progress_bar, format_eta


def _statuses(pairs: Iterable[tuple[str, str]]) -> tuple[str, ...]:
    return tuple(f"{icon} {text}..." for icon, text in pairs)


LOADING_MESSAGES = _statuses(
    [
        ("🚀", "Почти готово"),
        ("🔄", "Еще конвертируем"),
        ("⚡", "Обрабатываем видео"),
        ("🎬", "Творим магию"),
        ("🛠️", "Работаем над этим"),
        ("⏳", "Терпение, волшебство требует времени"),
        ("🎯", "Доводим до совершенства"),
        ("🔥", "Скоро будет готово"),
        ("⚙️", "Крутим-вертим"),
        ("🌟", "Добавляем последние штрихи"),
        ("🎪", "Устраиваем представление"),
        ("🔮", "Колдуем над файлом"),
    ]
)

COMPRESSION_MESSAGES = _statuses(
    [
        ("🔧", "Сжимаем видео"),
        ("🗜️", "Уменьшаем размер"),
        ("📦", "Упаковываем покрепче"),
        ("⚡", "Применяем компрессию"),
        ("🎯", "Оптимизируем качество"),
        ("🔄", "Пережимаем пикселы"),
        ("⚙️", "Настраиваем битрейт"),
        ("🚀", "Делаем файл легче"),
        ("🌟", "Сохраняем качество"),
        ("🎪", "Творим чудеса сжатия"),
        ("🔮", "Магия компрессии в действии"),
        ("💎", "Превращаем в алмаз размера"),
    ]
)

DEFAULT_INTERVAL = 3.0


def render_message(base: str, progress: ProgressInfo | None) -> str:
    """Combine a status line with a progress bar and remaining time."""
    if progress is None or progress.percentage <= 0.0:
        return base
    eta = progress.estimated_time_remaining
    suffix = ""
    if eta is not None and int(eta) > 0:
        suffix = f" (осталось ~{format_eta(eta)})"
    bar = create_progress_bar(progress.percentage)
    return f"{base}\n{bar} {progress.percentage:.1f}%{suffix}"


def _latest(queue: asyncio.Queue, current: ProgressInfo | None) -> ProgressInfo | None:
    """Return the newest item waiting in *queue*, or *current* if it is empty."""
    while not queue.empty():
        current = queue.get_nowait()
    return current


async def run_loading_screen(
    bot: Any,
    chat_id: int,
    message_id: int,
    stop: asyncio.Event,
    messages: Sequence[str] = LOADING_MESSAGES,
    progress_queue: asyncio.Queue | None = None,
    interval: float = DEFAULT_INTERVAL,
) -> None:
    """Keep editing a message with rotating texts until *stop* is set."""
    if not messages:
        raise ValueError("at least one loading message is required")

    await asyncio.sleep(interval)

    progress: ProgressInfo | None = None
    for base in itertools.cycle(messages):
        if progress_queue is not None:
            progress = _latest(progress_queue, progress)
        if stop.is_set():
            return
        try:
            await bot.edit_message_text(chat_id, message_id, render_message(base, progress))
        except Exception:  # an uneditable message is not worth failing over
            pass
        await asyncio.sleep(interval)