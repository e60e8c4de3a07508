"""Conversation state kept per chat, and the bot's commands."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class StartState:
    """Waiting for a link or a video."""


@dataclass(frozen=True)
class ReceiveFormat:
    """A file is ready and the user is choosing a format for it."""

    filename: str


State = Union[StartState, ReceiveFormat]


class Command(enum.Enum):
    """Commands the bot understands."""

    START = "start"
    CANCEL = "cancel"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    Command.START: "Show start menu",
    Command.CANCEL: "Cancel the download.",
}


def parse_command(text: str) -> Command | None:
    """Return the command written in *text*, or None if it is not one."""
    words = text.split()
    if len(words) != 1 or not words[0].startswith("/"):
        return None
    name = words[0][1:].split("@", 1)[0]
    try:
        return Command(name)
    except ValueError:
        return None


class DialogueStorage:
    """In-memory state of every chat."""

    def __init__(self) -> None:
        self._states: dict[int, State] = {}

    def get(self, chat_id: int) -> State:
        """The state of *chat_id*; a new chat starts at StartState."""
        return self._states.get(chat_id, StartState())

    def update(self, chat_id: int, state: State) -> None:
        """Store *state* for *chat_id*."""
        self._states[chat_id] = state

    def exit(self, chat_id: int) -> None:
        """Forget the state of *chat_id*, returning it to the start."""
        self._states.pop(chat_id, None)


class Dialogue:
    """The state of one chat, bound to its storage."""

    def __init__(self, storage: DialogueStorage, chat_id: int) -> None:
        self.storage = storage
        self.chat_id = chat_id

    def get(self) -> State:
        return self.storage.get(self.chat_id)

    def update(self, state: State) -> None:
        self.storage.update(self.chat_id, state)

    def exit(self) -> None:
        self.storage.exit(self.chat_id)