import pytest

from tgdownloader.state import (
    Command,
    Dialogue,
    DialogueStorage,
    ReceiveFormat,
    StartState,
    parse_command,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("/start", Command.START),
        ("/cancel", Command.CANCEL),
        ("/cancel@SomeBot", Command.CANCEL),
        ("  /start  ", Command.START),
        ("/start now", None),
        ("/Start", None),
        ("/help", None),
        ("start", None),
        ("", None),
    ],
)
def test_parse_command(text, expected):
    assert parse_command(text) is expected


def test_parsed_command_descriptions():
    assert parse_command("/start").description == "Show start menu"
    assert parse_command("/cancel").description == "Cancel the download."


def test_storage_defaults_to_start():
    storage = DialogueStorage()
    assert storage.get(1) == StartState()


def test_storage_update_and_exit():
    storage = DialogueStorage()
    storage.update(1, ReceiveFormat("a.mp4"))
    assert storage.get(1) == ReceiveFormat("a.mp4")
    assert storage.get(2) == StartState()
    storage.exit(1)
    assert storage.get(1) == StartState()


def test_exit_of_unknown_chat_keeps_start():
    storage = DialogueStorage()
    storage.exit(42)
    assert storage.get(42) == StartState()


def test_dialogue_is_bound_to_its_chat():
    storage = DialogueStorage()
    first = Dialogue(storage, 1)
    second = Dialogue(storage, 2)
    first.update(ReceiveFormat("x.mp4"))
    assert first.get() == ReceiveFormat("x.mp4")
    assert second.get() == StartState()
    assert storage.get(1) == ReceiveFormat("x.mp4")
    first.exit()
    assert first.get() == StartState()