import os
import sys

import pytest

from tgdownloader.api import Message, CallbackQuery
from tgdownloader.errors import BotError, ParseError, TelegramError
from tgdownloader.handlers.format_choice import (
    DONE_TEXT,
    FFMPEG_FAILED_TEXT,
    NEXT_TEXT,
    START_TEXT,
    TOO_LARGE_TEXT,
    VIDEO_NOTE_WARNING,
    format_received,
)
from tgdownloader.state import DialogueStorage, Dialogue, ReceiveFormat, StartState
from tgdownloader.utils import MediaFormatType

INPUT = os.path.join("videos", "clip.mp4")

FFMPEG_OK = "import sys\nwith open(sys.argv[-1], 'wb') as f:\n    f.write(b'converted')\n"
FFMPEG_FAIL = "import sys\nsys.stderr.write('boom')\nsys.exit(1)\n"
FFPROBE = (
    "import json, sys\n"
    "if '-show_streams' in sys.argv:\n"
    "    print(json.dumps({'streams': [{'codec_type': 'video', 'width': 640, 'height': 360}],"
    " 'format': {'duration': '12.5'}}))\n"
    "else:\n"
    "    print('12.5')\n"
)


class FakeBot:
    def __init__(self, send_error=None):
        self.calls = []
        self.send_error = send_error

    async def send_message(self, chat_id, text, parse_mode=None, reply_markup=None):
        self.calls.append(("send_message", chat_id, text, parse_mode))
        return Message(chat_id=chat_id, message_id=99)

    async def edit_message_text(self, chat_id, message_id, text):
        self.calls.append(("edit", chat_id, message_id, text))

    async def answer_callback_query(self, callback_query_id):
        self.calls.append(("answer", callback_query_id))

    async def _upload(self, kind, chat_id, path, **extra):
        if self.send_error is not None:
            raise self.send_error
        self.calls.append((kind, chat_id, path, os.path.exists(path), extra))

    async def send_video(self, chat_id, path, width=None, height=None, duration=None):
        await self._upload("send_video", chat_id, path, width=width, height=height, duration=duration)

    async def send_audio(self, chat_id, path):
        await self._upload("send_audio", chat_id, path)

    async def send_video_note(self, chat_id, path):
        await self._upload("send_video_note", chat_id, path)

    async def send_voice(self, chat_id, path):
        await self._upload("send_voice", chat_id, path)


def _install(bin_dir, name, body):
    script = bin_dir / name
    script.write_text(f"#!{sys.executable}\n{body}")
    script.chmod(0o755)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    work = tmp_path / "work"
    (work / "videos").mkdir(parents=True)
    (work / "videos" / "clip.mp4").write_bytes(b"original")
    monkeypatch.chdir(work)
    monkeypatch.setenv("PATH", str(bin_dir) + os.pathsep + os.environ.get("PATH", ""))
    return bin_dir


def _dialogue():
    storage = DialogueStorage()
    storage.update(5, ReceiveFormat(filename=INPUT))
    return storage, Dialogue(storage, 5)


def _query(fmt, inaccessible=False):
    label = str(fmt) if isinstance(fmt, MediaFormatType) else fmt
    return CallbackQuery(
        id="q1",
        data=label,
        message=Message(chat_id=5, message_id=10, inaccessible=inaccessible),
    )


@pytest.mark.asyncio
async def test_query_without_data_does_nothing():
    bot = FakeBot()
    storage, dialogue = _dialogue()
    query = CallbackQuery(id="q1", data=None, message=Message(chat_id=5, message_id=10))
    await format_received(bot, dialogue, INPUT, query)
    assert bot.calls == []
    assert storage.get(5) == ReceiveFormat(filename=INPUT)


@pytest.mark.asyncio
async def test_query_without_message_raises():
    bot = FakeBot()
    _, dialogue = _dialogue()
    query = CallbackQuery(id="q1", data=str(MediaFormatType.AUDIO), message=None)
    with pytest.raises(BotError, match="Couldn't find message"):
        await format_received(bot, dialogue, INPUT, query)


@pytest.mark.asyncio
async def test_unknown_format_label_raises_parse_error(workspace):
    bot = FakeBot()
    _, dialogue = _dialogue()
    with pytest.raises(ParseError):
        await format_received(bot, dialogue, INPUT, _query("nonsense"))
    assert ("answer", "q1") in bot.calls


@pytest.mark.asyncio
async def test_audio_is_converted_sent_and_cleaned_up(workspace):
    _install(workspace, "ffmpeg", FFMPEG_OK)
    bot = FakeBot()
    storage, dialogue = _dialogue()
    await format_received(bot, dialogue, INPUT, _query(MediaFormatType.AUDIO))

    output = os.path.join("converted", "clip.mp3")
    assert bot.calls[0] == ("answer", "q1")
    assert bot.calls[1] == ("edit", 5, 10, START_TEXT)
    assert ("send_audio", 5, output, True, {}) in bot.calls
    assert ("edit", 5, 10, DONE_TEXT) in bot.calls
    assert bot.calls[-1] == ("send_message", 5, NEXT_TEXT, None)
    assert storage.get(5) == StartState()
    assert not os.path.exists(output)
    assert not os.path.exists(INPUT)


@pytest.mark.asyncio
async def test_voice_uses_send_voice(workspace):
    _install(workspace, "ffmpeg", FFMPEG_OK)
    bot = FakeBot()
    _, dialogue = _dialogue()
    await format_received(bot, dialogue, INPUT, _query(MediaFormatType.VOICE))
    kinds = [call[0] for call in bot.calls]
    assert "send_voice" in kinds
    assert "send_audio" not in kinds


@pytest.mark.asyncio
async def test_inaccessible_message_gets_a_new_status_message(workspace):
    _install(workspace, "ffmpeg", FFMPEG_OK)
    bot = FakeBot()
    _, dialogue = _dialogue()
    await format_received(bot, dialogue, INPUT, _query(MediaFormatType.AUDIO, inaccessible=True))
    assert bot.calls[1] == ("send_message", 5, START_TEXT, None)
    assert ("edit", 5, 99, DONE_TEXT) in bot.calls


@pytest.mark.asyncio
async def test_video_note_warns_before_converting(workspace):
    _install(workspace, "ffmpeg", FFMPEG_OK)
    bot = FakeBot()
    _, dialogue = _dialogue()
    await format_received(bot, dialogue, INPUT, _query(MediaFormatType.VIDEO_NOTE))
    warning = ("send_message", 5, VIDEO_NOTE_WARNING, "HTML")
    assert warning in bot.calls
    upload = next(call for call in bot.calls if call[0] == "send_video_note")
    assert bot.calls.index(warning) < bot.calls.index(upload)


@pytest.mark.asyncio
async def test_video_is_sent_with_probed_dimensions(workspace):
    _install(workspace, "ffmpeg", FFMPEG_OK)
    _install(workspace, "ffprobe", FFPROBE)
    bot = FakeBot()
    storage, dialogue = _dialogue()
    await format_received(bot, dialogue, INPUT, _query(MediaFormatType.VIDEO))
    upload = next(call for call in bot.calls if call[0] == "send_video")
    assert upload[2] == os.path.join("converted", "clip.mp4")
    assert upload[4] == {"width": 640, "height": 360, "duration": 12}
    assert storage.get(5) == StartState()


@pytest.mark.asyncio
async def test_ffmpeg_failure_reports_and_keeps_dialogue(workspace):
    _install(workspace, "ffmpeg", FFMPEG_FAIL)
    bot = FakeBot()
    storage, dialogue = _dialogue()
    await format_received(bot, dialogue, INPUT, _query(MediaFormatType.AUDIO))
    assert bot.calls[-1] == ("edit", 5, 10, FFMPEG_FAILED_TEXT)
    assert not os.path.exists(INPUT)
    assert storage.get(5) == ReceiveFormat(filename=INPUT)


@pytest.mark.asyncio
async def test_upload_too_large_is_reported(workspace):
    _install(workspace, "ffmpeg", FFMPEG_OK)
    bot = FakeBot(send_error=TelegramError("Request Entity Too Large", 413))
    storage, dialogue = _dialogue()
    await format_received(bot, dialogue, INPUT, _query(MediaFormatType.AUDIO))
    assert bot.calls[-1] == ("edit", 5, 10, TOO_LARGE_TEXT)
    assert storage.get(5) == StartState()
    assert not os.path.exists(os.path.join("converted", "clip.mp3"))


@pytest.mark.asyncio
async def test_other_upload_errors_propagate(workspace):
    _install(workspace, "ffmpeg", FFMPEG_OK)
    bot = FakeBot(send_error=TelegramError("Bad Request: chat not found", 400))
    storage, dialogue = _dialogue()
    with pytest.raises(TelegramError, match="chat not found"):
        await format_received(bot, dialogue, INPUT, _query(MediaFormatType.AUDIO))
    assert storage.get(5) == ReceiveFormat(filename=INPUT)