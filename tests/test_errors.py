import pytest

from tgdownloader.errors import (
    BotError,
    ConversionError,
    ConversionIOError,
    ExternalCommandError,
    FfmpegFailedError,
    FileSystemError,
    FileTooLargeError,
    NonUtf8PathError,
    ParseError,
    TelegramError,
    YoutubeError,
)


def test_general_error_message_is_plain():
    assert str(BotError("Couldn't find message")) == "Couldn't find message"


def test_non_utf8_path_message():
    err = NonUtf8PathError()
    assert str(err) == "Ошибка конвертации: Путь содержит недопустимые символы"
    assert isinstance(err, ConversionError)


def test_io_error_keeps_cause():
    inner = OSError("disk full")
    err = ConversionIOError(inner)
    assert err.__cause__ is inner
    assert str(err) == "Ошибка конвертации: Ошибка ввода-вывода: disk full"


def test_ffmpeg_failed_fields():
    err = FfmpegFailedError(1, "bad input")
    assert err.returncode == 1
    assert err.stderr == "bad input"
    assert str(err) == "Ошибка конвертации: FFmpeg завершился с кодом 1 - stderr: bad input"


def test_youtube_error_message():
    assert str(YoutubeError("Video duration is not available")) == (
        "Ошибка загрузки с YouTube: Video duration is not available"
    )


def test_file_system_error_wraps_os_error():
    inner = FileNotFoundError("missing")
    err = FileSystemError(inner)
    assert err.error is inner
    assert err.__cause__ is inner
    assert str(err).startswith("Ошибка файловой системы: ")


def test_parse_and_too_large_prefixes():
    assert str(ParseError("x")) == "Ошибка парсинга: x"
    assert str(FileTooLargeError("y")) == "Файл слишком большой: y"


def test_external_command_error():
    err = ExternalCommandError("ffprobe", "not found")
    assert err.command == "ffprobe"
    assert str(err) == "Ошибка команды ffprobe: not found"


@pytest.mark.parametrize(
    ("description", "code", "expected"),
    [
        ("Request Entity Too Large", None, True),
        ("whatever", 413, True),
        ("Bad Request: chat not found", 400, False),
    ],
)
def test_telegram_entity_too_large(description, code, expected):
    assert TelegramError(description, code).entity_too_large() is expected


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (FileTooLargeError("too big"), "Файл слишком большой: too big"),
        (ExternalCommandError("yt-dlp", "boom"), "Ошибка команды yt-dlp: boom"),
        (
            FfmpegFailedError(2, "oops"),
            "Ошибка конвертации: FFmpeg завершился с кодом 2 - stderr: oops",
        ),
    ],
)
def test_specific_errors_are_bot_errors(error, expected):
    assert isinstance(error, BotError)
    assert str(error) == expected