"""Error hierarchy shared by every part of the bot."""

from __future__ import annotations


class BotError(Exception):
    """Base error of the bot; a bare instance carries a general message."""

    prefix = ""

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(f"{self.prefix}{message}")


class ConversionError(BotError):
    """A media conversion could not be completed."""

    prefix = "Ошибка конвертации: "


class NonUtf8PathError(ConversionError):
    """The output path cannot be represented as text."""

    def __init__(self) -> None:
        super().__init__("Путь содержит недопустимые символы")


class ConversionIOError(ConversionError):
    """An I/O failure happened while converting."""

    def __init__(self, error: BaseException) -> None:
        self.error = error
        super().__init__(f"Ошибка ввода-вывода: {error}")
        self.__cause__ = error


class FfmpegFailedError(ConversionError):
    """ffmpeg exited with a non-zero status."""

    def __init__(self, returncode: int, stderr: str) -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"FFmpeg завершился с кодом {returncode} - stderr: {stderr}")


class YoutubeError(BotError):
    """Fetching a video from YouTube failed."""

    prefix = "Ошибка загрузки с YouTube: "


class FileSystemError(BotError):
    """A file system operation failed."""

    prefix = "Ошибка файловой системы: "

    def __init__(self, error: BaseException) -> None:
        self.error = error
        super().__init__(str(error))
        self.__cause__ = error


class TelegramError(BotError):
    """The Telegram Bot API reported an error."""

    prefix = "Ошибка Telegram API: "

    def __init__(self, description: str, error_code: int | None = None) -> None:
        self.description = description
        self.error_code = error_code
        super().__init__(description)

    def entity_too_large(self) -> bool:
        """Whether the request was rejected because the payload was too big."""
        return self.error_code == 413 or "request entity too large" in self.description.lower()


class ParseError(BotError):
    """Data could not be parsed."""

    prefix = "Ошибка парсинга: "


class FileTooLargeError(BotError):
    """A produced file exceeds the allowed size."""

    prefix = "Файл слишком большой: "


class ExternalCommandError(BotError):
    """An external program could not be run or failed."""

    prefix = "Ошибка команды "

    def __init__(self, command: str, stderr: str) -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(f"{command}: {stderr}")