"""A small asynchronous client for the Telegram Bot API."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

import httpx

from .errors import BotError, FileSystemError, ParseError, TelegramError

API_URL = "https://api.telegram.org"
TOKEN_ENV = "TELOXIDE_TOKEN"
PARSE_MODE_HTML = "HTML"
CHAT_ACTION_TYPING = "typing"
CHAT_ACTION_UPLOAD_VIDEO = "upload_video"

_POLL_GRACE = 10.0
_ALLOWED_UPDATES = ["message", "callback_query"]


@dataclass(frozen=True)
class Message:
    """The parts of a Telegram message the bot works with."""

    chat_id: int
    message_id: int
    text: str | None = None
    video_file_id: str | None = None
    inaccessible: bool = False


@dataclass(frozen=True)
class CallbackQuery:
    """A press on an inline keyboard button."""

    id: str
    data: str | None = None
    message: Message | None = None


def parse_message(data: Any) -> Message:
    """Build a Message from a Bot API message object."""
    try:
        chat_id = int(data["chat"]["id"])
        message_id = int(data["message_id"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ParseError(f"Invalid message object: {exc!r}") from exc
    video = data.get("video")
    video_file_id = video.get("file_id") if isinstance(video, dict) else None
    text = data.get("text")
    return Message(
        chat_id=chat_id,
        message_id=message_id,
        text=text if isinstance(text, str) else None,
        video_file_id=video_file_id,
        inaccessible=data.get("date") == 0,
    )


def parse_callback_query(data: Any) -> CallbackQuery:
    """Build a CallbackQuery from a Bot API callback query object."""
    try:
        query_id = str(data["id"])
    except (KeyError, TypeError) as exc:
        raise ParseError(f"Invalid callback query object: {exc!r}") from exc
    raw_message = data.get("message")
    message = parse_message(raw_message) if raw_message is not None else None
    payload = data.get("data")
    return CallbackQuery(
        id=query_id,
        data=payload if isinstance(payload, str) else None,
        message=message,
    )


class TelegramBot:
    """Calls Bot API methods on behalf of one bot token."""

    def __init__(self, token: str, client: httpx.AsyncClient | None = None) -> None:
        self.token = token
        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()

    async def __aenter__(self) -> TelegramBot:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _call(
        self,
        method: str,
        *,
        json: dict | None = None,
        data: dict | None = None,
        files: dict | None = None,
        timeout: float | None = None,
    ) -> Any:
        url = f"{API_URL}/bot{self.token}/{method}"
        extra: dict[str, Any] = {}
        if timeout is not None:
            extra["timeout"] = timeout
        try:
            response = await self.client.post(url, json=json, data=data, files=files, **extra)
        except httpx.HTTPError as exc:
            raise TelegramError(str(exc)) from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise TelegramError(
                response.reason_phrase or response.text, response.status_code
            ) from exc
        if not isinstance(payload, dict) or not payload.get("ok"):
            body = payload if isinstance(payload, dict) else {}
            raise TelegramError(
                str(body.get("description", "Unknown error")),
                body.get("error_code", response.status_code),
            )
        return payload.get("result")

    async def _send_file(
        self, method: str, field: str, chat_id: int, path: str | Path, **fields: Any
    ) -> Message:
        data = {"chat_id": str(chat_id)}
        data.update({key: str(value) for key, value in fields.items() if value is not None})
        try:
            handle = open(path, "rb")
        except OSError as exc:
            raise FileSystemError(exc) from exc
        with handle:
            result = await self._call(
                method, data=data, files={field: (Path(path).name, handle)}
            )
        return parse_message(result)

    async def send_message(
        self,
        chat_id: int,
        text: str,
        parse_mode: str | None = None,
        reply_markup: dict | None = None,
    ) -> Message:
        """Send a text message and return it."""
        params: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode is not None:
            params["parse_mode"] = parse_mode
        if reply_markup is not None:
            params["reply_markup"] = reply_markup
        return parse_message(await self._call("sendMessage", json=params))

    async def edit_message_text(self, chat_id: int, message_id: int, text: str) -> None:
        """Replace the text of a message sent earlier."""
        await self._call(
            "editMessageText",
            json={"chat_id": chat_id, "message_id": message_id, "text": text},
        )

    async def answer_callback_query(self, callback_query_id: str) -> None:
        """Acknowledge a button press."""
        await self._call("answerCallbackQuery", json={"callback_query_id": callback_query_id})

    async def send_chat_action(self, chat_id: int, action: str) -> None:
        """Show a status such as typing in the chat."""
        await self._call("sendChatAction", json={"chat_id": chat_id, "action": action})

    async def send_video(
        self,
        chat_id: int,
        path: str | Path,
        width: int | None = None,
        height: int | None = None,
        duration: int | None = None,
    ) -> Message:
        """Upload a video file."""
        return await self._send_file(
            "sendVideo", "video", chat_id, path, width=width, height=height, duration=duration
        )

    async def send_audio(self, chat_id: int, path: str | Path) -> Message:
        """Upload an audio file."""
        return await self._send_file("sendAudio", "audio", chat_id, path)

    async def send_video_note(self, chat_id: int, path: str | Path) -> Message:
        """Upload a round video note."""
        return await self._send_file("sendVideoNote", "video_note", chat_id, path)

    async def send_voice(self, chat_id: int, path: str | Path) -> Message:
        """Upload a voice message."""
        return await self._send_file("sendVoice", "voice", chat_id, path)

    async def get_file(self, file_id: str) -> str:
        """Return the server-side path of a file, ready for downloading."""
        result = await self._call("getFile", json={"file_id": file_id})
        path = result.get("file_path") if isinstance(result, dict) else None
        if not isinstance(path, str):
            raise ParseError("File path not found in getFile result")
        return path

    async def download_file(self, file_path: str, destination: BinaryIO) -> None:
        """Stream a file from the Bot API into *destination*."""
        url = f"{API_URL}/file/bot{self.token}/{file_path}"
        try:
            async with self.client.stream("GET", url) as response:
                if response.is_error:
                    raise TelegramError(
                        response.reason_phrase or "Download failed", response.status_code
                    )
                async for chunk in response.aiter_bytes():
                    destination.write(chunk)
        except httpx.HTTPError as exc:
            raise TelegramError(str(exc)) from exc

    async def get_updates(self, offset: int | None = None, timeout: int = 30) -> list[dict]:
        """Long-poll for new updates."""
        params: dict[str, Any] = {"timeout": timeout, "allowed_updates": _ALLOWED_UPDATES}
        if offset is not None:
            params["offset"] = offset
        result = await self._call("getUpdates", json=params, timeout=timeout + _POLL_GRACE)
        if not isinstance(result, list):
            raise ParseError("getUpdates did not return a list")
        return result

    async def close(self) -> None:
        """Release the HTTP client if this bot created it."""
        if self._owns_client:
            await self.client.aclose()


def bot_from_env() -> TelegramBot:
    """Create a bot from the token in the environment."""
    token = os.environ.get(TOKEN_ENV)
    if not token:
        raise BotError(f"{TOKEN_ENV} env variable is not set")
    return TelegramBot(token)