# tgdownloader

A Telegram bot that takes a YouTube link or an uploaded video and sends it back in the
format you pick:

- 🎥 Видео: an MP4 video, re-encoded at lower quality if the first result is larger
  than 200 MB
- 🔈 Аудио: an MP3 audio track
- 📷 Кружочек: a square 512×512 video note, cut to one minute
- 🎙️ Войс: the MP3 track sent as a voice message

Links to videos longer than one hour are refused when yt-dlp can report the duration.
While a conversion runs, the bot keeps editing its status message with rotating texts;
for MP4 video conversion and compression it also shows a progress bar and an estimate of
the time left.

## Requirements

- Python 3.10 or later
- `ffmpeg` and `ffprobe` on `PATH`
- `yt-dlp` on `PATH`

## Installation

```
pip install .
```

## Configuration

The bot reads its token from the `TELOXIDE_TOKEN` environment variable. It also loads a
`.env` file found in the working directory or one of its parents:

```
TELOXIDE_TOKEN=token
```

The log level is taken from the `LOG_LEVEL` environment variable (for example `INFO` or
`DEBUG`); it defaults to `ERROR`.

Files downloaded from YouTube and uploaded videos are stored under `videos/`, converted
files under `converted/`, both relative to the working directory. `converted/` is created
as needed; `videos/` is created when the first YouTube link is downloaded, and an
uploaded video can only be saved once it exists. Both the downloaded and the converted
file are removed after the result has been sent.

## Running

```
tgdownloader
```

The bot long-polls Telegram for updates until it is stopped with Ctrl+C. Updates from
one chat are handled one at a time, in order; different chats are handled concurrently.

## Using the bot

- `/start` shows a greeting.
- Send a YouTube link (`youtube.com/watch?v=...` or `youtu.be/...`) or upload a video.
- Choose a format from the buttons that appear.
- `/cancel` abandons the current download.

## Package layout

- `tgdownloader.app`: `dispatch` routes one update to its handler, `run` is the polling
  loop, `main` is the `tgdownloader` command.
- `tgdownloader.api`: `TelegramBot`, a small asynchronous Bot API client built on httpx,
  with the `Message` and `CallbackQuery` types.
- `tgdownloader.state`: per-chat conversation state (`DialogueStorage`, `Dialogue`) and
  the `Command` enum.
- `tgdownloader.commands`: the `/start` and `/cancel` handlers.
- `tgdownloader.handlers`: `link_received`, `video_received` and `format_received`.
- `tgdownloader.youtube`: yt-dlp calls (`get_video_duration`, `get_filename`,
  `download_video`).
- `tgdownloader.convert`: ffmpeg conversions (`convert_video`, `compress_video`,
  `convert_audio`, `convert_video_note`) and progress monitoring.
- `tgdownloader.info`: ffprobe calls (`probe_video`, `get_duration`).
- `tgdownloader.loading`: the animated status message.
- `tgdownloader.errors`: the `BotError` hierarchy.

## Limitations

- Conversation state lives in memory only; a restart forgets which file each chat was
  choosing a format for.
- Updates are received by long polling only; there is no webhook mode.

## Development

```
pip install .[test]
pytest
```