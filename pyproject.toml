[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tgdownloader"
version = "0.1.0"
description = "Telegram bot that downloads YouTube videos and converts them to video, audio, video notes or voice messages"
requires-python = ">=3.10"
keywords = ["telegram", "bot", "youtube", "yt-dlp", "ffmpeg", "video", "conversion"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Communications :: Chat",
    "Topic :: Multimedia :: Video :: Conversion",
]
dependencies = [
    "httpx",
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
tgdownloader = "tgdownloader.app:main"

[tool.hatch.build.targets.wheel]
packages = ["tgdownloader"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
