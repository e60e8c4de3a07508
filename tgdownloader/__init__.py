"""Telegram bot that downloads YouTube videos and converts them to other media formats."""

__version__ = "0.1.0"