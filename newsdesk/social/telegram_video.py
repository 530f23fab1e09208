"""
Telegram Video Download
=======================

Fetches video files attached to moderation messages through the Bot API.
"""

from typing import Optional

from telegram import Bot
from telegram.error import TelegramError as BotApiError

from ..config.settings import get_settings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import TelegramError, ErrorCode


class TelegramVideoDownloader:
    """Downloads files by Telegram ``file_id``."""

    def __init__(self, bot: Optional[Bot] = None):
        settings = get_settings().telegram
        if bot is None and settings.bot_token:
            bot = Bot(token=settings.bot_token)
        self.bot = bot
        self.logger = get_logger_for_component("telegram_video")

    async def download(self, file_id: str) -> bytes:
        """Download a file into memory.

        Raises:
            TelegramError: If the bot is not configured or the download fails
        """
        if self.bot is None:
            raise TelegramError(
                "Telegram bot token not configured",
                error_code=ErrorCode.TELEGRAM_NOT_CONFIGURED,
                recoverable=False,
            )
        try:
            telegram_file = await self.bot.get_file(file_id)
            data = await telegram_file.download_as_bytearray()
        except BotApiError as e:
            self.logger.error(f"Failed to download Telegram file {file_id}: {e}")
            raise TelegramError(
                f"Failed to download video: {e}", error_code=ErrorCode.TELEGRAM_API_ERROR
            ) from e

        self.logger.info(f"Downloaded {len(data) / 1024 / 1024:.2f} MB from Telegram")
        return bytes(data)
