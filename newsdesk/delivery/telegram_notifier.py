"""
Telegram Notifier
=================

Sends moderation messages to the configured Telegram chat and updates
them after a moderator acts on a callback button.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from telegram import Bot, InlineKeyboardMarkup
from telegram.constants import ParseMode
from telegram.error import TelegramError as BotApiError

from ..config.settings import TelegramSettings, get_settings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import TelegramError, ErrorCode


@dataclass
class SendResult:
    """Result of a Telegram send."""
    success: bool
    message_id: Optional[int] = None
    error: Optional[str] = None
    sent_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.sent_at:
            self.sent_at = datetime.now(timezone.utc)


class TelegramNotifier:
    """Moderation chat client built on python-telegram-bot."""

    def __init__(self, bot: Optional[Bot] = None, settings: Optional[TelegramSettings] = None):
        """Initialize notifier.

        Args:
            bot: Bot instance; created from the configured token when omitted
            settings: Telegram settings (default from config)
        """
        self.settings = settings or get_settings().telegram
        self.logger = get_logger_for_component("telegram_notifier")
        if bot is None and self.settings.bot_token:
            bot = Bot(token=self.settings.bot_token)
        self.bot = bot

    @property
    def is_configured(self) -> bool:
        return self.bot is not None and bool(self.settings.chat_id)

    def require_configured(self) -> None:
        if not self.is_configured:
            raise TelegramError(
                "Telegram credentials not configured",
                error_code=ErrorCode.TELEGRAM_NOT_CONFIGURED,
                recoverable=False,
            )

    async def send_message(
        self,
        text: str,
        reply_markup: Optional[InlineKeyboardMarkup] = None,
    ) -> SendResult:
        """Send an HTML message to the moderation chat.

        Returns:
            SendResult; unconfigured or failed sends are reported, not raised
        """
        if not self.is_configured:
            self.logger.warning("Telegram not configured, message not sent")
            return SendResult(success=False, error="Telegram not configured")

        try:
            message = await self.bot.send_message(
                chat_id=self.settings.chat_id,
                text=text,
                parse_mode=ParseMode.HTML,
                reply_markup=reply_markup,
            )
            self.logger.debug(f"Sent Telegram message {message.message_id}")
            return SendResult(success=True, message_id=message.message_id)

        except BotApiError as e:
            self.logger.error(f"Failed to send Telegram message: {e}")
            return SendResult(success=False, error=str(e))

    async def answer_callback(self, callback_query_id: str, text: str, show_alert: bool = False) -> None:
        """Acknowledge a button press. Failures are logged only."""
        try:
            await self.bot.answer_callback_query(
                callback_query_id=callback_query_id, text=text, show_alert=show_alert
            )
        except BotApiError as e:
            self.logger.warning(f"Failed to answer callback query: {e}")

    async def append_to_message(
        self,
        chat_id: int,
        message_id: int,
        original_html: str,
        suffix_html: str,
    ) -> None:
        """Replace a message with its text plus a status suffix, dropping buttons."""
        try:
            await self.bot.edit_message_text(
                chat_id=chat_id,
                message_id=message_id,
                text=original_html + suffix_html,
                parse_mode=ParseMode.HTML,
            )
        except BotApiError as e:
            self.logger.warning(f"Failed to edit Telegram message {message_id}: {e}")
