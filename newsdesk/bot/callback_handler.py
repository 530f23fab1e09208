"""
Telegram Callback Handler
=========================

Handles moderator button presses delivered through the bot webhook.
Callback data has the form ``<action>_<news_id>``:

- ``publish_<id>`` and ``confirm_rss_image_<id>`` rewrite and publish
- ``reject_<id>`` rejects the news record
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from telegram import CallbackQuery, Update

from ..delivery.message_formatter import PUBLISHED_MARK, REJECTED_MARK
from ..delivery.telegram_notifier import TelegramNotifier
from ..processing.news_rewriter import NewsRewriter
from ..storage.news_repository import NewsRepository
from ..utils.logging import get_logger_for_component

PUBLISH_ACTIONS = ("publish", "confirm_rss_image")
REJECT_ACTION = "reject"
REJECTION_REASON = "Rejected by moderator"


def parse_callback_data(data: str) -> Tuple[str, str]:
    """Split callback data into action and news ID.

    News IDs never contain underscores, so the last underscore separates
    them from multi-word actions such as ``confirm_rss_image``.
    """
    action, _, news_id = (data or "").rpartition("_")
    return action, news_id


@dataclass
class CallbackOutcome:
    action: Optional[str]
    news_id: Optional[str] = None
    success: bool = True
    error: Optional[str] = None


class CallbackHandler:
    """Dispatches moderation button presses."""

    def __init__(
        self,
        news_repo: NewsRepository,
        rewriter: NewsRewriter,
        notifier: Optional[TelegramNotifier] = None,
    ):
        self.news_repo = news_repo
        self.rewriter = rewriter
        self.notifier = notifier or TelegramNotifier()
        self.logger = get_logger_for_component("callback_handler")

    async def handle_update(self, payload: Dict[str, Any]) -> Optional[CallbackOutcome]:
        """Process one webhook update.

        Args:
            payload: Raw Telegram update JSON

        Returns:
            CallbackOutcome, or None for updates without a callback query
        """
        update = Update.de_json(payload, self.notifier.bot)
        query = update.callback_query if update else None
        if query is None:
            self.logger.debug("Ignoring update without callback query")
            return None

        action, news_id = parse_callback_data(query.data)
        self.logger.info(f"Callback {action} for news {news_id}")

        if action in PUBLISH_ACTIONS:
            return await self._publish(query, action, news_id)
        if action == REJECT_ACTION:
            return await self._reject(query, news_id)

        await self.notifier.answer_callback(query.id, "Unknown action")
        return CallbackOutcome(action=action or None, news_id=news_id, success=False,
                               error="Unknown action")

    async def _publish(self, query: CallbackQuery, action: str, news_id: str) -> CallbackOutcome:
        try:
            await self.rewriter.rewrite(news_id)
        except Exception as e:
            message = getattr(e, "message", str(e))
            self.logger.error(f"Failed to publish news {news_id}: {message}")
            await self.notifier.answer_callback(query.id, f"❌ Error: {message}", show_alert=True)
            return CallbackOutcome(action=action, news_id=news_id, success=False, error=message)

        await self.notifier.answer_callback(query.id, "✅ News published successfully!")
        await self._mark(query, PUBLISHED_MARK)
        return CallbackOutcome(action=action, news_id=news_id)

    async def _reject(self, query: CallbackQuery, news_id: str) -> CallbackOutcome:
        self.news_repo.mark_rejected(news_id, REJECTION_REASON)
        await self.notifier.answer_callback(query.id, "❌ News rejected")
        await self._mark(query, REJECTED_MARK)
        return CallbackOutcome(action=REJECT_ACTION, news_id=news_id)

    async def _mark(self, query: CallbackQuery, suffix: str) -> None:
        message = query.message
        if message is None:
            return
        original = getattr(message, "text_html", None) or ""
        await self.notifier.append_to_message(message.chat.id, message.message_id, original, suffix)
