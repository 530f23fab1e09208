"""
Moderation Dispatcher
=====================

Routes an analyzed RSS article either to the moderation chat or, when
auto-publishing is switched on, straight to the rewriter.
"""

from dataclasses import dataclass
from typing import Optional

from ..delivery.message_formatter import MessageFormatter
from ..delivery.telegram_notifier import TelegramNotifier
from ..storage.news_repository import NewsRepository
from ..storage.prompt_repository import SettingsRepository
from ..storage.source_repository import SourceRepository
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ProcessingError, ResourceNotFound, TelegramError
from .news_rewriter import NewsRewriter

DEFAULT_SOURCE_NAME = "RSS Feed"


@dataclass
class DispatchResult:
    success: bool
    news_id: str
    telegram_message_id: Optional[int] = None
    auto_publish: bool = False
    error: Optional[str] = None


class ModerationDispatcher:
    """Sends analyzed articles for moderation or auto-publishes them."""

    def __init__(
        self,
        news_repo: NewsRepository,
        source_repo: SourceRepository,
        settings_repo: SettingsRepository,
        rewriter: NewsRewriter,
        notifier: Optional[TelegramNotifier] = None,
        formatter: Optional[MessageFormatter] = None,
    ):
        self.news_repo = news_repo
        self.source_repo = source_repo
        self.settings_repo = settings_repo
        self.rewriter = rewriter
        self.notifier = notifier or TelegramNotifier()
        self.formatter = formatter or MessageFormatter()
        self.logger = get_logger_for_component("moderation_dispatcher")

    async def dispatch(self, news_id: str) -> DispatchResult:
        """Offer one analyzed article to the moderators.

        Args:
            news_id: News record with an RSS analysis

        Returns:
            DispatchResult; an article already in the chat is reported with
            ``success=False``

        Raises:
            TelegramError: If Telegram is not configured or the send fails
            ResourceNotFound: If the record does not exist
            ProcessingError: If the record has no analysis
        """
        self.notifier.require_configured()

        news = self.news_repo.get_by_id(news_id)
        if news is None:
            raise ResourceNotFound("News not found", resource_id=news_id)

        if news.telegram_message_id:
            self.logger.info(f"News {news_id} already sent as message {news.telegram_message_id}")
            return DispatchResult(
                success=False,
                news_id=news_id,
                telegram_message_id=news.telegram_message_id,
                error="Already sent to Telegram",
            )

        if news.rss_analysis is None:
            raise ProcessingError("No RSS analysis found for this news record", news_id=news_id)

        if self.settings_repo.is_auto_publish_enabled():
            self.logger.info(f"Auto-publish enabled, publishing {news_id} directly")
            await self.rewriter.rewrite(news_id)
            await self.notifier.send_message(self.formatter.format_auto_publish_notice(news))
            return DispatchResult(success=True, news_id=news_id, auto_publish=True)

        source_name = DEFAULT_SOURCE_NAME
        if news.source_id is not None:
            source = self.source_repo.get_by_id(news.source_id)
            if source:
                source_name = source.name

        sent = await self.notifier.send_message(
            self.formatter.format_analysis(news, source_name),
            reply_markup=self.formatter.analysis_keyboard(news.id, news.image_url),
        )
        if not sent.success:
            raise TelegramError(f"Failed to send to Telegram: {sent.error}")

        self.news_repo.set_telegram_message_id(news_id, sent.message_id)
        return DispatchResult(success=True, news_id=news_id, telegram_message_id=sent.message_id)
