"""
Service Wiring
==============

Builds repositories and pipeline services on top of one database
connection. Used by the HTTP app and the CLI.
"""

from functools import cached_property
from typing import Optional

from ..ai.azure_client import AzureOpenAIClient
from ..bot.callback_handler import CallbackHandler
from ..config.settings import get_settings
from ..contact.email_sender import ContactService
from ..database.connection import DatabaseConnection, get_db_manager
from ..delivery.message_formatter import MessageFormatter
from ..delivery.telegram_notifier import TelegramNotifier
from ..ingestion.article_extractor import ArticleExtractor
from ..ingestion.feed_fetcher import FeedFetcher
from ..processing.article_analyzer import ArticleAnalyzer
from ..processing.duplicates import DuplicateChecker
from ..processing.moderation_dispatcher import ModerationDispatcher
from ..processing.news_fetcher import NewsFetcher
from ..processing.news_rewriter import NewsRewriter
from ..processing.pre_moderation import PreModerator
from ..processing.source_monitor import SourceMonitor
from ..processing.stale_rejector import StaleNewsRejector
from ..social.cross_poster import CrossPoster
from ..storage.contact_repository import ContactRepository
from ..storage.news_repository import NewsRepository
from ..storage.prompt_repository import PromptRepository, SettingsRepository
from ..storage.social_post_repository import BlogRepository, SocialPostRepository
from ..storage.source_repository import SourceRepository


class Services:
    """Lazily constructed service graph."""

    def __init__(self, db: Optional[DatabaseConnection] = None):
        self.db = db or get_db_manager()
        self.settings = get_settings()

    # Repositories

    @cached_property
    def news_repo(self) -> NewsRepository:
        return NewsRepository(self.db)

    @cached_property
    def source_repo(self) -> SourceRepository:
        return SourceRepository(self.db)

    @cached_property
    def prompt_repo(self) -> PromptRepository:
        return PromptRepository(self.db)

    @cached_property
    def settings_repo(self) -> SettingsRepository:
        return SettingsRepository(self.db)

    @cached_property
    def social_post_repo(self) -> SocialPostRepository:
        return SocialPostRepository(self.db)

    @cached_property
    def blog_repo(self) -> BlogRepository:
        return BlogRepository(self.db)

    @cached_property
    def contact_repo(self) -> ContactRepository:
        return ContactRepository(self.db)

    # Clients

    @cached_property
    def ai_client(self) -> AzureOpenAIClient:
        return AzureOpenAIClient(self.settings.azure)

    @cached_property
    def notifier(self) -> TelegramNotifier:
        return TelegramNotifier(settings=self.settings.telegram)

    @cached_property
    def formatter(self) -> MessageFormatter:
        return MessageFormatter()

    @cached_property
    def feed_fetcher(self) -> FeedFetcher:
        return FeedFetcher()

    # Pipeline steps

    @cached_property
    def pre_moderator(self) -> PreModerator:
        processing = self.settings.processing
        checker = DuplicateChecker(
            self.news_repo,
            lookback_days=processing.duplicate_lookback_days,
            candidate_limit=processing.duplicate_candidate_limit,
        )
        return PreModerator(self.prompt_repo, checker, self.ai_client)

    @cached_property
    def news_fetcher(self) -> NewsFetcher:
        return NewsFetcher(
            self.source_repo, self.news_repo, self.pre_moderator,
            feed_fetcher=self.feed_fetcher, notifier=self.notifier, formatter=self.formatter,
        )

    @cached_property
    def analyzer(self) -> ArticleAnalyzer:
        return ArticleAnalyzer(
            self.news_repo, self.prompt_repo,
            extractor=ArticleExtractor(), ai_client=self.ai_client,
            notifier=self.notifier, formatter=self.formatter,
        )

    @cached_property
    def rewriter(self) -> NewsRewriter:
        return NewsRewriter(self.news_repo, self.prompt_repo, self.ai_client)

    @cached_property
    def dispatcher(self) -> ModerationDispatcher:
        return ModerationDispatcher(
            self.news_repo, self.source_repo, self.settings_repo, self.rewriter,
            notifier=self.notifier, formatter=self.formatter,
        )

    @cached_property
    def monitor(self) -> SourceMonitor:
        return SourceMonitor(
            self.source_repo, self.analyzer, self.dispatcher, feed_fetcher=self.feed_fetcher
        )

    @cached_property
    def stale_rejector(self) -> StaleNewsRejector:
        return StaleNewsRejector(self.news_repo)

    @cached_property
    def callback_handler(self) -> CallbackHandler:
        return CallbackHandler(self.news_repo, self.rewriter, notifier=self.notifier)

    @cached_property
    def cross_poster(self) -> CrossPoster:
        return CrossPoster(self.news_repo, self.social_post_repo, blog_repo=self.blog_repo)

    @cached_property
    def contact_service(self) -> ContactService:
        return ContactService(self.contact_repo)
