"""
Scheduled News Fetch
====================

Polls every active RSS source, stores new items as pending news,
pre-moderates them and offers approved items to the moderation chat.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Optional

from ..config.settings import get_settings
from ..database.models import ModerationStatus, News, NewsSource, SourceType, utc_now
from ..delivery.message_formatter import MessageFormatter
from ..delivery.telegram_notifier import TelegramNotifier
from ..ingestion.feed_fetcher import FeedFetcher
from ..ingestion.rss_parser import RSSItem
from ..storage.news_repository import NewsRepository
from ..storage.source_repository import SourceRepository
from ..utils.logging import get_logger_for_component
from .pre_moderation import PreModerator


@dataclass
class SourceFetchResult:
    """Per-source outcome of a fetch run."""
    source: str
    processed: int = 0
    approved: int = 0
    rejected: int = 0
    failed: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "source": self.source,
            "processed": self.processed,
            "approved": self.approved,
            "rejected": self.rejected,
        }
        if self.failed:
            data["failed"] = self.failed
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class FetchReport:
    """Summary of a fetch run across all sources."""
    results: List[SourceFetchResult] = field(default_factory=list)
    message: str = "RSS fetch complete"
    no_sources: bool = False

    @property
    def total_processed(self) -> int:
        return sum(result.processed for result in self.results)

    def to_dict(self) -> Dict[str, Any]:
        if self.no_sources:
            return {"ok": True, "message": self.message, "processed": 0}
        return {
            "ok": True,
            "message": self.message,
            "totalProcessed": self.total_processed,
            "results": [result.to_dict() for result in self.results],
        }


class NewsFetcher:
    """Runs the scheduled RSS fetch."""

    def __init__(
        self,
        source_repo: SourceRepository,
        news_repo: NewsRepository,
        pre_moderator: PreModerator,
        feed_fetcher: Optional[FeedFetcher] = None,
        notifier: Optional[TelegramNotifier] = None,
        formatter: Optional[MessageFormatter] = None,
    ):
        self.source_repo = source_repo
        self.news_repo = news_repo
        self.pre_moderator = pre_moderator
        self.feed_fetcher = feed_fetcher or FeedFetcher()
        self.notifier = notifier or TelegramNotifier()
        self.formatter = formatter or MessageFormatter()
        self.settings = get_settings()
        self.logger = get_logger_for_component("news_fetcher")

    async def run(self) -> FetchReport:
        """Fetch all active RSS sources.

        Returns:
            FetchReport; failures are recorded per source
        """
        sources = self.source_repo.get_active_rss_sources()
        if not sources:
            self.logger.info("No active RSS sources")
            return FetchReport(message="No active RSS sources", no_sources=True)

        report = FetchReport()
        delay = self.settings.processing.source_delay_seconds

        for index, source in enumerate(sources):
            try:
                result = await self._process_source(source)
            except Exception as e:
                self.logger.error(f"Error processing source {source.name}: {e}")
                result = SourceFetchResult(source=source.name, error=str(e))
            report.results.append(result)

            if delay and index < len(sources) - 1:
                await asyncio.sleep(delay)

        self.logger.info(f"RSS fetch complete: {report.total_processed} new items")
        return report

    async def _process_source(self, source: NewsSource) -> SourceFetchResult:
        log = self.logger.bind(source=source.name)
        result = SourceFetchResult(source=source.name)
        if not source.rss_url:
            result.error = "No RSS URL"
            return result

        fetched = await self.feed_fetcher.fetch(source.rss_url)
        if not fetched.success:
            result.error = fetched.error
            return result

        since = source.last_fetched_at or (
            utc_now() - timedelta(hours=self.settings.processing.fetch_lookback_hours)
        )
        fresh_items = [item for item in fetched.items if self._is_newer(item, since)]

        for item in fresh_items:
            try:
                if self.news_repo.exists_by_original_url(item.url):
                    continue
                approved = await self._ingest_item(source, item)
            except Exception as e:
                log.warning(f"Failed to ingest {item.url}: {e}")
                result.failed += 1
                continue
            result.processed += 1
            if approved:
                result.approved += 1
            else:
                result.rejected += 1

        if source.id is not None:
            self.source_repo.update_last_fetched(source.id)

        log.info(f"{len(fetched.items)} items, {result.processed} new, {result.failed} failed")
        return result

    @staticmethod
    def _is_newer(item: RSSItem, since) -> bool:
        if item.pub_date is None:
            return True
        if since.tzinfo is None:
            since = since.replace(tzinfo=item.pub_date.tzinfo)
        return item.pub_date > since

    async def _ingest_item(self, source: NewsSource, item: RSSItem) -> bool:
        news = News(
            original_title=item.title,
            original_content=item.description,
            original_url=item.url,
            source_id=source.id,
            source_type=SourceType.RSS,
            image_url=item.image_url,
            video_url=item.video_url,
            video_type=item.video_type,
        )
        self.news_repo.create(news)

        try:
            moderation = await self.pre_moderator.moderate(
                item.title, item.description, item.url, exclude_stored=True
            )
        except Exception as e:
            # Known URLs are skipped on later runs; a pending row would never be moderated
            self.news_repo.update_moderation(
                news.id, ModerationStatus.REJECTED, f"Pre-moderation failed: {e}"
            )
            raise
        status = ModerationStatus.APPROVED if moderation.approved else ModerationStatus.REJECTED
        self.news_repo.update_moderation(
            news.id, status, None if moderation.approved else moderation.reason
        )

        if moderation.approved and self.notifier.is_configured:
            sent = await self.notifier.send_message(
                self.formatter.format_fetched_article(item, source.name),
                reply_markup=self.formatter.moderation_keyboard(news.id),
            )
            if sent.success and sent.message_id:
                self.news_repo.set_telegram_message_id(news.id, sent.message_id)

        return moderation.approved
