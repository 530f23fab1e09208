"""
RSS Source Monitor
==================

Analyzes the latest articles of each active RSS source in batches and
dispatches the ones that clear the relevance threshold to moderation.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..config.settings import get_settings
from ..ingestion.feed_fetcher import FeedFetcher
from ..storage.source_repository import SourceRepository
from ..utils.logging import get_logger_for_component
from .article_analyzer import AnalysisRequest, ArticleAnalyzer
from .moderation_dispatcher import ModerationDispatcher


@dataclass
class MonitorReport:
    """Counters for one monitoring run."""
    sources_processed: int = 0
    total_sources: int = 0
    articles_analyzed: int = 0
    qualified_articles: int = 0
    sent_to_telegram: int = 0
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sourcesProcessed": self.sources_processed,
            "totalSources": self.total_sources,
            "articlesAnalyzed": self.articles_analyzed,
            "qualifiedArticles": self.qualified_articles,
            "sentToTelegram": self.sent_to_telegram,
            "errors": list(self.errors),
            "durationSeconds": round(self.duration_seconds, 2),
        }


class SourceMonitor:
    """Batch analysis of RSS sources."""

    def __init__(
        self,
        source_repo: SourceRepository,
        analyzer: ArticleAnalyzer,
        dispatcher: ModerationDispatcher,
        feed_fetcher: Optional[FeedFetcher] = None,
    ):
        self.source_repo = source_repo
        self.analyzer = analyzer
        self.dispatcher = dispatcher
        self.feed_fetcher = feed_fetcher or FeedFetcher()
        self.settings = get_settings()
        self.logger = get_logger_for_component("source_monitor")

    async def run(self, batch_index: int = 0, batch_size: Optional[int] = None) -> MonitorReport:
        """Monitor one batch of sources.

        Args:
            batch_index: Zero-based batch number
            batch_size: Sources per batch; all sources when None

        Returns:
            MonitorReport with counters and collected error messages
        """
        started = time.monotonic()
        report = MonitorReport()
        processing = self.settings.processing

        sources = self.source_repo.get_active_rss_sources()
        report.total_sources = len(sources)
        if batch_size:
            start = batch_index * batch_size
            sources = sources[start:start + batch_size]

        qualified: List[str] = []

        for source in sources:
            if not source.rss_url:
                report.errors.append(f"{source.name}: No RSS URL")
                continue

            fetched = await self.feed_fetcher.fetch(
                source.rss_url, limit=processing.monitor_articles_per_source
            )
            if not fetched.success:
                report.errors.append(f"{source.name}: RSS fetch failed")
                continue

            for item in fetched.items:
                request = AnalysisRequest(
                    url=item.url,
                    source_id=source.id,
                    source_name=source.name,
                    title=item.title,
                    description=item.description,
                    image_url=item.image_url,
                    skip_telegram=True,
                )
                try:
                    outcome = await self.analyzer.analyze(request)
                    report.articles_analyzed += 1
                    if (
                        outcome.success
                        and outcome.news_id
                        and outcome.relevance_score >= processing.monitor_qualification_score
                    ):
                        qualified.append(outcome.news_id)
                except Exception as e:
                    self.logger.warning(f"Analysis failed for {item.url}: {e}")
                    report.errors.append(f"{source.name}: {getattr(e, 'message', str(e))}")

                if processing.article_delay_seconds:
                    await asyncio.sleep(processing.article_delay_seconds)

            report.sources_processed += 1

        report.qualified_articles = len(qualified)

        for news_id in qualified:
            try:
                result = await self.dispatcher.dispatch(news_id)
                if result.success:
                    report.sent_to_telegram += 1
            except Exception as e:
                self.logger.warning(f"Failed to dispatch {news_id}: {e}")
                report.errors.append(f"Telegram send failed: {news_id}")

            if processing.telegram_delay_seconds:
                await asyncio.sleep(processing.telegram_delay_seconds)

        report.duration_seconds = time.monotonic() - started
        self.logger.info(
            f"Monitor batch {batch_index}: {report.sources_processed} sources, "
            f"{report.articles_analyzed} analyzed, {report.sent_to_telegram} sent"
        )
        return report
