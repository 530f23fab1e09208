"""
RSS Feed Fetcher
================

Downloads RSS feeds over HTTP and hands them to the parser. Failures are
reported on the result instead of raised so one broken source never stops
a pipeline run.
"""

import asyncio
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

import aiohttp
import certifi

from ..config.settings import get_settings
from ..utils.logging import get_logger_for_component
from .rss_parser import RSSParser, RSSItem

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class FetchResult:
    """Result of feed fetch operation."""

    feed_url: str
    success: bool
    items: List[RSSItem] = field(default_factory=list)
    error: Optional[str] = None
    fetch_time: Optional[datetime] = None

    def __post_init__(self):
        if not self.fetch_time:
            self.fetch_time = datetime.now(timezone.utc)

    @property
    def item_count(self) -> int:
        return len(self.items)


class FeedFetcher:
    """Async RSS feed fetcher."""

    def __init__(self, timeout: Optional[int] = None, parser: Optional[RSSParser] = None):
        """Initialize feed fetcher.

        Args:
            timeout: Request timeout in seconds (default from config)
            parser: Parser used for downloaded feeds
        """
        settings = get_settings()
        self.timeout = timeout or settings.limits.request_timeout
        self.parser = parser or RSSParser()
        self.logger = get_logger_for_component("feed_fetcher")
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @asynccontextmanager
    async def get_session(self):
        """Get configured aiohttp session."""
        connector = aiohttp.TCPConnector(ssl=self.ssl_context, limit_per_host=5)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        headers = {
            "User-Agent": BROWSER_USER_AGENT,
            "Accept": "application/rss+xml, application/xml, text/xml, */*",
        }
        async with aiohttp.ClientSession(
            connector=connector, timeout=timeout, headers=headers
        ) as session:
            yield session

    async def fetch(self, feed_url: str, limit: Optional[int] = None) -> FetchResult:
        """Fetch and parse a single RSS feed.

        Args:
            feed_url: URL of the RSS feed
            limit: Keep only the first ``limit`` items

        Returns:
            FetchResult with items or error information
        """
        start_time = datetime.now(timezone.utc)

        try:
            async with self.get_session() as session:
                async with session.get(feed_url) as response:
                    if response.status != 200:
                        error_msg = f"HTTP {response.status}: {response.reason}"
                        self.logger.warning(f"Feed fetch failed for {feed_url}: {error_msg}")
                        return FetchResult(feed_url=feed_url, success=False, error=error_msg)

                    content = await response.text()

            items = self.parser.parse(content)
            if limit is not None:
                items = items[:limit]

            self.logger.info(
                f"Fetched {len(items)} items from {feed_url} "
                f"in {(datetime.now(timezone.utc) - start_time).total_seconds():.2f}s"
            )
            return FetchResult(feed_url=feed_url, success=True, items=items, fetch_time=start_time)

        except asyncio.TimeoutError:
            error_msg = f"Request timeout after {self.timeout}s"
            self.logger.warning(f"Feed fetch timeout for {feed_url}")
            return FetchResult(feed_url=feed_url, success=False, error=error_msg, fetch_time=start_time)

        except Exception as e:
            error_msg = f"Fetch error: {e}"
            self.logger.error(f"Feed fetch failed for {feed_url}: {error_msg}", exc_info=True)
            return FetchResult(feed_url=feed_url, success=False, error=error_msg, fetch_time=start_time)
