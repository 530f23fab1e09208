"""
RSS Parser
==========

Turns RSS/Atom XML into flat items with plain-text descriptions and the
best available image and video attachments.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

import feedparser

from ..utils.logging import get_logger_for_component
from ..utils.validators import strip_html

MAX_DESCRIPTION_LENGTH = 1000

YOUTUBE_PATTERN = re.compile(r'(?:youtube\.com/watch\?v=|youtu\.be/)([a-zA-Z0-9_-]+)')


@dataclass
class RSSItem:
    """Single feed entry."""
    title: str
    url: str
    description: str = ""
    pub_date: Optional[datetime] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    video_type: Optional[str] = None  # 'direct_url' or 'youtube'


def youtube_embed_url(text: str) -> Optional[str]:
    """Embed URL for the first YouTube watch or short link in ``text``."""
    match = YOUTUBE_PATTERN.search(text or "")
    if not match:
        return None
    return f"https://www.youtube.com/embed/{match.group(1)}"


class RSSParser:
    """Feed parser built on feedparser."""

    def __init__(self):
        self.logger = get_logger_for_component("rss_parser")

    def parse(self, xml_text: str) -> List[RSSItem]:
        """Parse feed XML into items.

        Entries without a title or link are skipped. A malformed feed that
        still yields entries is parsed as far as possible.

        Args:
            xml_text: Raw RSS or Atom document

        Returns:
            Parsed items in feed order
        """
        feed_data = feedparser.parse(xml_text)

        if feed_data.bozo and not feed_data.entries:
            self.logger.warning(f"Feed could not be parsed: {feed_data.get('bozo_exception')}")
            return []

        items = []
        for entry in feed_data.entries:
            title = (entry.get("title") or "").strip()
            url = (entry.get("link") or "").strip()
            if not title or not url:
                continue

            description = strip_html(entry.get("summary") or entry.get("description") or "")
            video_url, video_type = self._extract_video(entry, url, description)

            items.append(RSSItem(
                title=title,
                url=url,
                description=description[:MAX_DESCRIPTION_LENGTH],
                pub_date=self._parse_date(entry),
                image_url=self._extract_image(entry),
                video_url=video_url,
                video_type=video_type,
            ))

        return items

    def _extract_image(self, entry: Any) -> Optional[str]:
        """Thumbnail first, then an image enclosure, then image media content."""
        for thumbnail in entry.get("media_thumbnail") or []:
            if thumbnail.get("url"):
                return thumbnail["url"]

        for enclosure in entry.get("enclosures") or []:
            if (enclosure.get("type") or "").startswith("image/") and enclosure.get("href"):
                return enclosure["href"]

        for media in entry.get("media_content") or []:
            if media.get("medium") == "image" and media.get("url"):
                return media["url"]

        return None

    def _extract_video(
        self, entry: Any, url: str, description: str
    ) -> Tuple[Optional[str], Optional[str]]:
        for enclosure in entry.get("enclosures") or []:
            if (enclosure.get("type") or "").startswith("video/") and enclosure.get("href"):
                return enclosure["href"], "direct_url"

        for media in entry.get("media_content") or []:
            if media.get("medium") == "video" and media.get("url"):
                return media["url"], "direct_url"

        embed = youtube_embed_url(url) or youtube_embed_url(description)
        if embed:
            return embed, "youtube"

        return None, None

    def _parse_date(self, entry: Any) -> Optional[datetime]:
        for field in ("published_parsed", "updated_parsed"):
            date_tuple = entry.get(field)
            if date_tuple:
                try:
                    return datetime.fromtimestamp(calendar.timegm(date_tuple), tz=timezone.utc)
                except (ValueError, OverflowError):
                    continue
        return None
