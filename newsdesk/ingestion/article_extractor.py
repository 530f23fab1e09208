"""
Article Content Extractor
=========================

Fetches an article page and pulls out its title, lead image and main
text with BeautifulSoup. Extraction falls back from the ``<article>``
element to common content containers and finally to loose paragraphs.
"""

import re
import ssl
from dataclasses import dataclass
from typing import Optional

import aiohttp
import certifi
from bs4 import BeautifulSoup, Comment

from ..config.settings import get_settings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ContentExtractionError
from ..utils.validators import collapse_whitespace
from .feed_fetcher import BROWSER_USER_AGENT

MIN_ARTICLE_CHARS = 500
MIN_PARAGRAPH_CHARS = 50

NOISE_TAGS = ["script", "style", "nav", "header", "footer", "aside", "noscript"]

CONTENT_CLASSES = [
    "post-content",
    "article-content",
    "entry-content",
    "content-body",
    "story-body",
    "article-body",
]

CONTENT_CLASS_PATTERN = re.compile("|".join(CONTENT_CLASSES))


@dataclass
class ExtractedArticle:
    title: str
    content: str
    image_url: Optional[str] = None


def _meta_content(soup: BeautifulSoup, prop: str) -> Optional[str]:
    tag = soup.find("meta", attrs={"property": prop})
    if tag and tag.get("content"):
        return tag["content"].strip()
    return None


def extract_from_html(html: str) -> ExtractedArticle:
    """Extract title, image and main text from an HTML document.

    Args:
        html: Page markup

    Returns:
        ExtractedArticle; ``content`` may be empty when nothing usable was found
    """
    soup = BeautifulSoup(html, "html.parser")

    title = ""
    if soup.title and soup.title.string:
        title = soup.title.string.strip()
    if not title:
        title = _meta_content(soup, "og:title") or ""

    image_url = _meta_content(soup, "og:image")

    for tag in soup(NOISE_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    text = ""
    article = soup.find("article")
    if article:
        text = collapse_whitespace(article.get_text(" "))

    if len(text) < MIN_ARTICLE_CHARS:
        candidates = [
            soup.find("div", class_=CONTENT_CLASS_PATTERN),
            soup.find("main"),
            soup.find("div", id="content"),
        ]
        for candidate in candidates:
            if candidate is None:
                continue
            candidate_text = collapse_whitespace(candidate.get_text(" "))
            if len(candidate_text) > len(text):
                text = candidate_text

    if len(text) < MIN_ARTICLE_CHARS:
        paragraphs = [
            collapse_whitespace(p.get_text(" ")) for p in soup.find_all("p")
        ]
        paragraphs = [p for p in paragraphs if len(p) > MIN_PARAGRAPH_CHARS]
        if paragraphs:
            text = collapse_whitespace(" ".join(paragraphs))

    return ExtractedArticle(title=title, content=text, image_url=image_url)


class ArticleExtractor:
    """Downloads article pages and extracts their readable content."""

    def __init__(self, timeout: Optional[int] = None):
        settings = get_settings()
        self.timeout = timeout or settings.limits.request_timeout
        self.logger = get_logger_for_component("article_extractor")
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    async def fetch_html(self, url: str) -> str:
        headers = {
            "User-Agent": BROWSER_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }
        connector = aiohttp.TCPConnector(ssl=self.ssl_context)
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(connector=connector, timeout=timeout, headers=headers) as session:
            async with session.get(url) as response:
                if response.status != 200:
                    raise ContentExtractionError(
                        f"Failed to fetch article: HTTP {response.status}: {response.reason}",
                        url=url,
                    )
                return await response.text()

    async def extract(self, url: str) -> ExtractedArticle:
        """Fetch ``url`` and extract its content.

        Raises:
            ContentExtractionError: If the page cannot be downloaded
        """
        try:
            html = await self.fetch_html(url)
        except ContentExtractionError:
            raise
        except Exception as e:
            self.logger.error(f"Error fetching article {url}: {e}")
            raise ContentExtractionError(f"Failed to fetch article: {e}", url=url) from e

        article = extract_from_html(html)
        self.logger.debug(f"Extracted {len(article.content)} chars from {url}")
        return article
