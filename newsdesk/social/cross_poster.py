"""
Cross-Poster
============

Publishes news videos and article links to social platforms and records
every attempt in ``social_media_posts``.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..config.settings import get_settings
from ..database.models import LANGUAGES, SocialPlatform
from ..storage.news_repository import NewsRepository
from ..storage.social_post_repository import BlogRepository, SocialPostRepository
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ResourceNotFound, ValidationError
from ..utils.validators import sanitize_text
from .base import BasePublisher, PublishResult
from .facebook import FacebookPublisher
from .linkedin import LinkedInPublisher
from .telegram_video import TelegramVideoDownloader
from .youtube import YouTubePublisher

TITLE_CHARS = 200
DESCRIPTION_CHARS = 500
ARTICLE_TEXT_CHARS = 2500

# Site routes per language; Ukrainian pages live under /uk
LOCALE_PREFIXES = {"en": "", "no": "/no", "ua": "/uk"}


@dataclass
class CrossPostReport:
    content_id: str
    language: str
    results: List[PublishResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(result.success for result in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "contentId": self.content_id,
            "language": self.language,
            "results": [result.to_dict() for result in self.results],
        }


class CrossPoster:
    """Coordinates uploads to LinkedIn, Facebook and YouTube."""

    def __init__(
        self,
        news_repo: NewsRepository,
        post_repo: SocialPostRepository,
        blog_repo: Optional[BlogRepository] = None,
        downloader: Optional[TelegramVideoDownloader] = None,
        publishers: Optional[Dict[str, BasePublisher]] = None,
    ):
        self.news_repo = news_repo
        self.post_repo = post_repo
        self.blog_repo = blog_repo
        self.downloader = downloader or TelegramVideoDownloader()
        self.publishers = publishers or {
            SocialPlatform.LINKEDIN.value: LinkedInPublisher(),
            SocialPlatform.FACEBOOK.value: FacebookPublisher(),
            SocialPlatform.YOUTUBE.value: YouTubePublisher(),
        }
        self.settings = get_settings()
        self.logger = get_logger_for_component("cross_poster")

    def article_url(self, slug: Optional[str], content_type: str = "news", language: str = "en") -> str:
        path = "news" if content_type == "news" else "blog"
        base = self.settings.social.site_url.rstrip("/")
        return f"{base}{LOCALE_PREFIXES.get(language, '')}/{path}/{slug or ''}"

    def _localized_news(self, news_id: str, language: str) -> Dict[str, str]:
        news = self.news_repo.get_by_id(news_id)
        if news is None:
            raise ResourceNotFound(f"News not found: {news_id}", resource_id=news_id)
        localized = news.localized(language)
        return {
            "title": sanitize_text(localized["title"], TITLE_CHARS) or "News",
            "description": sanitize_text(localized["description"], DESCRIPTION_CHARS),
            "url": self.article_url(localized["slug"], language=language),
        }

    def _article_share(self, record, language: str, content_type: str) -> Dict[str, str]:
        # Full article body when translated, else the localized description
        localized = record.localized(language)
        body = getattr(record, f"content_{language}", None) or localized["description"]
        return {
            "title": sanitize_text(localized["title"], TITLE_CHARS),
            "description": sanitize_text(body, ARTICLE_TEXT_CHARS),
            "url": self.article_url(localized["slug"], content_type, language),
        }

    @staticmethod
    def _validate(platforms: Iterable[str], language: str) -> List[str]:
        if language not in LANGUAGES:
            raise ValidationError(f"Unsupported language: {language}", field_name="language")
        selected = []
        for platform in platforms:
            try:
                selected.append(SocialPlatform(platform).value)
            except ValueError as e:
                raise ValidationError(
                    f"Unsupported platform: {platform}", field_name="platforms"
                ) from e
        if not selected:
            raise ValidationError("No platforms selected", field_name="platforms")
        return selected

    async def post_video(
        self,
        news_id: str,
        file_id: str,
        platforms: Iterable[str],
        language: str = "en",
    ) -> CrossPostReport:
        """Upload a Telegram video to the selected platforms.

        Platforms that already hold a successful post for this news item
        and language are skipped. Each platform failure is recorded and
        does not stop the others.

        Args:
            news_id: Published news record
            file_id: Telegram file ID of the video
            platforms: Platform names
            language: Language of the post text

        Returns:
            CrossPostReport with one result per platform

        Raises:
            ValidationError: For unknown platforms or languages
            ResourceNotFound: If the news record does not exist
            TelegramError: If the video cannot be downloaded
        """
        selected = self._validate(platforms, language)
        content = self._localized_news(news_id, language)
        report = CrossPostReport(content_id=news_id, language=language)

        pending = []
        for platform in selected:
            existing = self.post_repo.find_posted(news_id, platform, language)
            if existing:
                self.logger.info(f"{platform} ({language}) already posted for {news_id}")
                report.results.append(PublishResult(
                    platform=platform, success=True, post_id=existing.platform_post_id,
                    post_url=existing.platform_post_url, skipped=True,
                ))
            else:
                pending.append(platform)

        if not pending:
            return report

        video = await self.downloader.download(file_id)
        loop = asyncio.get_running_loop()

        for platform in pending:
            publisher = self.publishers[platform]
            post_id = self.post_repo.create_pending(news_id, platform, language)
            try:
                result = await loop.run_in_executor(
                    None,
                    publisher.publish_video,
                    video,
                    content["title"],
                    content["description"],
                    content["url"],
                )
            except Exception as e:
                message = getattr(e, "message", str(e))
                self.logger.error(f"{platform} upload failed for {news_id}: {message}")
                self.post_repo.mark_failed(post_id, message)
                report.results.append(PublishResult(platform=platform, success=False, error=message))
                continue

            self.post_repo.mark_posted(post_id, result.post_id, result.post_url)
            report.results.append(result)

        return report

    async def share_article(
        self,
        content_id: str,
        language: str = "en",
        content_type: str = "news",
    ) -> PublishResult:
        """Share a news item or blog post link on LinkedIn.

        Raises:
            ValidationError: For unknown languages or content types
            ResourceNotFound: If the content does not exist
        """
        self._validate([SocialPlatform.LINKEDIN.value], language)
        platform = SocialPlatform.LINKEDIN.value

        if content_type == "news":
            news = self.news_repo.get_by_id(content_id)
            if news is None:
                raise ResourceNotFound(f"News not found: {content_id}", resource_id=content_id)
            content = self._article_share(news, language, "news")
            image_url = news.image_url
        elif content_type == "blog" and self.blog_repo is not None:
            post = self.blog_repo.get_by_id(content_id)
            if post is None:
                raise ResourceNotFound(f"Blog post not found: {content_id}", resource_id=content_id)
            content = self._article_share(post, language, "blog")
            image_url = None
        else:
            raise ValidationError(f"Unsupported content type: {content_type}", field_name="contentType")

        existing = self.post_repo.find_posted(content_id, platform, language)
        if existing:
            return PublishResult(platform=platform, success=True, post_id=existing.platform_post_id,
                                 post_url=existing.platform_post_url, skipped=True)

        publisher: LinkedInPublisher = self.publishers[platform]
        post_id = self.post_repo.create_pending(content_id, platform, language, content_type)
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None,
                publisher.post_article,
                content["title"],
                content["description"],
                content["url"],
                image_url,
            )
        except Exception as e:
            message = getattr(e, "message", str(e))
            self.post_repo.mark_failed(post_id, message)
            return PublishResult(platform=platform, success=False, error=message)

        self.post_repo.mark_posted(post_id, result.post_id, result.post_url)
        return result
