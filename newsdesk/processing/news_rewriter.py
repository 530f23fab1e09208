"""
News Rewriter
=============

Rewrites an approved news record into English, Norwegian and Ukrainian,
appends a localized source link, generates slugs and publishes the
record.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..ai.azure_client import AzureOpenAIClient, extract_json
from ..ai.prompts import render_prompt
from ..config.settings import get_settings
from ..database.models import LANGUAGES
from ..storage.news_repository import NewsRepository
from ..storage.prompt_repository import PromptRepository, PromptType
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import AIError, ErrorCode, ProcessingError, ResourceNotFound
from ..utils.slugs import generate_slug
from ..utils.validators import URLValidator

REWRITER_SYSTEM_PROMPT = """You are a professional content writer and translator. You MUST return ONLY valid JSON with this EXACT structure:
{
  "en": { "title": "...", "content": "...", "description": "..." },
  "no": { "title": "...", "content": "...", "description": "..." },
  "ua": { "title": "...", "content": "...", "description": "..." },
  "tags": ["tag1", "tag2", "tag3"]
}

CRITICAL: The JSON MUST have "en", "no", and "ua" keys at the top level. Each must contain "title", "content", and "description"."""

SOURCE_LINK_HEADERS = {
    "en": "Read more",
    "no": "Les mer",
    "ua": "Детальніше",
}


def format_source_link(content: str, header: str, url: Optional[str]) -> str:
    """Append a markdown source link below ``content``."""
    if not url:
        return content
    host = URLValidator.display_host(url)
    label = host or "Source"
    return f"{content}\n\n**{header}:** [{label}]({url})"


@dataclass
class RewriteResult:
    """Outcome of a rewrite."""
    news_id: str
    translations: Dict[str, Dict[str, Any]]
    tags: List[str] = field(default_factory=list)

    @property
    def slugs(self) -> Dict[str, str]:
        return {language: data["slug"] for language, data in self.translations.items()}


class NewsRewriter:
    """Multilingual rewrite and publish step."""

    def __init__(
        self,
        news_repo: NewsRepository,
        prompt_repo: PromptRepository,
        ai_client: Optional[AzureOpenAIClient] = None,
    ):
        self.news_repo = news_repo
        self.prompt_repo = prompt_repo
        self.ai_client = ai_client or AzureOpenAIClient()
        self.settings = get_settings()
        self.logger = get_logger_for_component("news_rewriter")

    async def rewrite(
        self,
        news_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
        url: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> RewriteResult:
        """Rewrite and publish a news record.

        Args:
            news_id: News record to publish
            title: Override for the stored original title
            content: Override for the stored original content
            url: Source URL when the record has none
            image_url: Image to attach; the stored image is kept when None

        Returns:
            RewriteResult with the stored translations

        Raises:
            ResourceNotFound: If the record does not exist
            ProcessingError: If no rewrite prompt is configured
            AIError: If the model fails or omits required languages
        """
        news = self.news_repo.get_by_id(news_id)
        if news is None:
            raise ResourceNotFound("News record not found", resource_id=news_id)

        title = title or news.original_title
        content = content or news.original_content or ""
        source_url = news.rss_source_url or news.original_url or url

        prompt = self.prompt_repo.get_active(PromptType.NEWS_REWRITE)
        if prompt is None:
            raise ProcessingError(
                "No news rewrite prompt configured",
                news_id=news_id,
                error_code=ErrorCode.PROMPT_MISSING,
            )

        if not self.ai_client.is_configured:
            raise AIError("Azure OpenAI not configured", error_code=ErrorCode.AI_NOT_CONFIGURED)

        user_prompt = render_prompt(
            prompt.prompt_text,
            title=title,
            content=content[:self.settings.limits.rewrite_content_chars],
            url=source_url or "",
        )

        completion = await self.ai_client.complete(
            REWRITER_SYSTEM_PROMPT, user_prompt, temperature=0.5, max_tokens=6000
        )
        data = extract_json(completion.content)

        missing_languages = [lang for lang in LANGUAGES if not isinstance(data.get(lang), dict)]
        if missing_languages:
            self.logger.error(f"Rewrite response missing languages: {missing_languages}")
            raise AIError(
                "AI response missing required language fields",
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        missing_titles = [lang for lang in LANGUAGES if not data[lang].get("title")]
        if missing_titles:
            raise AIError(
                f"AI response missing titles for: {', '.join(missing_titles)}",
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        tags = data.get("tags") or data["en"].get("tags") or []
        if not isinstance(tags, list):
            tags = [str(tags)]

        translations = {}
        for language in LANGUAGES:
            localized = data[language]
            translations[language] = {
                "title": localized["title"],
                "content": format_source_link(
                    localized.get("content") or "", SOURCE_LINK_HEADERS[language], source_url
                ),
                "description": localized.get("description") or "",
                "slug": generate_slug(localized["title"], language, news_id),
            }

        self.news_repo.publish_rewrite(news_id, translations, [str(tag) for tag in tags], image_url)

        if prompt.id is not None:
            self.prompt_repo.increment_usage(prompt.id)

        self.logger.info(f"Rewrote and published news {news_id}: {translations['en']['slug']}")
        return RewriteResult(news_id=news_id, translations=translations, tags=[str(tag) for tag in tags])
