"""
RSS Article Analyzer
====================

Reads a full article, asks the analysis model for a summary, relevance
score and recommendation, stores the result as a news record and offers
publish-worthy articles to the moderation chat.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..ai.azure_client import AzureOpenAIClient, extract_json
from ..ai.prompts import render_prompt
from ..config.settings import get_settings
from ..database.models import ArticleAnalysis, ModerationStatus, News, SourceType
from ..delivery.message_formatter import MessageFormatter
from ..delivery.telegram_notifier import TelegramNotifier
from ..ingestion.article_extractor import ArticleExtractor
from ..storage.news_repository import NewsRepository
from ..storage.prompt_repository import PromptRepository, PromptType
from ..utils.logging import get_logger_for_component, PerformanceLogger
from ..utils.exceptions import AIError, ErrorCode, ProcessingError

ANALYST_SYSTEM_PROMPT = (
    "You are a news analyst. Analyze articles and respond ONLY with valid JSON."
)
MIN_EXTRACTED_CHARS = 100


class AnalysisRequest(BaseModel):
    """Article to analyze. Accepts camelCase keys from HTTP callers."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str = Field(..., min_length=1)
    source_id: Optional[int] = None
    source_name: str = "RSS Feed"
    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    skip_telegram: bool = False


@dataclass
class AnalysisOutcome:
    """Result of analyzing one article."""
    success: bool
    news_id: Optional[str] = None
    analysis: Optional[ArticleAnalysis] = None
    error: Optional[str] = None
    already_exists: bool = False
    telegram_message_id: Optional[int] = None

    @property
    def relevance_score(self) -> float:
        return self.analysis.relevance_score if self.analysis else 0.0


class ArticleAnalyzer:
    """AI analysis of RSS articles."""

    def __init__(
        self,
        news_repo: NewsRepository,
        prompt_repo: PromptRepository,
        extractor: Optional[ArticleExtractor] = None,
        ai_client: Optional[AzureOpenAIClient] = None,
        notifier: Optional[TelegramNotifier] = None,
        formatter: Optional[MessageFormatter] = None,
    ):
        self.news_repo = news_repo
        self.prompt_repo = prompt_repo
        self.extractor = extractor or ArticleExtractor()
        self.ai_client = ai_client or AzureOpenAIClient()
        self.notifier = notifier or TelegramNotifier()
        self.formatter = formatter or MessageFormatter()
        self.settings = get_settings()
        self.logger = get_logger_for_component("article_analyzer")

    async def analyze(self, request: AnalysisRequest) -> AnalysisOutcome:
        """Analyze and store one article.

        Args:
            request: Article URL and feed metadata

        Returns:
            AnalysisOutcome; known articles and unreadable pages are reported
            with ``success=False``

        Raises:
            ProcessingError: If no analysis prompt is configured
            AIError: If the model is unavailable or its reply is unusable
            ContentExtractionError: If the page cannot be downloaded
            DatabaseError: If the record cannot be stored
        """
        existing = self.news_repo.find_by_url(request.url)
        if existing:
            self.logger.info(f"Article already exists: {request.url}")
            return AnalysisOutcome(
                success=False,
                news_id=existing.id,
                error="Article already exists",
                already_exists=True,
                telegram_message_id=existing.telegram_message_id,
            )

        article = await self.extractor.extract(request.url)
        if len(article.content) < MIN_EXTRACTED_CHARS:
            self.logger.warning(f"Could not extract sufficient content from {request.url}")
            return AnalysisOutcome(success=False, error="Could not extract article content")

        prompt = self.prompt_repo.get_active(PromptType.RSS_ARTICLE_ANALYSIS)
        if prompt is None:
            raise ProcessingError(
                "No RSS analysis prompt configured", error_code=ErrorCode.PROMPT_MISSING
            )

        if not self.ai_client.is_configured:
            raise AIError("Azure OpenAI not configured", error_code=ErrorCode.AI_NOT_CONFIGURED)

        title = request.title or article.title or "No title"
        limits = self.settings.limits
        user_prompt = render_prompt(
            prompt.prompt_text,
            title=title,
            url=request.url,
            content=article.content[:limits.analysis_content_chars],
            description=request.description or "",
            source=request.source_name,
        )

        with PerformanceLogger(self.logger, "article analysis", url=request.url):
            completion = await self.ai_client.complete(
                ANALYST_SYSTEM_PROMPT, user_prompt, temperature=0.3, max_tokens=1000
            )

        try:
            analysis = ArticleAnalysis.model_validate(extract_json(completion.content))
        except PydanticValidationError as e:
            raise AIError(
                f"Invalid analysis structure: {e}", error_code=ErrorCode.AI_INVALID_RESPONSE
            ) from e

        is_skip = analysis.recommended_action == "skip"
        news = News(
            original_title=title,
            original_content=article.content[:limits.stored_content_chars],
            original_url=request.url,
            rss_source_url=request.url,
            source_id=request.source_id,
            source_type=SourceType.RSS,
            image_url=request.image_url or article.image_url,
            rss_analysis=analysis,
            pre_moderation_status=ModerationStatus.REJECTED if is_skip else ModerationStatus.PENDING,
            rejection_reason=analysis.skip_reason if is_skip else None,
        )
        self.news_repo.create(news)

        if prompt.id is not None:
            self.prompt_repo.increment_usage(prompt.id)

        self.logger.info(
            f"Analyzed {request.url}: score {analysis.relevance_score}, "
            f"action {analysis.recommended_action}"
        )

        outcome = AnalysisOutcome(success=True, news_id=news.id, analysis=analysis)

        if analysis.recommended_action == "publish" and not request.skip_telegram:
            sent = await self.notifier.send_message(
                self.formatter.format_analysis(news, request.source_name),
                reply_markup=self.formatter.analysis_keyboard(news.id, news.image_url),
            )
            if sent.success and sent.message_id:
                self.news_repo.set_telegram_message_id(news.id, sent.message_id)
                outcome.telegram_message_id = sent.message_id

        return outcome
