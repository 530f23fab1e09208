"""
Newsdesk Data Models
====================

Pydantic models for the rows stored in SQLite and for the structured AI
responses parsed during moderation, analysis and rewriting.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, Field, field_validator
import json
import uuid

LANGUAGES = ("en", "no", "ua")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as a sortable UTC ISO string."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


class ModerationStatus(str, Enum):
    """Moderation lifecycle of a news record."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUBLISHED = "published"


class SourceType(str, Enum):
    RSS = "rss"
    TELEGRAM = "telegram"
    MANUAL = "manual"


class PostStatus(str, Enum):
    """Cross-posting state of a social media post."""
    PENDING = "pending"
    POSTED = "posted"
    FAILED = "failed"


class SocialPlatform(str, Enum):
    LINKEDIN = "linkedin"
    FACEBOOK = "facebook"
    YOUTUBE = "youtube"


class NewsSource(BaseModel):
    """RSS or Telegram source polled for new articles."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    name: str = Field(..., min_length=1, max_length=255)
    url: Optional[str] = Field(default=None, description="Homepage of the source")
    rss_url: Optional[str] = Field(default=None, description="Feed URL")
    source_type: SourceType = Field(default=SourceType.RSS)
    tier: int = Field(default=1, ge=1, le=10, description="Monitoring priority, lower first")
    is_active: bool = Field(default=True)
    last_fetched_at: Optional[datetime] = Field(default=None)
    created_at: Optional[datetime] = Field(default_factory=utc_now)

    def __str__(self) -> str:
        return f"NewsSource({self.name})"


class ArticleAnalysis(BaseModel):
    """AI assessment of an RSS article."""
    summary: str = Field(default="")
    relevance_score: float = Field(default=0.0)
    category: str = Field(default="other")
    key_points: List[str] = Field(default_factory=list)
    recommended_action: Literal["publish", "skip", "needs_review"] = Field(default="needs_review")
    skip_reason: Optional[str] = Field(default=None)

    @field_validator('relevance_score')
    @classmethod
    def clamp_score(cls, v):
        """Keep relevance within the 0-10 scale."""
        return max(0.0, min(10.0, float(v)))

    @field_validator('key_points', mode='before')
    @classmethod
    def coerce_key_points(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(point) for point in v]


class ModerationResult(BaseModel):
    """Outcome of AI pre-moderation."""
    approved: bool
    reason: str = Field(default="")
    is_advertisement: bool = Field(default=False)
    is_duplicate: bool = Field(default=False)
    quality_score: float = Field(default=5.0)


class News(BaseModel):
    """News record moving through ingestion, moderation and publishing."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    original_title: str = Field(..., min_length=1)
    original_content: Optional[str] = Field(default=None)
    original_url: Optional[str] = Field(default=None)
    rss_source_url: Optional[str] = Field(default=None)
    source_id: Optional[int] = Field(default=None)
    source_type: SourceType = Field(default=SourceType.RSS)
    image_url: Optional[str] = Field(default=None)
    video_url: Optional[str] = Field(default=None)
    video_type: Optional[str] = Field(default=None)
    rss_analysis: Optional[ArticleAnalysis] = Field(default=None)
    pre_moderation_status: ModerationStatus = Field(default=ModerationStatus.PENDING)
    rejection_reason: Optional[str] = Field(default=None)
    moderation_checked_at: Optional[datetime] = Field(default=None)
    telegram_message_id: Optional[int] = Field(default=None)

    title_en: Optional[str] = None
    title_no: Optional[str] = None
    title_ua: Optional[str] = None
    content_en: Optional[str] = None
    content_no: Optional[str] = None
    content_ua: Optional[str] = None
    description_en: Optional[str] = None
    description_no: Optional[str] = None
    description_ua: Optional[str] = None
    slug_en: Optional[str] = None
    slug_no: Optional[str] = None
    slug_ua: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    is_rewritten: bool = Field(default=False)
    is_published: bool = Field(default=False)
    published_at: Optional[datetime] = Field(default=None)
    created_at: Optional[datetime] = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = Field(default_factory=utc_now)

    @property
    def display_title(self) -> str:
        return self.title_en or self.original_title

    def localized(self, language: str) -> Dict[str, Optional[str]]:
        """Title, description and slug for one language, falling back to English."""
        return {
            "title": getattr(self, f"title_{language}", None) or self.title_en or self.original_title,
            "description": getattr(self, f"description_{language}", None) or self.description_en or "",
            "slug": getattr(self, f"slug_{language}", None) or self.slug_en,
        }

    @classmethod
    def from_db_row(cls, row: Dict[str, Any]) -> "News":
        """Create News from database row with JSON parsing."""
        data = dict(row)
        if isinstance(data.get('rss_analysis'), str):
            data['rss_analysis'] = json.loads(data['rss_analysis'])
        if isinstance(data.get('tags'), str):
            data['tags'] = json.loads(data['tags'])
        elif data.get('tags') is None:
            data['tags'] = []
        return cls(**data)

    def __str__(self) -> str:
        return f"News({self.id[:8]}: {self.original_title[:50]})"


class BlogPost(BaseModel):
    """Long-form post that can also be cross-posted."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title_en: str = Field(..., min_length=1)
    title_no: Optional[str] = None
    title_ua: Optional[str] = None
    description_en: Optional[str] = None
    description_no: Optional[str] = None
    description_ua: Optional[str] = None
    content_en: Optional[str] = None
    slug_en: Optional[str] = None
    slug_no: Optional[str] = None
    slug_ua: Optional[str] = None
    is_published: bool = Field(default=False)
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = Field(default_factory=utc_now)

    def localized(self, language: str) -> Dict[str, Optional[str]]:
        return {
            "title": getattr(self, f"title_{language}", None) or self.title_en,
            "description": getattr(self, f"description_{language}", None) or self.description_en or "",
            "slug": getattr(self, f"slug_{language}", None) or self.slug_en,
        }


class AIPrompt(BaseModel):
    """Editable prompt template stored in the database."""
    id: Optional[int] = None
    name: str = Field(..., min_length=1)
    prompt_type: str = Field(..., min_length=1)
    prompt_text: str = Field(..., min_length=1)
    is_active: bool = Field(default=True)
    usage_count: int = Field(default=0, ge=0)
    created_at: Optional[datetime] = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = Field(default_factory=utc_now)


class SocialMediaPost(BaseModel):
    """One cross-post of a news item or blog post to a platform."""
    id: Optional[int] = None
    content_id: str
    content_type: Literal["news", "blog"] = "news"
    platform: SocialPlatform
    language: str = "en"
    status: PostStatus = PostStatus.PENDING
    platform_post_id: Optional[str] = None
    platform_post_url: Optional[str] = None
    error_message: Optional[str] = None
    posted_at: Optional[datetime] = None
    created_at: Optional[datetime] = Field(default_factory=utc_now)


class ContactForm(BaseModel):
    """Stored contact form submission."""
    id: Optional[int] = None
    name: str
    email: str
    subject: Optional[str] = None
    message: str
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = Field(default_factory=utc_now)
