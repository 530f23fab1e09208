"""
Newsdesk Configuration System
=============================

Settings are read from ``NEWSDESK_*`` environment variables and an
optional ``.env`` file. Nested groups use a double underscore, e.g.
``NEWSDESK_TELEGRAM__BOT_TOKEN`` or ``NEWSDESK_PROCESSING__STALE_AFTER_HOURS``.
"""

import re
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..utils.exceptions import ConfigurationError, ErrorCode

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# <numeric bot id>:<secret>, as issued by BotFather
BOT_TOKEN_PATTERN = re.compile(r"^\d+:[\w-]{20,}$")


class ProcessingSettings(BaseModel):
    """Ingestion, analysis and moderation pipeline configuration."""
    fetch_lookback_hours: int = Field(default=24, ge=1, le=720, description="Window used when a source was never fetched")
    source_delay_seconds: float = Field(default=2.0, ge=0.0, le=60.0, description="Pause between RSS sources")
    monitor_articles_per_source: int = Field(default=5, ge=1, le=50, description="Articles analyzed per monitored source")
    monitor_qualification_score: float = Field(default=5.0, ge=0.0, le=10.0, description="Minimum relevance score to qualify")
    article_delay_seconds: float = Field(default=0.1, ge=0.0, le=10.0, description="Pause between analyzed articles")
    telegram_delay_seconds: float = Field(default=0.3, ge=0.0, le=10.0, description="Pause between Telegram sends")
    stale_after_hours: int = Field(default=48, ge=1, le=720, description="Hours before approved news is auto-rejected")
    duplicate_lookback_days: int = Field(default=30, ge=1, le=365, description="Days of news compared for duplicates")
    duplicate_candidate_limit: int = Field(default=100, ge=1, le=1000, description="Recent news rows compared for duplicates")


class LimitsSettings(BaseModel):
    """Request limits and content caps."""
    request_timeout: int = Field(default=30, ge=5, le=300, description="HTTP request timeout in seconds")
    contact_rate_limit: int = Field(default=3, ge=1, le=100, description="Contact submissions allowed per window")
    contact_rate_window_seconds: int = Field(default=600, ge=10, le=86400, description="Contact rate limit window")
    contact_min_fill_ms: int = Field(default=3000, ge=0, le=60000, description="Forms submitted faster are treated as bots")
    analysis_content_chars: int = Field(default=4000, ge=500, le=50000, description="Article text sent for analysis")
    rewrite_content_chars: int = Field(default=6000, ge=500, le=50000, description="Article text sent for rewriting")
    stored_content_chars: int = Field(default=10000, ge=1000, le=100000, description="Article text stored per news row")


class DatabaseSettings(BaseModel):
    """SQLite file and pool."""
    path: str = Field(default="data/newsdesk.db", description="SQLite database file path")
    pool_size: int = Field(default=5, ge=1, le=20, description="Idle connections kept open")


class LoggingSettings(BaseModel):
    """Console and rotating file logging."""
    level: LogLevel = Field(default="INFO", description="Level for newsdesk loggers")
    file_path: Optional[str] = Field(default="logs/newsdesk.log", description="JSON lines log file; empty disables it")
    max_file_size_mb: int = Field(default=10, ge=1, le=100, description="Rotate the log file at this size")
    backup_count: int = Field(default=5, ge=1, le=20, description="Rotated log files to keep")
    structured_logging: bool = Field(default=False, description="JSON lines on the console instead of rich output")
    console_logging: bool = Field(default=True, description="Log to the terminal")

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, level):
        return level.upper() if isinstance(level, str) else level


class TelegramSettings(BaseModel):
    """Telegram moderation bot configuration."""
    bot_token: Optional[str] = Field(default=None, description="Telegram bot token")
    chat_id: Optional[str] = Field(default=None, description="Moderation chat ID")
    webhook_secret: Optional[str] = Field(default=None, description="Expected X-Telegram-Bot-Api-Secret-Token header")

    @field_validator("bot_token")
    @classmethod
    def check_bot_token(cls, token: Optional[str]) -> Optional[str]:
        # "_test" tokens are accepted for local runs and the test suite
        if token is None or token.endswith("_test") or BOT_TOKEN_PATTERN.match(token):
            return token
        raise ValueError("Invalid bot token format")

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)


class AzureOpenAISettings(BaseModel):
    """Azure OpenAI chat completion configuration."""
    endpoint: Optional[str] = Field(default=None, description="Azure OpenAI resource endpoint")
    api_key: Optional[str] = Field(default=None, description="Azure OpenAI API key")
    api_version: str = Field(default="2024-02-15-preview", description="Azure OpenAI API version")
    moderation_deployment: str = Field(default="gpt-4", description="Deployment used for pre-moderation")
    analysis_deployment: str = Field(default="gpt-4.1-mini", description="Deployment used for analysis and rewriting")

    @property
    def is_configured(self) -> bool:
        return bool(self.endpoint and self.api_key)


class SocialSettings(BaseModel):
    """Cross-posting credentials for social platforms."""
    site_url: str = Field(default="https://vitalii.no", description="Public site used for article links")
    linkedin_access_token: Optional[str] = Field(default=None, description="LinkedIn OAuth access token")
    linkedin_person_urn: Optional[str] = Field(default=None, description="LinkedIn author URN")
    facebook_page_id: Optional[str] = Field(default=None, description="Facebook page ID")
    facebook_page_access_token: Optional[str] = Field(default=None, description="Facebook page access token")
    facebook_api_version: str = Field(default="v18.0", description="Graph API version")
    youtube_client_id: Optional[str] = Field(default=None, description="YouTube OAuth client ID")
    youtube_client_secret: Optional[str] = Field(default=None, description="YouTube OAuth client secret")
    youtube_refresh_token: Optional[str] = Field(default=None, description="YouTube OAuth refresh token")
    max_retries: int = Field(default=3, ge=0, le=10, description="HTTP retries for platform APIs")

    def configured_platforms(self) -> List[str]:
        """List platforms with complete credentials."""
        platforms = []
        if self.linkedin_access_token and self.linkedin_person_urn:
            platforms.append("linkedin")
        if self.facebook_page_id and self.facebook_page_access_token:
            platforms.append("facebook")
        if self.youtube_client_id and self.youtube_client_secret and self.youtube_refresh_token:
            platforms.append("youtube")
        return platforms


class EmailSettings(BaseModel):
    """Contact form email delivery."""
    resend_api_key: Optional[str] = Field(default=None, description="Resend API key")
    admin_email: str = Field(default="berbeha@vitalii.no", description="Recipient of contact messages")
    from_address: str = Field(default="Vitalii.no Contact <noreply@vitalii.no>", description="Sender address")


class NewsdeskSettings(BaseSettings):
    """All newsdesk settings, grouped by concern."""

    model_config = SettingsConfigDict(
        env_prefix="NEWSDESK_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="Newsdesk", description="Name shown in the API docs and logs")
    version: str = Field(default="1.0.0", description="Reported by /health")
    debug: bool = Field(default=False, description="Force DEBUG logging")
    cors_origins: List[str] = Field(default=["*"], description="Origins allowed to call the API")

    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    azure: AzureOpenAISettings = Field(default_factory=AzureOpenAISettings)
    social: SocialSettings = Field(default_factory=SocialSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)

    def validate_configuration(self) -> None:
        """Check settings that depend on each other and create data directories.

        Raises:
            ConfigurationError: listing every problem found
        """
        problems = []

        if self.telegram.bot_token and not self.telegram.chat_id:
            problems.append("Telegram chat_id is required when bot_token is set")
        if bool(self.azure.endpoint) != bool(self.azure.api_key):
            problems.append("Azure OpenAI needs both endpoint and api_key")

        directories = {"database path": self.database.path, "log file path": self.logging.file_path}
        for label, file_path in directories.items():
            if not file_path:
                continue
            try:
                Path(file_path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                problems.append(f"Invalid {label}: {e}")

        if problems:
            raise ConfigurationError(
                "Configuration validation failed: " + "; ".join(problems),
                error_code=ErrorCode.CONFIG_INVALID,
            )

    def get_effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.logging.level


def load_settings() -> NewsdeskSettings:
    """Read ``.env`` and the environment into validated settings."""
    from dotenv import load_dotenv

    load_dotenv()

    try:
        settings = NewsdeskSettings()
    except ValidationError as e:
        raise ConfigurationError(f"Failed to initialize settings: {e}", error_code=ErrorCode.CONFIG_INVALID) from e

    settings.validate_configuration()
    return settings


_settings: Optional[NewsdeskSettings] = None


def get_settings(reload: bool = False) -> NewsdeskSettings:
    """Process-wide settings, loaded on first use or when ``reload`` is set."""
    global _settings

    if reload or _settings is None:
        _settings = load_settings()

    return _settings
