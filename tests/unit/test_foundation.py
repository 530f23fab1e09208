"""
Foundation Component Tests
==========================

Tests for configuration, exceptions, logging, slugs and input validators.
"""

import json
import logging
from unittest.mock import MagicMock

import pytest

from newsdesk.config.settings import NewsdeskSettings, SocialSettings, TelegramSettings, get_settings
from newsdesk.utils.exceptions import (
    ConfigurationError,
    ErrorCode,
    NewsdeskError,
    SocialPublishError,
    ValidationError,
    handle_exception,
)
from newsdesk.utils.logging import JsonLineFormatter, PerformanceLogger, get_logger_for_component
from newsdesk.utils.slugs import generate_slug, slugify, transliterate
from newsdesk.utils.validators import (
    ContactValidator,
    URLValidator,
    escape_html,
    sanitize_text,
    strip_html,
    truncate,
)


class TestSettings:
    """Test configuration loading and validation."""

    def test_environment_overrides(self):
        settings = get_settings()

        assert settings.debug is True
        assert settings.processing.source_delay_seconds == 0
        assert settings.telegram.webhook_secret == "test-webhook-secret"
        assert settings.database.path.endswith("newsdesk_test.db")

    def test_defaults(self):
        settings = NewsdeskSettings()

        assert settings.processing.stale_after_hours == 48
        assert settings.processing.monitor_qualification_score == 5.0
        assert settings.limits.contact_rate_limit == 3
        assert settings.azure.moderation_deployment == "gpt-4"

    def test_telegram_test_token_accepted(self):
        telegram = TelegramSettings(bot_token="123456:ABC-DEF_test", chat_id="-100123")
        assert telegram.is_configured

    def test_telegram_invalid_token_rejected(self):
        with pytest.raises(ValueError):
            TelegramSettings(bot_token="not-a-token")

    def test_configured_platforms(self):
        social = SocialSettings(
            linkedin_access_token="token",
            linkedin_person_urn="urn:li:person:abc",
            facebook_page_id="123",
        )
        assert social.configured_platforms() == ["linkedin"]

    def test_partial_azure_config_invalid(self):
        settings = NewsdeskSettings()
        settings.azure.endpoint = "https://example.openai.azure.com"
        settings.azure.api_key = None

        with pytest.raises(ConfigurationError) as exc_info:
            settings.validate_configuration()
        assert exc_info.value.error_code == ErrorCode.CONFIG_INVALID

    def test_effective_log_level_in_debug(self):
        assert get_settings().get_effective_log_level() == "DEBUG"


class TestExceptions:
    """Test exception hierarchy and helpers."""

    def test_error_string_includes_code(self):
        error = ValidationError("Bad input", field_name="email")

        assert str(error) == "[V002] Bad input"
        assert error.context["field_name"] == "email"
        assert isinstance(error, NewsdeskError)

    def test_to_dict(self):
        error = NewsdeskError("Boom", error_code=ErrorCode.DATABASE_ERROR, user_message="Try later")
        data = error.to_dict()

        assert data["error_type"] == "NewsdeskError"
        assert data["error_code"] == "D006"
        assert data["user_message"] == "Try later"

    def test_social_error_recoverable_by_status(self):
        assert SocialPublishError("oops", platform="youtube", status_code=503).recoverable
        assert not SocialPublishError("bad", platform="youtube", status_code=400).recoverable

    def test_handle_exception_wraps_generic_errors(self):
        logger = MagicMock()

        error = handle_exception(TimeoutError("read timed out"), logger, "fetch feed")

        assert error.error_code == ErrorCode.EXTERNAL_SERVICE_UNAVAILABLE
        assert error.context["operation"] == "fetch feed"
        assert error.context["original_exception_type"] == "TimeoutError"
        logger.error.assert_called_once()

    def test_handle_exception_passes_through_own_errors(self):
        original = ValidationError("bad", field_name="email")
        assert handle_exception(original, MagicMock(), "submit") is original

    def test_unknown_context_argument_rejected(self):
        with pytest.raises(TypeError):
            ValidationError("bad", platform="youtube")


class TestLogging:
    """Test component loggers and JSON log lines."""

    def test_context_lifted_to_top_level(self):
        logger = get_logger_for_component("news_fetcher", source="NRK")
        records = []
        handler = logging.Handler()
        handler.emit = records.append
        logger.logger.addHandler(handler)
        try:
            logger.bind(news_id="n1").warning("Fetched 3 items", extra={"items": 3})
        finally:
            logger.logger.removeHandler(handler)

        entry = json.loads(JsonLineFormatter().format(records[0]))

        assert entry["logger"] == "newsdesk.news_fetcher"
        assert entry["component"] == "news_fetcher"
        assert entry["source"] == "NRK"
        assert entry["news_id"] == "n1"
        assert entry["details"] == {"items": 3}
        assert "platform" not in entry

    def test_bind_keeps_original_context(self):
        logger = get_logger_for_component("social", platform="youtube")
        bound = logger.bind(news_id="n2", source=None)

        assert bound.extra == {"component": "social", "platform": "youtube", "news_id": "n2"}
        assert "news_id" not in logger.extra

    def test_performance_logger_reports_failure(self):
        logger = MagicMock()

        with pytest.raises(ValueError):
            with PerformanceLogger(logger, "article analysis", url="https://a.example"):
                raise ValueError("boom")

        logger.warning.assert_called_once()
        assert logger.warning.call_args.kwargs["extra"]["url"] == "https://a.example"
        logger.info.assert_not_called()


class TestSlugs:
    """Test slug generation for all languages."""

    def test_english_slug(self):
        assert slugify("Hello, World! AI in 2025") == "hello-world-ai-in-2025"

    def test_norwegian_transliteration(self):
        assert transliterate("Blåbær og øl", "no") == "Blaabaer og oel"
        assert slugify("Blåbær og øl", "no") == "blaabaer-og-oel"

    def test_ukrainian_transliteration(self):
        assert slugify("Нова модель", "ua") == "nova-model"

    def test_generate_slug_appends_id_prefix(self):
        slug = generate_slug("Breaking News", "en", "1a2b3c4d-aaaa-bbbb")
        assert slug == "breaking-news-1a2b3c4d"

    def test_generate_slug_empty_title(self):
        assert generate_slug("!!!", "en", "abcdef123456") == "abcdef12"

    def test_slug_length_capped(self):
        assert len(slugify("word " * 100)) <= 80


class TestValidators:
    """Test URL and text validators."""

    def test_validate_url_normalizes(self):
        url = URLValidator.validate_url("HTTPS://Example.COM/Path#frag")
        assert url == "https://example.com/Path"

    @pytest.mark.parametrize("url", ["", "ftp://example.com", "https://"])
    def test_validate_url_rejects(self, url):
        with pytest.raises(ValidationError):
            URLValidator.validate_url(url)

    def test_display_host_strips_www(self):
        assert URLValidator.display_host("https://www.theverge.com/a") == "theverge.com"
        assert URLValidator.display_host("not a url") is None

    def test_email_validation(self):
        assert ContactValidator.is_valid_email("user@example.com")
        assert not ContactValidator.is_valid_email("user@example")
        assert not ContactValidator.is_valid_email("")

    def test_require_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            ContactValidator.require_fields(name="Ola", email="  ", message="Hi")
        assert exc_info.value.context["field_name"] == "email"

    def test_html_helpers(self):
        assert strip_html("<p>Hello <b>there</b></p>") == "Hello there"
        assert escape_html("<b>&</b>") == "&lt;b&gt;&amp;&lt;/b&gt;"
        assert sanitize_text("<p>Tom &amp; Jerry\x07</p>", 7) == "Tom & J"

    def test_truncate(self):
        assert truncate("abcdef", 3) == "abc..."
        assert truncate("abc", 3) == "abc"
        assert truncate(None, 3) == ""
