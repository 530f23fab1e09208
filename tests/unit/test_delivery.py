"""
Unit tests for moderation message formatting and the Telegram notifier.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.error import TelegramError as BotApiError

from newsdesk.config.settings import TelegramSettings
from newsdesk.database.models import ArticleAnalysis, News
from newsdesk.delivery.message_formatter import (
    MessageFormatter,
    format_score,
    relevance_emoji,
)
from newsdesk.delivery.telegram_notifier import TelegramNotifier
from newsdesk.ingestion.rss_parser import RSSItem
from newsdesk.utils.exceptions import ErrorCode, TelegramError


class TestScoreHelpers:
    """Test score presentation."""

    def test_relevance_emoji_thresholds(self):
        assert relevance_emoji(8) == '🟢'
        assert relevance_emoji(7) == '🟢'
        assert relevance_emoji(5) == '🟡'
        assert relevance_emoji(4.9) == '🔴'

    def test_format_score(self):
        assert format_score(8.0) == "8"
        assert format_score(7.5) == "7.5"


class TestMessageFormatter:
    """Test moderation message layouts."""

    @pytest.fixture
    def formatter(self):
        return MessageFormatter()

    def test_fetched_article(self, formatter):
        item = RSSItem(
            title="Chips & <models>",
            url="https://techdaily.example/chips",
            description="x" * 600,
            pub_date=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
        )

        text = formatter.format_fetched_article(item, "Tech Daily")

        assert "<b>Title:</b> Chips &amp; &lt;models&gt;" in text
        assert "x" * 500 + "..." in text
        assert "x" * 501 not in text
        assert "<i>Published:</i> 2024-05-01T12:00:00+00:00" in text
        assert text.endswith("Waiting for moderation...</i>")

    def test_fetched_article_without_date(self, formatter):
        item = RSSItem(title="T", url="https://a.example")
        assert "<i>Published:</i> Unknown" in formatter.format_fetched_article(item, "A")

    def test_analysis_message(self, formatter, sample_news):
        sample_news.rss_analysis.key_points = ["First", "Second"]

        text = formatter.format_analysis(sample_news, "Tech Daily")

        assert text.startswith("📰 <b>RSS Article Analysis</b>")
        assert "📌 <b>Source:</b> Tech Daily" in text
        assert "🟢 <b>Relevance:</b> 8/10" in text
        assert "📁 <b>Category:</b> 🤖 AI Research" in text
        assert "• First\n• Second" in text
        assert "🎯 <b>Recommendation:</b> PUBLISH" in text
        assert "🖼️ <b>Image:</b> ✅ Ready" in text
        assert text.endswith(f"newsId:{sample_news.id}")

    def test_analysis_message_without_image(self, formatter):
        news = News(
            original_title="Untitled piece",
            original_url="https://a.example/x",
            rss_analysis=ArticleAnalysis(
                relevance_score=3, category="gadgets", recommended_action="skip", skip_reason="Too niche"
            ),
        )

        text = formatter.format_analysis(news, "A")

        assert "⚠️ <b>Image:</b> Not found" in text
        assert "🔴 <b>Relevance:</b> 3/10" in text
        assert "📁 <b>Category:</b> gadgets" in text
        assert "ℹ️ Too niche" in text

    def test_analysis_link_attribute_escaped(self, formatter):
        news = News(
            original_title="Quotes & links",
            original_url='https://a.example/search?q="ai"&page=2',
            rss_analysis=ArticleAnalysis(relevance_score=6, category="ai_research", recommended_action="publish"),
        )

        text = formatter.format_analysis(news, "A")

        assert '<a href="https://a.example/search?q=&quot;ai&quot;&amp;page=2">Quotes &amp; links</a>' in text

    def test_auto_publish_notice(self, formatter, sample_news):
        text = formatter.format_auto_publish_notice(sample_news)
        assert "Auto-publishing" in text
        assert "📊 Score: 8/10" in text

    def test_moderation_keyboard(self, formatter):
        keyboard = formatter.moderation_keyboard("abc")
        data = [button.callback_data for button in keyboard.inline_keyboard[0]]
        assert data == ["publish_abc", "reject_abc"]

    def test_analysis_keyboard_depends_on_image(self, formatter):
        with_image = formatter.analysis_keyboard("abc", "https://a.example/i.jpg")
        without_image = formatter.analysis_keyboard("abc", None)

        assert [b.callback_data for b in with_image.inline_keyboard[0]] == ["confirm_rss_image_abc", "reject_abc"]
        assert [b.callback_data for b in without_image.inline_keyboard[0]] == ["publish_abc", "reject_abc"]


class TestTelegramNotifier:
    """Test Bot API calls."""

    @pytest.fixture
    def bot(self):
        bot = MagicMock()
        bot.send_message = AsyncMock(return_value=MagicMock(message_id=77))
        bot.answer_callback_query = AsyncMock()
        bot.edit_message_text = AsyncMock()
        return bot

    @pytest.fixture
    def notifier(self, bot):
        return TelegramNotifier(bot=bot, settings=TelegramSettings(chat_id="-100123"))

    def test_not_configured_without_chat(self, bot):
        notifier = TelegramNotifier(bot=bot, settings=TelegramSettings())

        assert not notifier.is_configured
        with pytest.raises(TelegramError) as exc_info:
            notifier.require_configured()
        assert exc_info.value.error_code == ErrorCode.TELEGRAM_NOT_CONFIGURED

    @pytest.mark.asyncio
    async def test_send_message(self, notifier, bot):
        result = await notifier.send_message("<b>Hi</b>")

        assert result.success
        assert result.message_id == 77
        kwargs = bot.send_message.call_args.kwargs
        assert kwargs["chat_id"] == "-100123"
        assert kwargs["parse_mode"] == "HTML"

    @pytest.mark.asyncio
    async def test_send_failure_reported(self, notifier, bot):
        bot.send_message.side_effect = BotApiError("Chat not found")

        result = await notifier.send_message("Hi")

        assert not result.success
        assert "Chat not found" in result.error

    @pytest.mark.asyncio
    async def test_unconfigured_send_skipped(self, bot):
        notifier = TelegramNotifier(bot=bot, settings=TelegramSettings())

        result = await notifier.send_message("Hi")

        assert not result.success
        bot.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_append_to_message(self, notifier, bot):
        await notifier.append_to_message(-100123, 5, "Original", "\n\nDone")

        kwargs = bot.edit_message_text.call_args.kwargs
        assert kwargs["text"] == "Original\n\nDone"
        assert kwargs["message_id"] == 5

    @pytest.mark.asyncio
    async def test_edit_failures_are_logged_only(self, notifier, bot):
        bot.edit_message_text.side_effect = BotApiError("Message is not modified")
        bot.answer_callback_query.side_effect = BotApiError("Query is too old")

        await notifier.append_to_message(-100123, 5, "Original", "")
        await notifier.answer_callback("q1", "Done")
