"""
Moderation Message Formatter
============================

Builds the HTML messages and inline keyboards sent to the moderation chat.
"""

from typing import Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

from ..database.models import ArticleAnalysis, News
from ..ingestion.rss_parser import RSSItem
from ..utils.validators import escape_html, truncate

CATEGORY_LABELS = {
    'tech_product': '💻 Tech Product',
    'marketing_campaign': '📢 Marketing',
    'ai_research': '🤖 AI Research',
    'business_news': '💼 Business',
    'science': '🔬 Science',
    'lifestyle': '🌟 Lifestyle',
    'other': '📰 Other',
}

PUBLISHED_MARK = "\n\n✅ <b>PUBLISHED</b>"
REJECTED_MARK = "\n\n❌ <b>REJECTED</b>"


def relevance_emoji(score: float) -> str:
    if score >= 7:
        return '🟢'
    if score >= 5:
        return '🟡'
    return '🔴'


def format_score(score: float) -> str:
    return f"{score:g}"


class MessageFormatter:
    """Formats news for the Telegram moderation workflow."""

    DESCRIPTION_PREVIEW_CHARS = 500
    TITLE_PREVIEW_CHARS = 100

    def format_fetched_article(self, item: RSSItem, source_name: str) -> str:
        """Message for an article picked up by the scheduled RSS fetch."""
        published = item.pub_date.isoformat() if item.pub_date else 'Unknown'
        description = truncate(item.description, self.DESCRIPTION_PREVIEW_CHARS)
        return (
            "🆕 <b>New Article from RSS Feed</b>\n\n"
            f"<b>Source:</b> {escape_html(source_name)}\n"
            f"<b>Title:</b> {escape_html(item.title)}\n\n"
            "<b>Description:</b>\n"
            f"{escape_html(description)}\n\n"
            f"<b>URL:</b> {escape_html(item.url)}\n\n"
            f"<i>Published:</i> {published}\n\n"
            "⏳ <i>Waiting for moderation...</i>"
        )

    def format_analysis(self, news: News, source_name: str) -> str:
        """Message presenting the AI analysis of an RSS article.

        Args:
            news: News record with ``rss_analysis`` set
            source_name: Display name of the feed

        Returns:
            HTML message text
        """
        analysis: ArticleAnalysis = news.rss_analysis
        url = news.original_url or news.rss_source_url or ""
        title = truncate(news.original_title or 'No title', self.TITLE_PREVIEW_CHARS, suffix='')
        key_points = "\n".join(f"• {point}" for point in analysis.key_points)
        category = CATEGORY_LABELS.get(analysis.category, analysis.category)

        if news.image_url:
            image_status = f"\n\n🖼️ <b>Image:</b> ✅ Ready\n{escape_html(news.image_url)}"
        else:
            image_status = "\n\n⚠️ <b>Image:</b> Not found"

        skip_reason = f"ℹ️ {escape_html(analysis.skip_reason)}" if analysis.skip_reason else ""

        return (
            "📰 <b>RSS Article Analysis</b>\n\n"
            f"📌 <b>Source:</b> {escape_html(source_name)}\n"
            f"🔗 <a href=\"{escape_html(url, quote=True)}\">{escape_html(title)}</a>\n\n"
            "📋 <b>Summary:</b>\n"
            f"{escape_html(analysis.summary)}\n\n"
            f"{relevance_emoji(analysis.relevance_score)} <b>Relevance:</b> "
            f"{format_score(analysis.relevance_score)}/10\n"
            f"📁 <b>Category:</b> {escape_html(category)}\n\n"
            "<b>Key Points:</b>\n"
            f"{escape_html(key_points)}\n\n"
            f"🎯 <b>Recommendation:</b> {analysis.recommended_action.upper()}\n"
            f"{skip_reason}{image_status}\n\n"
            f"newsId:{news.id}"
        )

    def format_auto_publish_notice(self, news: News) -> str:
        score = news.rss_analysis.relevance_score if news.rss_analysis else 0
        title = truncate(news.original_title or 'Untitled', 150, suffix='')
        return (
            "🤖 <b>Auto-publishing RSS article...</b>\n\n"
            f"📰 {escape_html(title)}\n"
            f"📊 Score: {format_score(score)}/10"
        )

    def moderation_keyboard(self, news_id: str) -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup([[
            InlineKeyboardButton("✅ Publish", callback_data=f"publish_{news_id}"),
            InlineKeyboardButton("❌ Reject", callback_data=f"reject_{news_id}"),
        ]])

    def analysis_keyboard(self, news_id: str, image_url: Optional[str]) -> InlineKeyboardMarkup:
        """Publish/skip buttons; articles with an image publish with that image."""
        if image_url:
            publish = InlineKeyboardButton(
                "✅ Publish with image", callback_data=f"confirm_rss_image_{news_id}"
            )
        else:
            publish = InlineKeyboardButton("✅ Publish", callback_data=f"publish_{news_id}")
        return InlineKeyboardMarkup([[
            publish,
            InlineKeyboardButton("❌ Skip", callback_data=f"reject_{news_id}"),
        ]])
