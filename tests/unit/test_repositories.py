"""
Tests for Repository Components
===============================

Test suite for the news, source, prompt, settings, social post and
contact repositories against the session test database.
"""

from datetime import timedelta

import pytest

from newsdesk.database.models import (
    AIPrompt,
    BlogPost,
    ContactForm,
    ModerationStatus,
    News,
    NewsSource,
    PostStatus,
    SourceType,
    utc_now,
)
from newsdesk.storage.prompt_repository import PromptType


class TestNewsRepository:
    """Test suite for NewsRepository."""

    def test_create_and_get(self, news_repo, sample_news):
        news_id = news_repo.create(sample_news)

        assert news_id == sample_news.id
        stored = news_repo.get_by_id(news_id)
        assert stored.original_title == sample_news.original_title
        assert stored.rss_analysis.relevance_score == 8
        assert stored.rss_analysis.key_points == ["Plans before answering", "Available to developers"]
        assert stored.pre_moderation_status == ModerationStatus.PENDING
        assert stored.tags == []

    def test_get_missing_returns_none(self, news_repo):
        assert news_repo.get_by_id("missing") is None

    def test_find_by_url(self, news_repo, sample_news):
        news_repo.create(sample_news)

        assert news_repo.find_by_url(sample_news.original_url).id == sample_news.id
        assert news_repo.find_by_url("https://other.example/x") is None
        assert news_repo.exists_by_original_url(sample_news.original_url)
        assert not news_repo.exists_by_original_url("https://other.example/x")

    def test_recent_titles_prefer_english(self, news_repo):
        news_repo.create(News(original_title="Original one", title_en="English one"))
        news_repo.create(News(original_title="Original two"))
        news_repo.create(News(original_title="Ancient", created_at=utc_now() - timedelta(days=60)))

        titles = news_repo.get_recent_titles(utc_now() - timedelta(days=30))

        assert set(titles) == {"English one", "Original two"}

    def test_update_moderation(self, news_repo, sample_news):
        news_repo.create(sample_news)

        assert news_repo.update_moderation(sample_news.id, ModerationStatus.REJECTED, "Advertisement")
        stored = news_repo.get_by_id(sample_news.id)
        assert stored.pre_moderation_status == ModerationStatus.REJECTED
        assert stored.rejection_reason == "Advertisement"
        assert stored.moderation_checked_at is not None

    def test_update_moderation_missing_row(self, news_repo):
        assert not news_repo.update_moderation("missing", ModerationStatus.APPROVED)

    def test_set_telegram_message_id(self, news_repo, sample_news):
        news_repo.create(sample_news)
        news_repo.set_telegram_message_id(sample_news.id, 777)

        assert news_repo.get_by_id(sample_news.id).telegram_message_id == 777

    def test_publish_rewrite(self, news_repo, sample_news):
        news_repo.create(sample_news)
        translations = {
            lang: {
                "title": f"Title {lang}",
                "content": f"Content {lang}",
                "description": f"Description {lang}",
                "slug": f"title-{lang}",
            }
            for lang in ("en", "no", "ua")
        }

        news_repo.publish_rewrite(sample_news.id, translations, ["ai"], image_url=None)

        stored = news_repo.get_by_id(sample_news.id)
        assert stored.is_published and stored.is_rewritten
        assert stored.title_no == "Title no"
        assert stored.slug_ua == "title-ua"
        assert stored.tags == ["ai"]
        assert stored.image_url == sample_news.image_url
        assert stored.pre_moderation_status == ModerationStatus.APPROVED
        assert stored.published_at is not None

    def test_reject_stale(self, news_repo):
        old = News(
            original_title="Old approved",
            pre_moderation_status=ModerationStatus.APPROVED,
            created_at=utc_now() - timedelta(hours=72),
        )
        fresh = News(original_title="Fresh approved", pre_moderation_status=ModerationStatus.APPROVED)
        old_pending = News(
            original_title="Old pending",
            created_at=utc_now() - timedelta(hours=72),
        )
        for news in (old, fresh, old_pending):
            news_repo.create(news)

        rejected = news_repo.reject_stale(utc_now() - timedelta(hours=48), "timeout")

        assert rejected == [old.id]
        assert news_repo.get_by_id(old.id).rejection_reason == "timeout"
        assert news_repo.get_by_id(fresh.id).pre_moderation_status == ModerationStatus.APPROVED


class TestSourceRepository:
    """Test suite for SourceRepository."""

    def test_active_sources_ordered_by_tier(self, source_repo):
        source_repo.create_source(NewsSource(name="Zeta", rss_url="https://z.example/rss", tier=1))
        source_repo.create_source(NewsSource(name="Alpha", rss_url="https://a.example/rss", tier=2))
        source_repo.create_source(NewsSource(name="Beta", rss_url="https://b.example/rss", tier=1))
        source_repo.create_source(NewsSource(name="Off", rss_url="https://o.example/rss", is_active=False))
        source_repo.create_source(NewsSource(name="Chat", source_type=SourceType.TELEGRAM))

        names = [source.name for source in source_repo.get_active_rss_sources()]

        assert names == ["Beta", "Zeta", "Alpha"]

    def test_lookup_and_last_fetched(self, source_repo, sample_source):
        assert source_repo.get_by_rss_url(sample_source.rss_url).id == sample_source.id
        assert source_repo.get_by_id(sample_source.id).last_fetched_at is None

        source_repo.update_last_fetched(sample_source.id)

        assert source_repo.get_by_id(sample_source.id).last_fetched_at is not None


class TestPromptAndSettingsRepositories:
    """Test suite for PromptRepository and SettingsRepository."""

    def test_get_active_prompt(self, prompt_repo, seeded_prompts):
        prompt = prompt_repo.get_active(PromptType.NEWS_REWRITE)

        assert prompt.id == seeded_prompts[PromptType.NEWS_REWRITE]
        assert "{title}" in prompt.prompt_text

    def test_inactive_prompt_ignored(self, prompt_repo):
        prompt_repo.create_prompt(AIPrompt(
            name="off", prompt_type=PromptType.PRE_MODERATION, prompt_text="x", is_active=False
        ))
        assert prompt_repo.get_active(PromptType.PRE_MODERATION) is None

    def test_increment_usage(self, prompt_repo, seeded_prompts):
        prompt_id = seeded_prompts[PromptType.PRE_MODERATION]
        prompt_repo.increment_usage(prompt_id)
        prompt_repo.increment_usage(prompt_id)

        assert prompt_repo.get_active(PromptType.PRE_MODERATION).usage_count == 2

    def test_auto_publish_switch(self, settings_repo):
        assert not settings_repo.is_auto_publish_enabled()

        settings_repo.set(settings_repo.AUTO_PUBLISH_KEY, "true")
        assert settings_repo.is_auto_publish_enabled()

        settings_repo.set(settings_repo.AUTO_PUBLISH_KEY, "false")
        assert settings_repo.get(settings_repo.AUTO_PUBLISH_KEY) == "false"
        assert not settings_repo.is_auto_publish_enabled()


class TestSocialAndContactRepositories:
    """Test suite for social post, blog and contact repositories."""

    def test_post_lifecycle(self, social_post_repo):
        post_id = social_post_repo.create_pending("news-1", "linkedin", "en")
        assert social_post_repo.find_posted("news-1", "linkedin", "en") is None

        social_post_repo.mark_posted(post_id, "urn:li:share:1", "https://www.linkedin.com/feed/update/urn:li:share:1")

        posted = social_post_repo.find_posted("news-1", "linkedin", "en")
        assert posted.status == PostStatus.POSTED
        assert posted.platform_post_id == "urn:li:share:1"
        assert posted.posted_at is not None
        assert social_post_repo.find_posted("news-1", "linkedin", "no") is None

    def test_failed_post_recorded(self, social_post_repo):
        post_id = social_post_repo.create_pending("news-2", "youtube", "en")
        social_post_repo.mark_failed(post_id, "quota exceeded")

        posts = social_post_repo.list_for_content("news-2")
        assert len(posts) == 1
        assert posts[0].status == PostStatus.FAILED
        assert posts[0].error_message == "quota exceeded"

    def test_blog_round_trip(self, blog_repo):
        post = BlogPost(title_en="Why I self-host", slug_en="why-i-self-host")
        blog_repo.create(post)

        assert blog_repo.get_by_id(post.id).localized("no")["title"] == "Why I self-host"
        assert blog_repo.get_by_id("missing") is None

    def test_contact_save(self, contact_repo):
        contact_repo.save(ContactForm(name="Ola", email="ola@example.no", message="Hei"))
        assert contact_repo.count() == 1
