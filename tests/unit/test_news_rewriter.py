"""
Unit tests for the multilingual rewrite and publish step.
"""

import pytest

from newsdesk.database.models import News
from newsdesk.processing.news_rewriter import NewsRewriter, format_source_link
from newsdesk.utils.exceptions import AIError, ErrorCode, ProcessingError, ResourceNotFound


@pytest.fixture
def rewriter(news_repo, prompt_repo, mock_ai_client):
    return NewsRewriter(news_repo, prompt_repo, mock_ai_client)


class TestFormatSourceLink:
    """Test the localized source footer."""

    def test_appends_host_link(self):
        content = format_source_link("Body", "Les mer", "https://www.nrk.no/artikkel")
        assert content == "Body\n\n**Les mer:** [nrk.no](https://www.nrk.no/artikkel)"

    def test_no_url_leaves_content(self):
        assert format_source_link("Body", "Read more", None) == "Body"


class TestNewsRewriter:
    """Test the rewrite flow."""

    @pytest.mark.asyncio
    async def test_missing_news(self, rewriter):
        with pytest.raises(ResourceNotFound):
            await rewriter.rewrite("missing")

    @pytest.mark.asyncio
    async def test_missing_prompt(self, rewriter, news_repo, sample_news):
        news_repo.create(sample_news)

        with pytest.raises(ProcessingError) as exc_info:
            await rewriter.rewrite(sample_news.id)
        assert exc_info.value.error_code == ErrorCode.PROMPT_MISSING

    @pytest.mark.asyncio
    async def test_rewrite_publishes_all_languages(
        self, rewriter, news_repo, sample_news, seeded_prompts, mock_ai_client, completion, rewrite_payload
    ):
        news_repo.create(sample_news)
        mock_ai_client.complete.return_value = completion(rewrite_payload)

        result = await rewriter.rewrite(sample_news.id)

        prefix = sample_news.id[:8]
        assert result.slugs == {
            "en": f"new-reasoning-model-for-developers-{prefix}",
            "no": f"ny-resonneringsmodell-for-utviklere-{prefix}",
            "ua": f"nova-model-mirkuvan-dlya-rozrobnykiv-{prefix}",
        }
        assert result.tags == ["ai", "openai", "models"]

        stored = news_repo.get_by_id(sample_news.id)
        assert stored.is_published
        assert stored.title_ua == "Нова модель міркувань для розробників"
        assert stored.content_en == (
            "English body.\n\n**Read more:** "
            "[techdaily.example](https://techdaily.example/articles/reasoning-model)"
        )
        assert stored.content_ua.endswith("(https://techdaily.example/articles/reasoning-model)")
        assert "**Детальніше:**" in stored.content_ua
        assert stored.description_no == "Norsk sammendrag."

        _, kwargs = mock_ai_client.complete.call_args
        assert kwargs["temperature"] == 0.5
        assert kwargs["max_tokens"] == 6000

    @pytest.mark.asyncio
    async def test_overrides_and_url_fallback(
        self, rewriter, news_repo, seeded_prompts, mock_ai_client, completion, rewrite_payload
    ):
        news = News(original_title="Stored title", original_content="Stored body")
        news_repo.create(news)
        mock_ai_client.complete.return_value = completion(rewrite_payload)

        await rewriter.rewrite(
            news.id,
            title="Override title",
            url="https://source.example/a",
            image_url="https://source.example/a.jpg",
        )

        prompt = mock_ai_client.complete.call_args.args[1]
        assert "Title: Override title" in prompt
        assert "Content: Stored body" in prompt
        stored = news_repo.get_by_id(news.id)
        assert stored.image_url == "https://source.example/a.jpg"
        assert "[source.example](https://source.example/a)" in stored.content_no

    @pytest.mark.asyncio
    async def test_tags_fall_back_to_english_block(
        self, rewriter, news_repo, sample_news, seeded_prompts, mock_ai_client, completion, rewrite_payload
    ):
        news_repo.create(sample_news)
        payload = dict(rewrite_payload)
        payload.pop("tags")
        payload["en"] = {**payload["en"], "tags": ["fallback"]}
        mock_ai_client.complete.return_value = completion(payload)

        result = await rewriter.rewrite(sample_news.id)

        assert result.tags == ["fallback"]

    @pytest.mark.asyncio
    async def test_missing_language_rejected(
        self, rewriter, news_repo, sample_news, seeded_prompts, mock_ai_client, completion, rewrite_payload
    ):
        news_repo.create(sample_news)
        payload = dict(rewrite_payload)
        payload.pop("ua")
        mock_ai_client.complete.return_value = completion(payload)

        with pytest.raises(AIError) as exc_info:
            await rewriter.rewrite(sample_news.id)

        assert exc_info.value.message == "AI response missing required language fields"
        assert not news_repo.get_by_id(sample_news.id).is_published

    @pytest.mark.asyncio
    async def test_missing_title_rejected(
        self, rewriter, news_repo, sample_news, seeded_prompts, mock_ai_client, completion, rewrite_payload
    ):
        news_repo.create(sample_news)
        payload = dict(rewrite_payload)
        payload["no"] = {"content": "Tekst", "description": "Kort"}
        mock_ai_client.complete.return_value = completion(payload)

        with pytest.raises(AIError) as exc_info:
            await rewriter.rewrite(sample_news.id)
        assert "no" in exc_info.value.message
