"""
Integration tests for the HTTP function endpoints.

Requests go through the full FastAPI stack against the test database.
Telegram and Azure OpenAI stay unconfigured; outbound fetches are mocked.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio

from newsdesk.api.app import create_app
from newsdesk.api.services import Services
from newsdesk.database.models import ModerationStatus, News, utc_now
from newsdesk.ingestion.feed_fetcher import FetchResult
from newsdesk.ingestion.rss_parser import RSSItem
from newsdesk.utils.exceptions import DatabaseError

pytestmark = pytest.mark.integration

WEBHOOK_HEADERS = {"X-Telegram-Bot-Api-Secret-Token": "test-webhook-secret"}


@pytest.fixture
def services(db_connection):
    return Services(db_connection)


@pytest_asyncio.fixture
async def client(services):
    transport = httpx.ASGITransport(app=create_app(services), raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_tables(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"]["news"] == 0
        assert data["telegram"] is False


class TestFetchEndpoints:

    @pytest.mark.asyncio
    async def test_fetch_news_without_sources(self, client):
        response = await client.post("/functions/fetch-news")

        assert response.status_code == 200
        assert response.json() == {"ok": True, "message": "No active RSS sources", "processed": 0}

    @pytest.mark.asyncio
    async def test_rss_preview(self, client, services):
        items = [
            RSSItem(title=f"Item {n}", url=f"https://a.example/{n}", description="d")
            for n in range(3)
        ]
        result = FetchResult(feed_url="https://a.example/rss", success=True, items=items)

        with patch.object(services.feed_fetcher, "fetch", AsyncMock(return_value=result)):
            response = await client.post(
                "/functions/fetch-rss-preview", json={"rssUrl": "https://a.example/rss", "limit": 2}
            )

        data = response.json()
        assert data["total"] == 3
        assert [a["link"] for a in data["articles"]] == ["https://a.example/0", "https://a.example/1"]
        assert data["articles"][0]["pubDate"] is None

    @pytest.mark.asyncio
    async def test_rss_preview_fetch_error(self, client, services):
        result = FetchResult(feed_url="https://a.example/rss", success=False, error="HTTP 404: Not Found")

        with patch.object(services.feed_fetcher, "fetch", AsyncMock(return_value=result)):
            response = await client.post("/functions/fetch-rss-preview", json={"rssUrl": "https://a.example/rss"})

        assert response.status_code == 200
        assert response.json() == {"error": "HTTP 404: Not Found", "articles": [], "total": 0}

    @pytest.mark.asyncio
    async def test_rss_preview_rejects_non_http_url(self, client, services):
        fetch = AsyncMock()

        with patch.object(services.feed_fetcher, "fetch", fetch):
            response = await client.post("/functions/fetch-rss-preview", json={"rssUrl": "ftp://a.example/rss"})

        assert response.status_code == 400
        assert response.json()["success"] is False
        fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_pre_moderation_without_prompt(self, client):
        response = await client.post("/functions/pre-moderate-news", json={"title": "Some title here"})

        data = response.json()
        assert data["approved"] is True
        assert data["reason"] == "No pre-moderation prompt configured"


class TestModerationEndpoints:

    @pytest.mark.asyncio
    async def test_send_to_telegram_requires_configuration(self, client):
        response = await client.post("/functions/send-rss-to-telegram", json={"newsId": "abc"})

        assert response.status_code == 500
        assert response.json()["code"] == "T002"

    @pytest.mark.asyncio
    async def test_rewrite_missing_news(self, client):
        response = await client.post("/functions/process-rss-news", json={"newsId": "missing"})

        assert response.status_code == 404
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_auto_reject_stale(self, client, news_repo):
        stale = News(
            original_title="Old",
            pre_moderation_status=ModerationStatus.APPROVED,
            created_at=utc_now() - timedelta(hours=30),
        )
        news_repo.create(stale)

        response = await client.post("/functions/auto-reject-stale-news", json={"hours": 24})

        data = response.json()
        assert data["success"] is True
        assert data["rejected_ids"] == [stale.id]
        assert news_repo.get_by_id(stale.id).pre_moderation_status == ModerationStatus.REJECTED


class TestTelegramWebhook:

    @pytest.mark.asyncio
    async def test_rejects_missing_secret(self, client):
        response = await client.post("/functions/telegram-webhook", json={"update_id": 1})

        assert response.status_code == 403
        assert response.json() == {"ok": False}

    @pytest.mark.asyncio
    async def test_rejects_wrong_secret(self, client):
        response = await client.post(
            "/functions/telegram-webhook",
            json={"update_id": 1},
            headers={"X-Telegram-Bot-Api-Secret-Token": "nope"},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_accepts_non_callback_update(self, client):
        payload = {
            "update_id": 2,
            "message": {
                "message_id": 1,
                "date": 1714564800,
                "chat": {"id": 5, "type": "private"},
                "text": "hello",
            },
        }

        response = await client.post("/functions/telegram-webhook", json=payload, headers=WEBHOOK_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_malformed_body_acknowledged(self, client):
        response = await client.post(
            "/functions/telegram-webhook",
            content=b"{not json",
            headers={**WEBHOOK_HEADERS, "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_handler_failure_acknowledged(self, client, services):
        failing = AsyncMock(side_effect=DatabaseError("db locked"))

        with patch.object(services.callback_handler, "handle_update", failing):
            response = await client.post(
                "/functions/telegram-webhook", json={"update_id": 3}, headers=WEBHOOK_HEADERS
            )

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        failing.assert_awaited_once_with({"update_id": 3})


class TestContactEndpoint:

    @pytest.mark.asyncio
    async def test_invalid_email(self, client):
        response = await client.post(
            "/functions/send-contact-email",
            json={"name": "Ola", "email": "ola-at-example", "message": "Hei"},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid email address."}

    @pytest.mark.asyncio
    async def test_rate_limit_by_forwarded_ip(self, client, contact_repo):
        body = {"name": "Ola", "email": "ola@example.no", "message": "Hei"}
        headers = {"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}

        statuses = [
            (await client.post("/functions/send-contact-email", json=body, headers=headers)).status_code
            for _ in range(4)
        ]

        assert statuses == [200, 200, 200, 429]
        assert contact_repo.count() == 3


class TestSocialEndpoints:

    @pytest.mark.asyncio
    async def test_linkedin_requires_content_id(self, client):
        response = await client.post("/functions/post-to-linkedin", json={"contentType": "blog"})

        assert response.status_code == 400
        assert "must provide either newsId or blogPostId" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_post_video_rejects_unknown_platform(self, client):
        response = await client.post(
            "/functions/post-video",
            json={"newsId": "abc", "fileId": "f1", "platforms": ["myspace"]},
        )

        assert response.status_code == 400
