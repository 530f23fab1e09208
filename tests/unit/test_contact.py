"""
Unit tests for contact form spam filtering, rate limiting and delivery.
"""

import time
from unittest.mock import AsyncMock, patch

import pytest

from newsdesk.contact.email_sender import (
    FAKE_SUCCESS_MESSAGE,
    PENDING_CONFIG_MESSAGE,
    RECEIVED_MESSAGE,
    SENT_MESSAGE,
    ContactRequest,
    ContactService,
    RateLimiter,
    render_email,
)
from newsdesk.utils.exceptions import RateLimitExceeded


def form(**overrides):
    data = {
        "name": "Kari Nordmann",
        "email": "kari@example.no",
        "message": "Hello! I liked the article.",
        "timestamp": int((time.time() - 30) * 1000),
    }
    data.update(overrides)
    return ContactRequest(**data)


class TestRateLimiter:
    """Test the sliding window."""

    def test_blocks_after_limit(self):
        limiter = RateLimiter(max_requests=2, window_seconds=60)
        limiter.check("1.2.3.4", now=0)
        limiter.check("1.2.3.4", now=10)

        with pytest.raises(RateLimitExceeded):
            limiter.check("1.2.3.4", now=20)

    def test_keys_are_independent(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        limiter.check("a", now=0)
        limiter.check("b", now=0)

    def test_window_slides(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        limiter.check("a", now=0)
        limiter.check("a", now=60)

        with pytest.raises(RateLimitExceeded):
            limiter.check("a", now=90)

    def test_idle_clients_forgotten(self):
        limiter = RateLimiter(max_requests=2, window_seconds=60)
        limiter.check("1.1.1.1", now=0)
        limiter.check("2.2.2.2", now=30)
        assert limiter.tracked_clients == 2

        limiter.check("3.3.3.3", now=75)

        assert limiter.tracked_clients == 2
        limiter.check("1.1.1.1", now=76)
        limiter.check("1.1.1.1", now=77)
        with pytest.raises(RateLimitExceeded):
            limiter.check("1.1.1.1", now=78)


class TestRenderEmail:
    """Test the notification email body."""

    def test_escapes_user_input(self):
        body = render_email("<script>", "a@b.no", "Line & more", "10.0.0.1")

        assert "&lt;script&gt;" in body
        assert "Line &amp; more" in body
        assert "IP: 10.0.0.1" in body


class TestContactService:
    """Test the submission flow."""

    @pytest.fixture
    def service(self, contact_repo):
        return ContactService(contact_repo, rate_limiter=RateLimiter(3, 600))

    @pytest.mark.asyncio
    async def test_honeypot_fakes_success(self, service, contact_repo):
        response = await service.submit(form(honeypot="http://spam.example"), "1.1.1.1")

        assert response.success
        assert response.message == FAKE_SUCCESS_MESSAGE
        assert contact_repo.count() == 0

    @pytest.mark.asyncio
    async def test_fast_submission_fakes_success(self, service, contact_repo):
        response = await service.submit(form(timestamp=int(time.time() * 1000)), "1.1.1.1")

        assert response.message == FAKE_SUCCESS_MESSAGE
        assert contact_repo.count() == 0

    @pytest.mark.asyncio
    async def test_missing_field(self, service):
        response = await service.submit(form(message="   "), "1.1.1.1")

        assert not response.success
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_email(self, service):
        response = await service.submit(form(email="not-an-email"), "1.1.1.1")

        assert response.status_code == 400
        assert response.to_dict() == {"success": False, "message": "Invalid email address."}

    @pytest.mark.asyncio
    async def test_stored_without_email_key(self, service, contact_repo):
        response = await service.submit(form(), "1.1.1.1")

        assert response.success
        assert response.message == PENDING_CONFIG_MESSAGE
        assert contact_repo.count() == 1

    @pytest.mark.asyncio
    async def test_rate_limited(self, service):
        for _ in range(3):
            assert (await service.submit(form(), "2.2.2.2")).success

        response = await service.submit(form(), "2.2.2.2")

        assert response.status_code == 429
        assert response.message == "Too many requests. Please try again later."

    @pytest.mark.asyncio
    async def test_email_delivery(self, service):
        service.settings.email.resend_api_key = "re_test"
        try:
            with patch.object(service, "send_email", AsyncMock(return_value=True)) as send:
                response = await service.submit(form(name="  Kari  "), "3.3.3.3")
            assert response.message == SENT_MESSAGE
            send.assert_awaited_once_with("Kari", "kari@example.no", "Hello! I liked the article.", "3.3.3.3")

            with patch.object(service, "send_email", AsyncMock(return_value=False)):
                response = await service.submit(form(), "3.3.3.3")
            assert response.success
            assert response.message == RECEIVED_MESSAGE
        finally:
            service.settings.email.resend_api_key = None

    @pytest.mark.asyncio
    async def test_storage_failure_still_sends(self, service, contact_repo):
        with patch.object(contact_repo, "save", side_effect=RuntimeError("disk full")):
            response = await service.submit(form(), "4.4.4.4")

        assert response.success
        assert response.message == PENDING_CONFIG_MESSAGE
