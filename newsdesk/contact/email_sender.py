"""
Contact Form Delivery
=====================

Spam filtering, rate limiting, storage and Resend email delivery for the
public contact form.
"""

import html
import ssl
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, Dict, Optional
from zoneinfo import ZoneInfo

import aiohttp
import certifi
from pydantic import BaseModel, Field

from ..config.settings import get_settings
from ..database.models import ContactForm
from ..storage.contact_repository import ContactRepository
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import RateLimitExceeded, ValidationError
from ..utils.validators import ContactValidator

RESEND_URL = "https://api.resend.com/emails"
FAKE_SUCCESS_MESSAGE = "Message sent!"
RATE_LIMIT_MESSAGE = "Too many requests. Please try again later."
INVALID_EMAIL_MESSAGE = "Invalid email address."
GENERIC_ERROR_MESSAGE = "An error occurred. Please try again later."
PENDING_CONFIG_MESSAGE = "Message received! (Email delivery pending configuration)"
RECEIVED_MESSAGE = "Message received! We will get back to you soon."
SENT_MESSAGE = "Message sent successfully! We will get back to you soon."

EMAIL_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333;">
  <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
    <h2>📬 New Contact Form Submission</h2>
    <p><strong>👤 Name</strong><br>{name}</p>
    <p><strong>📧 Email</strong><br><a href="mailto:{email}">{email}</a></p>
    <p><strong>💬 Message</strong><br><span style="white-space: pre-wrap;">{message}</span></p>
    <hr>
    <p style="font-size: 12px; color: #6b7280;">Sent from contact form at {sent_at} (Oslo time)<br>IP: {client_ip}</p>
  </div>
</body>
</html>
"""


class ContactRequest(BaseModel):
    """Contact form payload as posted by the site."""
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    honeypot: Optional[str] = Field(default=None, description="Hidden field, filled only by bots")
    timestamp: Optional[int] = Field(default=None, description="Form render time in epoch ms")


@dataclass
class ContactResponse:
    success: bool
    message: str
    status_code: int = 200

    def to_dict(self) -> Dict[str, object]:
        return {"success": self.success, "message": self.message}


class RateLimiter:
    """In-memory sliding window limiter keyed by client."""

    def __init__(self, max_requests: int, window_seconds: float):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: Dict[str, Deque[float]] = {}

    def check(self, key: str, now: Optional[float] = None) -> None:
        """Record a request for ``key``.

        Raises:
            RateLimitExceeded: If the window already holds ``max_requests`` hits
        """
        now = time.monotonic() if now is None else now
        self._expire(now)
        hits = self._hits.setdefault(key, deque())
        if len(hits) >= self.max_requests:
            raise RateLimitExceeded(RATE_LIMIT_MESSAGE, key=key)
        hits.append(now)

    def _expire(self, now: float) -> None:
        for key in list(self._hits):
            hits = self._hits[key]
            while hits and now - hits[0] >= self.window_seconds:
                hits.popleft()
            if not hits:
                del self._hits[key]

    def reset(self) -> None:
        self._hits.clear()

    @property
    def tracked_clients(self) -> int:
        return len(self._hits)


def render_email(name: str, email: str, message: str, client_ip: str) -> str:
    sent_at = datetime.now(ZoneInfo("Europe/Oslo")).strftime("%m/%d/%Y, %I:%M:%S %p")
    return EMAIL_TEMPLATE.format(
        name=html.escape(name),
        email=html.escape(email),
        message=html.escape(message),
        sent_at=sent_at,
        client_ip=html.escape(client_ip),
    )


class ContactService:
    """Handles contact form submissions end to end."""

    def __init__(
        self,
        contact_repo: ContactRepository,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.settings = get_settings()
        limits = self.settings.limits
        self.contact_repo = contact_repo
        self.rate_limiter = rate_limiter or RateLimiter(
            limits.contact_rate_limit, limits.contact_rate_window_seconds
        )
        self.logger = get_logger_for_component("contact")

    async def submit(self, request: ContactRequest, client_ip: str = "unknown") -> ContactResponse:
        """Process one submission. Never raises.

        Args:
            request: Submitted form
            client_ip: Caller address used for rate limiting

        Returns:
            ContactResponse carrying the HTTP status to answer with
        """
        try:
            return await self._submit(request, client_ip)
        except RateLimitExceeded as e:
            self.logger.warning(f"Rate limit exceeded for {client_ip}")
            return ContactResponse(success=False, message=e.message, status_code=429)
        except ValidationError as e:
            return ContactResponse(success=False, message=e.message, status_code=400)
        except Exception as e:
            self.logger.error(f"Error processing contact form: {e}", exc_info=True)
            return ContactResponse(success=False, message=GENERIC_ERROR_MESSAGE, status_code=500)

    async def _submit(self, request: ContactRequest, client_ip: str) -> ContactResponse:
        self.logger.info(f"Contact form submission from {client_ip}")

        if request.honeypot:
            self.logger.info("Spam detected: honeypot filled")
            return ContactResponse(success=True, message=FAKE_SUCCESS_MESSAGE)

        if request.timestamp:
            elapsed_ms = time.time() * 1000 - request.timestamp
            if elapsed_ms < self.settings.limits.contact_min_fill_ms:
                self.logger.info(f"Spam detected: form submitted in {elapsed_ms:.0f}ms")
                return ContactResponse(success=True, message=FAKE_SUCCESS_MESSAGE)

        self.rate_limiter.check(client_ip)

        ContactValidator.require_fields(
            name=request.name, email=request.email, message=request.message
        )
        name = request.name.strip()
        email = request.email.strip()
        message = request.message.strip()
        if not ContactValidator.is_valid_email(email):
            raise ValidationError(INVALID_EMAIL_MESSAGE, field_name="email")

        try:
            self.contact_repo.save(
                ContactForm(
                    name=name,
                    email=email,
                    subject=(request.subject or "").strip() or None,
                    message=message,
                    ip_address=client_ip,
                )
            )
        except Exception as e:
            self.logger.error(f"Failed to save contact form, sending email anyway: {e}")

        email_settings = self.settings.email
        if not email_settings.resend_api_key:
            self.logger.warning("Resend API key not configured, skipping email send")
            return ContactResponse(success=True, message=PENDING_CONFIG_MESSAGE)

        delivered = await self.send_email(name, email, message, client_ip)
        return ContactResponse(success=True, message=SENT_MESSAGE if delivered else RECEIVED_MESSAGE)

    async def send_email(self, name: str, email: str, message: str, client_ip: str) -> bool:
        """Deliver the submission to the site owner through Resend.

        Returns:
            True if Resend accepted the email
        """
        email_settings = self.settings.email
        payload = {
            "from": email_settings.from_address,
            "to": email_settings.admin_email,
            "reply_to": email,
            "subject": f"📬 New message from {name}",
            "html": render_email(name, email, message, client_ip),
        }
        headers = {
            "Authorization": f"Bearer {email_settings.resend_api_key}",
            "Content-Type": "application/json",
        }
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        timeout = aiohttp.ClientTimeout(total=self.settings.limits.request_timeout)

        try:
            async with aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(ssl=ssl_context), timeout=timeout
            ) as session:
                async with session.post(RESEND_URL, json=payload, headers=headers) as response:
                    if response.status >= 400:
                        error_text = await response.text()
                        self.logger.error(f"Resend API error {response.status}: {error_text[:300]}")
                        return False
                    result = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            self.logger.error(f"Resend request failed: {e}")
            return False

        self.logger.info(f"Contact email sent: {result.get('id') if isinstance(result, dict) else ''}")
        return True
