"""
Social Publisher Base
=====================

Shared HTTP session, result type and error handling for the platform
publishers.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config.settings import SocialSettings, get_settings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import SocialPublishError, ErrorCode


@dataclass
class PublishResult:
    """Outcome of publishing to one platform."""
    platform: str
    success: bool
    post_id: Optional[str] = None
    post_url: Optional[str] = None
    embed_url: Optional[str] = None
    error: Optional[str] = None
    skipped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = {"platform": self.platform, "success": self.success}
        for key in ("post_id", "post_url", "embed_url", "error"):
            value = getattr(self, key)
            if value:
                data[key] = value
        if self.skipped:
            data["skipped"] = True
        return data


def create_session(max_retries: int = 3, user_agent: str = "newsdesk/1.0") -> requests.Session:
    """Requests session that retries idempotent calls on transient failures."""
    session = requests.Session()
    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["HEAD", "GET", "OPTIONS", "PUT"],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"User-Agent": user_agent})
    return session


class BasePublisher:
    """Common plumbing for platform publishers."""

    platform = "unknown"

    def __init__(
        self,
        settings: Optional[SocialSettings] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[int] = None,
    ):
        app_settings = get_settings()
        self.settings = settings or app_settings.social
        self.timeout = timeout or app_settings.limits.request_timeout
        self.session = session or create_session(self.settings.max_retries)
        self.logger = get_logger_for_component(f"social_{self.platform}", platform=self.platform)

    @property
    def is_configured(self) -> bool:
        return self.platform in self.settings.configured_platforms()

    def require_configured(self) -> None:
        if not self.is_configured:
            raise SocialPublishError(
                f"{self.platform} credentials not configured",
                platform=self.platform,
                error_code=ErrorCode.CONFIG_MISSING,
                recoverable=False,
            )

    def check_response(self, response: requests.Response, action: str) -> Dict[str, Any]:
        """Return the JSON body of a successful response.

        Raises:
            SocialPublishError: If the platform answered with an error status
        """
        if not response.ok:
            detail = response.text[:300]
            self.logger.error(f"{action} failed: HTTP {response.status_code} {detail}")
            raise SocialPublishError(
                f"{action} failed: {response.status_code} {detail}",
                platform=self.platform,
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}
