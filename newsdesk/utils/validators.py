"""
Newsdesk Input Validators
=========================

Validation and sanitization helpers for URLs, contact form input and
text that ends up in Telegram HTML messages or social media posts.
"""

import re
import html
from urllib.parse import urlparse, urlunparse
from typing import Optional

from bs4 import BeautifulSoup

from .exceptions import ValidationError, ErrorCode


class URLValidator:
    """URL validation and normalization utilities."""

    ALLOWED_SCHEMES = {'http', 'https'}

    @classmethod
    def validate_url(cls, url: str, field_name: str = "url") -> str:
        """Validate and normalize an http(s) URL.

        Args:
            url: URL to validate
            field_name: Field reported in the error context

        Returns:
            Normalized URL

        Raises:
            ValidationError: If URL is invalid
        """
        if not url or not isinstance(url, str):
            raise ValidationError(
                "URL is required and must be a string",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name=field_name
            )

        url = url.strip()
        parsed = urlparse(url)

        if parsed.scheme.lower() not in cls.ALLOWED_SCHEMES:
            raise ValidationError(
                "URL scheme must be http or https",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name=field_name
            )

        if not parsed.netloc:
            raise ValidationError(
                "URL must include a hostname",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name=field_name
            )

        return urlunparse(parsed._replace(
            scheme=parsed.scheme.lower(),
            netloc=parsed.netloc.lower(),
            fragment=''
        ))

    @staticmethod
    def display_host(url: str) -> Optional[str]:
        """Hostname without a leading ``www.``, or None if the URL has none."""
        try:
            host = urlparse(url).hostname
        except ValueError:
            return None
        if not host:
            return None
        return host[4:] if host.startswith("www.") else host


class ContactValidator:
    """Contact form field checks."""

    EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

    @classmethod
    def is_valid_email(cls, email: str) -> bool:
        return bool(email and cls.EMAIL_PATTERN.match(email))

    @classmethod
    def require_fields(cls, **fields: Optional[str]) -> None:
        """Raise when any field is missing or blank.

        Raises:
            ValidationError: Listing the first missing field
        """
        for name, value in fields.items():
            if not value or not str(value).strip():
                raise ValidationError(
                    "All fields are required.",
                    error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                    field_name=name
                )


_WHITESPACE = re.compile(r'\s+')
_CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(' ', text or '').strip()


def strip_html(text: str) -> str:
    """Remove markup and return the collapsed plain text."""
    if not text:
        return ''
    return collapse_whitespace(BeautifulSoup(text, "html.parser").get_text())


def escape_html(text: str, quote: bool = False) -> str:
    """Escape text for Telegram HTML parse mode; pass ``quote`` for attribute values."""
    return html.escape(text or '', quote=quote)


def sanitize_text(text: str, max_length: int = 1000) -> str:
    """Plain text safe for social platform APIs.

    Markup is stripped, entities decoded, control characters dropped and
    the result cut to ``max_length`` characters.
    """
    if not text:
        return ''
    plain = html.unescape(strip_html(text))
    plain = _CONTROL_CHARS.sub('', plain)
    return collapse_whitespace(plain)[:max_length]


def truncate(text: str, limit: int, suffix: str = '...') -> str:
    """Cut text to ``limit`` characters, appending ``suffix`` when shortened."""
    if not text or len(text) <= limit:
        return text or ''
    return text[:limit] + suffix
