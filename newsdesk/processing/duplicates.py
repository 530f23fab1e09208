"""
Duplicate Detection
===================

Cheap keyword heuristic that flags an incoming title as a duplicate when
several of its leading keywords already appear in a recent news title.
"""

import re
from datetime import timedelta
from typing import Iterable, List, Optional

from ..database.models import utc_now
from ..storage.news_repository import NewsRepository
from ..utils.logging import get_logger_for_component

MIN_TITLE_LENGTH = 10
MIN_KEYWORD_LENGTH = 4
MAX_KEYWORDS = 3
MIN_MATCHES = 2

# Latin and Cyrillic letters including Ukrainian і ї є ґ
KEYWORD_PATTERN = re.compile(r'^[a-zа-яіїєґё]+$')


def extract_keywords(title: str) -> List[str]:
    """First three alphabetic words of at least four letters, lowercased."""
    words = (title or "").lower().split()
    keywords = [
        word for word in words
        if len(word) >= MIN_KEYWORD_LENGTH and KEYWORD_PATTERN.match(word)
    ]
    return keywords[:MAX_KEYWORDS]


def is_duplicate(title: str, recent_titles: Iterable[str]) -> bool:
    """Check ``title`` against recent titles.

    Args:
        title: Incoming title
        recent_titles: Titles already stored

    Returns:
        True if at least two keywords occur in one recent title
    """
    if not title or len(title) < MIN_TITLE_LENGTH:
        return False

    keywords = extract_keywords(title)
    if not keywords:
        return False

    for existing in recent_titles:
        existing_lower = (existing or "").lower()
        matches = sum(1 for keyword in keywords if keyword in existing_lower)
        if matches >= MIN_MATCHES:
            return True

    return False


class DuplicateChecker:
    """Compares titles with news stored over the lookback window."""

    def __init__(
        self,
        news_repo: NewsRepository,
        lookback_days: int = 30,
        candidate_limit: int = 100,
    ):
        self.news_repo = news_repo
        self.lookback_days = lookback_days
        self.candidate_limit = candidate_limit
        self.logger = get_logger_for_component("duplicates")

    def check(self, title: str, exclude_title: Optional[str] = None) -> bool:
        """Return True when ``title`` duplicates recently stored news.

        Args:
            title: Incoming title
            exclude_title: Title of the record being moderated, ignored once
                so a freshly inserted row does not match itself
        """
        if not title or len(title) < MIN_TITLE_LENGTH:
            return False

        since = utc_now() - timedelta(days=self.lookback_days)
        recent = self.news_repo.get_recent_titles(since, self.candidate_limit)
        if exclude_title is not None and exclude_title in recent:
            recent.remove(exclude_title)

        duplicate = is_duplicate(title, recent)
        if duplicate:
            self.logger.info(f"Duplicate detected for title: {title[:80]}")
        return duplicate
