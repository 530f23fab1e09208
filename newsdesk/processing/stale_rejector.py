"""
Stale News Rejection
====================

Rejects approved news that no moderator acted on in time.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..config.settings import get_settings
from ..database.models import to_db_timestamp, utc_now
from ..storage.news_repository import NewsRepository
from ..utils.logging import get_logger_for_component


@dataclass
class StaleRejectionResult:
    threshold: datetime
    rejected_ids: List[str] = field(default_factory=list)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "rejected_count": self.rejected_count,
            "rejected_ids": list(self.rejected_ids),
            "threshold": to_db_timestamp(self.threshold),
        }


class StaleNewsRejector:
    """Times out unmoderated news."""

    def __init__(self, news_repo: NewsRepository):
        self.news_repo = news_repo
        self.settings = get_settings()
        self.logger = get_logger_for_component("stale_rejector")

    async def run(self, hours: Optional[int] = None) -> StaleRejectionResult:
        hours = hours or self.settings.processing.stale_after_hours
        threshold = utc_now() - timedelta(hours=hours)
        reason = f"Auto-rejected: {hours}h timeout without moderation"

        rejected_ids = self.news_repo.reject_stale(threshold, reason)
        if rejected_ids:
            self.logger.info(f"Auto-rejected {len(rejected_ids)} stale news items")
        else:
            self.logger.info("No stale news to reject")

        return StaleRejectionResult(threshold=threshold, rejected_ids=rejected_ids)
