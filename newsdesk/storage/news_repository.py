"""
News Repository
===============

Repository for news records: ingestion inserts, duplicate lookups,
moderation state changes and publishing of rewritten translations.
"""

import json
from datetime import datetime
from typing import List, Optional, Dict, Any

from ..database.connection import DatabaseConnection
from ..database.models import News, ModerationStatus, LANGUAGES, utc_now, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode

_NEWS_COLUMNS = [
    "id", "original_title", "original_content", "original_url", "rss_source_url",
    "source_id", "source_type", "image_url", "video_url", "video_type", "rss_analysis",
    "pre_moderation_status", "rejection_reason", "moderation_checked_at",
    "telegram_message_id",
    "title_en", "title_no", "title_ua",
    "content_en", "content_no", "content_ua",
    "description_en", "description_no", "description_ua",
    "slug_en", "slug_no", "slug_ua",
    "tags", "is_rewritten", "is_published", "published_at", "created_at", "updated_at",
]


class NewsRepository:
    """Repository for managing news records in the database."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize news repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("news_repository")

    def _to_params(self, news: News) -> tuple:
        data = news.model_dump(mode="json")
        data["rss_analysis"] = (
            json.dumps(data["rss_analysis"], ensure_ascii=False)
            if data["rss_analysis"] is not None else None
        )
        data["tags"] = json.dumps(data["tags"], ensure_ascii=False)
        for field in ("moderation_checked_at", "published_at", "created_at", "updated_at"):
            data[field] = to_db_timestamp(getattr(news, field))
        return tuple(data[column] for column in _NEWS_COLUMNS)

    def create(self, news: News) -> str:
        """Insert a news record.

        Args:
            news: News object to insert

        Returns:
            ID of the created record

        Raises:
            DatabaseError: If database operation fails
        """
        placeholders = ", ".join("?" for _ in _NEWS_COLUMNS)
        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    f"INSERT INTO news ({', '.join(_NEWS_COLUMNS)}) VALUES ({placeholders})",
                    self._to_params(news),
                )
                conn.commit()

            self.logger.info(f"Created news {news.id}: {news.original_title[:60]}")
            return news.id

        except Exception as e:
            self.logger.error(f"Failed to create news: {e}")
            raise DatabaseError(
                f"Failed to create news: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_by_id(self, news_id: str) -> Optional[News]:
        """Get news by ID.

        Args:
            news_id: News ID

        Returns:
            News object if found, None otherwise
        """
        try:
            row = self.db.execute_one("SELECT * FROM news WHERE id = ?", (news_id,))
            return News.from_db_row(row) if row else None
        except Exception as e:
            self.logger.error(f"Failed to get news {news_id}: {e}")
            raise DatabaseError(
                f"Failed to get news {news_id}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def find_by_url(self, url: str) -> Optional[News]:
        """Find news whose RSS source URL or original URL matches.

        Args:
            url: Article URL

        Returns:
            Matching News or None
        """
        try:
            row = self.db.execute_one(
                "SELECT * FROM news WHERE rss_source_url = ? OR original_url = ? LIMIT 1",
                (url, url),
            )
            return News.from_db_row(row) if row else None
        except Exception as e:
            self.logger.error(f"Failed to look up news by URL {url}: {e}")
            raise DatabaseError(
                f"Failed to look up news by URL: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def exists_by_original_url(self, url: str) -> bool:
        try:
            row = self.db.execute_one("SELECT 1 FROM news WHERE original_url = ? LIMIT 1", (url,))
            return row is not None
        except Exception as e:
            raise DatabaseError(
                f"Failed to check news URL: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_recent_titles(self, since: datetime, limit: int = 100) -> List[str]:
        """Titles of news created after ``since``, newest first.

        The English title is preferred over the original one.
        """
        try:
            rows = self.db.execute_query(
                """
                SELECT title_en, original_title FROM news
                WHERE created_at >= ?
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (to_db_timestamp(since), limit),
            )
            return [row["title_en"] or row["original_title"] or "" for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to load recent titles: {e}")
            raise DatabaseError(
                f"Failed to load recent titles: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def update_moderation(
        self,
        news_id: str,
        status: ModerationStatus,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        """Record the pre-moderation outcome of a news record.

        Returns:
            True if a row was updated
        """
        now = to_db_timestamp(utc_now())
        try:
            updated = self.db.execute_update(
                """
                UPDATE news
                SET pre_moderation_status = ?, rejection_reason = ?,
                    moderation_checked_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (ModerationStatus(status).value, rejection_reason, now, now, news_id),
            )
            return updated > 0
        except Exception as e:
            self.logger.error(f"Failed to update moderation for {news_id}: {e}")
            raise DatabaseError(
                f"Failed to update moderation: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def mark_rejected(self, news_id: str, reason: str) -> bool:
        return self.update_moderation(news_id, ModerationStatus.REJECTED, reason)

    def set_telegram_message_id(self, news_id: str, message_id: int) -> None:
        try:
            self.db.execute_update(
                "UPDATE news SET telegram_message_id = ?, updated_at = ? WHERE id = ?",
                (message_id, to_db_timestamp(utc_now()), news_id),
            )
        except Exception as e:
            raise DatabaseError(
                f"Failed to store Telegram message id: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def publish_rewrite(
        self,
        news_id: str,
        translations: Dict[str, Dict[str, Any]],
        tags: List[str],
        image_url: Optional[str] = None,
    ) -> None:
        """Store rewritten translations and mark the record published.

        Args:
            news_id: News ID
            translations: Per-language dicts with title, content, description, slug
            tags: Tags for the article
            image_url: Image to keep; existing image is preserved when None

        Raises:
            DatabaseError: If database operation fails
        """
        assignments = []
        params: List[Any] = []
        for language in LANGUAGES:
            localized = translations.get(language, {})
            for field in ("title", "content", "description", "slug"):
                assignments.append(f"{field}_{language} = ?")
                params.append(localized.get(field))

        now = to_db_timestamp(utc_now())
        assignments.extend([
            "tags = ?",
            "image_url = COALESCE(?, image_url)",
            "is_rewritten = 1",
            "is_published = 1",
            "published_at = ?",
            "pre_moderation_status = ?",
            "updated_at = ?",
        ])
        params.extend([
            json.dumps(tags, ensure_ascii=False),
            image_url,
            now,
            ModerationStatus.APPROVED.value,
            now,
            news_id,
        ])

        try:
            with self.db.transaction() as conn:
                conn.execute(
                    f"UPDATE news SET {', '.join(assignments)} WHERE id = ?",
                    tuple(params),
                )
            self.logger.info(f"Published rewritten news {news_id}")
        except Exception as e:
            self.logger.error(f"Failed to publish news {news_id}: {e}")
            raise DatabaseError(
                f"Failed to update news: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def reject_stale(self, older_than: datetime, reason: str) -> List[str]:
        """Reject approved but unpublished news created before ``older_than``.

        Returns:
            IDs of rejected records
        """
        threshold = to_db_timestamp(older_than)
        now = to_db_timestamp(utc_now())
        try:
            with self.db.transaction() as conn:
                rows = conn.execute(
                    """
                    SELECT id FROM news
                    WHERE pre_moderation_status = 'approved'
                      AND is_published = 0
                      AND created_at < ?
                    """,
                    (threshold,),
                ).fetchall()
                ids = [row["id"] for row in rows]

                if ids:
                    conn.executemany(
                        """
                        UPDATE news
                        SET pre_moderation_status = 'rejected', rejection_reason = ?,
                            moderation_checked_at = ?, updated_at = ?
                        WHERE id = ?
                        """,
                        [(reason, now, now, news_id) for news_id in ids],
                    )
            return ids
        except Exception as e:
            self.logger.error(f"Failed to reject stale news: {e}")
            raise DatabaseError(
                f"Failed to reject stale news: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
