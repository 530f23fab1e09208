"""
Source Repository
=================

Repository for RSS and Telegram news sources.
"""

from datetime import datetime
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import NewsSource, SourceType, utc_now, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


class SourceRepository:
    """Repository for managing news sources in the database."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("source_repository")

    def create_source(self, source: NewsSource) -> int:
        """Create a new source.

        Args:
            source: Source to create

        Returns:
            Source ID

        Raises:
            DatabaseError: If database operation fails
        """
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO news_sources (
                        name, url, rss_url, source_type, tier, is_active,
                        last_fetched_at, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        source.name,
                        source.url,
                        source.rss_url,
                        source.source_type.value,
                        source.tier,
                        source.is_active,
                        to_db_timestamp(source.last_fetched_at),
                        to_db_timestamp(source.created_at or utc_now()),
                    ),
                )
                conn.commit()
                source_id = cursor.lastrowid

            self.logger.info(f"Created source {source_id}: {source.name}")
            return source_id

        except Exception as e:
            self.logger.error(f"Failed to create source: {e}")
            raise DatabaseError(
                f"Failed to create source: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_active_rss_sources(self) -> List[NewsSource]:
        """Active RSS sources ordered by monitoring tier, then name."""
        try:
            rows = self.db.execute_query(
                """
                SELECT * FROM news_sources
                WHERE is_active = 1 AND source_type = ?
                ORDER BY tier ASC, name ASC
                """,
                (SourceType.RSS.value,),
            )
            return [NewsSource(**dict(row)) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to load active sources: {e}")
            raise DatabaseError(
                f"Failed to load active sources: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_by_rss_url(self, rss_url: str) -> Optional[NewsSource]:
        try:
            row = self.db.execute_one(
                "SELECT * FROM news_sources WHERE rss_url = ? LIMIT 1", (rss_url,)
            )
            return NewsSource(**dict(row)) if row else None
        except Exception as e:
            raise DatabaseError(
                f"Failed to look up source: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_by_id(self, source_id: int) -> Optional[NewsSource]:
        try:
            row = self.db.execute_one("SELECT * FROM news_sources WHERE id = ?", (source_id,))
            return NewsSource(**dict(row)) if row else None
        except Exception as e:
            raise DatabaseError(
                f"Failed to get source {source_id}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def update_last_fetched(self, source_id: int, fetched_at: Optional[datetime] = None) -> None:
        try:
            self.db.execute_update(
                "UPDATE news_sources SET last_fetched_at = ? WHERE id = ?",
                (to_db_timestamp(fetched_at or utc_now()), source_id),
            )
        except Exception as e:
            self.logger.error(f"Failed to update last_fetched_at for source {source_id}: {e}")
            raise DatabaseError(
                f"Failed to update source: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
