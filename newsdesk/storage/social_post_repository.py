"""
Social Post Repository
======================

Tracks cross-posts per content item, platform and language so the same
video is never uploaded twice.
"""

from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import (
    SocialMediaPost, SocialPlatform, PostStatus, BlogPost, utc_now, to_db_timestamp,
)
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


class SocialPostRepository:
    """Repository for social_media_posts rows."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("social_post_repository")

    def find_posted(
        self, content_id: str, platform: SocialPlatform, language: str
    ) -> Optional[SocialMediaPost]:
        """Return the successful post for this content, platform and language."""
        try:
            row = self.db.execute_one(
                """
                SELECT * FROM social_media_posts
                WHERE content_id = ? AND platform = ? AND language = ? AND status = 'posted'
                ORDER BY id DESC LIMIT 1
                """,
                (content_id, SocialPlatform(platform).value, language),
            )
            return SocialMediaPost(**dict(row)) if row else None
        except Exception as e:
            raise DatabaseError(
                f"Failed to look up social post: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def create_pending(
        self,
        content_id: str,
        platform: SocialPlatform,
        language: str,
        content_type: str = "news",
    ) -> int:
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO social_media_posts (
                        content_id, content_type, platform, language, status, created_at
                    ) VALUES (?, ?, ?, ?, 'pending', ?)
                    """,
                    (
                        content_id,
                        content_type,
                        SocialPlatform(platform).value,
                        language,
                        to_db_timestamp(utc_now()),
                    ),
                )
                conn.commit()
                return cursor.lastrowid
        except Exception as e:
            self.logger.error(f"Failed to create social post record: {e}")
            raise DatabaseError(
                f"Failed to create social post: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def mark_posted(self, post_id: int, platform_post_id: str, platform_post_url: Optional[str]) -> None:
        self._update_status(
            post_id, PostStatus.POSTED,
            platform_post_id=platform_post_id,
            platform_post_url=platform_post_url,
        )

    def mark_failed(self, post_id: int, error_message: str) -> None:
        self._update_status(post_id, PostStatus.FAILED, error_message=error_message[:1000])

    def _update_status(
        self,
        post_id: int,
        status: PostStatus,
        platform_post_id: Optional[str] = None,
        platform_post_url: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        posted_at = to_db_timestamp(utc_now()) if status == PostStatus.POSTED else None
        try:
            self.db.execute_update(
                """
                UPDATE social_media_posts
                SET status = ?, platform_post_id = ?, platform_post_url = ?,
                    error_message = ?, posted_at = ?
                WHERE id = ?
                """,
                (status.value, platform_post_id, platform_post_url, error_message, posted_at, post_id),
            )
        except Exception as e:
            self.logger.error(f"Failed to update social post {post_id}: {e}")
            raise DatabaseError(
                f"Failed to update social post: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def list_for_content(self, content_id: str) -> List[SocialMediaPost]:
        rows = self.db.execute_query(
            "SELECT * FROM social_media_posts WHERE content_id = ? ORDER BY id",
            (content_id,),
        )
        return [SocialMediaPost(**dict(row)) for row in rows]


class BlogRepository:
    """Read access to blog posts for cross-posting."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("blog_repository")

    def create(self, post: BlogPost) -> str:
        data = post.model_dump()
        columns = list(data.keys())
        for field in ("published_at", "created_at"):
            data[field] = to_db_timestamp(data[field])
        try:
            with self.db.get_connection() as conn:
                conn.execute(
                    f"INSERT INTO blog_posts ({', '.join(columns)}) "
                    f"VALUES ({', '.join('?' for _ in columns)})",
                    tuple(data[column] for column in columns),
                )
                conn.commit()
            return post.id
        except Exception as e:
            raise DatabaseError(
                f"Failed to create blog post: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_by_id(self, post_id: str) -> Optional[BlogPost]:
        try:
            row = self.db.execute_one("SELECT * FROM blog_posts WHERE id = ?", (post_id,))
            return BlogPost(**dict(row)) if row else None
        except Exception as e:
            raise DatabaseError(
                f"Failed to get blog post {post_id}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e
