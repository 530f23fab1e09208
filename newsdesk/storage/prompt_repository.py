"""
Prompt and Settings Repository
==============================

Access to the editable AI prompt templates and the runtime key/value
switches kept in ``api_settings``.
"""

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.models import AIPrompt, utc_now, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


class PromptType:
    PRE_MODERATION = "pre_moderation"
    RSS_ARTICLE_ANALYSIS = "rss_article_analysis"
    NEWS_REWRITE = "news_rewrite"


class PromptRepository:
    """Repository for AI prompt templates."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("prompt_repository")

    def create_prompt(self, prompt: AIPrompt) -> int:
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO ai_prompts (
                        name, prompt_type, prompt_text, is_active, usage_count,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        prompt.name,
                        prompt.prompt_type,
                        prompt.prompt_text,
                        prompt.is_active,
                        prompt.usage_count,
                        to_db_timestamp(prompt.created_at or utc_now()),
                        to_db_timestamp(prompt.updated_at or utc_now()),
                    ),
                )
                conn.commit()
                return cursor.lastrowid
        except Exception as e:
            self.logger.error(f"Failed to create prompt: {e}")
            raise DatabaseError(
                f"Failed to create prompt: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def get_active(self, prompt_type: str) -> Optional[AIPrompt]:
        """Most recently updated active prompt of the given type.

        Args:
            prompt_type: One of the PromptType values

        Returns:
            Prompt or None when none is configured
        """
        try:
            row = self.db.execute_one(
                """
                SELECT * FROM ai_prompts
                WHERE prompt_type = ? AND is_active = 1
                ORDER BY updated_at DESC, id DESC
                LIMIT 1
                """,
                (prompt_type,),
            )
            return AIPrompt(**dict(row)) if row else None
        except Exception as e:
            self.logger.error(f"Failed to load {prompt_type} prompt: {e}")
            raise DatabaseError(
                f"Failed to load prompt: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def increment_usage(self, prompt_id: int) -> None:
        """Bump the usage counter. Failures are logged, not raised."""
        try:
            self.db.execute_update(
                "UPDATE ai_prompts SET usage_count = usage_count + 1 WHERE id = ?",
                (prompt_id,),
            )
        except Exception as e:
            self.logger.warning(f"Failed to increment usage for prompt {prompt_id}: {e}")


class SettingsRepository:
    """Runtime switches stored in the ``api_settings`` table."""

    AUTO_PUBLISH_KEY = "ENABLE_AUTO_PUBLISH"

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("settings_repository")

    def get(self, key: str) -> Optional[str]:
        try:
            row = self.db.execute_one(
                "SELECT key_value FROM api_settings WHERE key_name = ?", (key,)
            )
            return row["key_value"] if row else None
        except Exception as e:
            raise DatabaseError(
                f"Failed to read setting {key}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def set(self, key: str, value: str) -> None:
        try:
            self.db.execute_update(
                """
                INSERT INTO api_settings (key_name, key_value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key_name) DO UPDATE SET
                    key_value = excluded.key_value, updated_at = excluded.updated_at
                """,
                (key, value, to_db_timestamp(utc_now())),
            )
        except Exception as e:
            raise DatabaseError(
                f"Failed to write setting {key}: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def is_auto_publish_enabled(self) -> bool:
        return self.get(self.AUTO_PUBLISH_KEY) == "true"
