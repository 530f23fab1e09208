"""
Newsdesk Database Schema
========================

SQLite schema for the content pipeline:
- news_sources: RSS/Telegram sources with monitoring tier
- news: ingested articles, moderation state and rewritten translations
- blog_posts: long-form posts that share the cross-posting flow
- ai_prompts: editable prompt templates by type
- api_settings: runtime key/value switches (e.g. ENABLE_AUTO_PUBLISH)
- social_media_posts: per-platform cross-posting records
- contact_forms: contact form submissions
"""

import sqlite3
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

TABLES = [
    'news_sources',
    'news',
    'blog_posts',
    'ai_prompts',
    'api_settings',
    'social_media_posts',
    'contact_forms',
]


class DatabaseSchema:
    """Database schema manager for the Newsdesk SQLite database."""

    def __init__(self, db_path: str = "data/newsdesk.db"):
        """Initialize database schema manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables with indexes."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("PRAGMA foreign_keys = ON")

            self._create_news_sources_table(conn)
            self._create_news_table(conn)
            self._create_blog_posts_table(conn)
            self._create_ai_prompts_table(conn)
            self._create_api_settings_table(conn)
            self._create_social_media_posts_table(conn)
            self._create_contact_forms_table(conn)

            self._create_indexes(conn)

            conn.commit()
            logger.info("Database schema created successfully")

    def _create_news_sources_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS news_sources (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                url TEXT,
                rss_url TEXT,
                source_type TEXT NOT NULL DEFAULT 'rss' CHECK (source_type IN ('rss', 'telegram', 'manual')),
                tier INTEGER NOT NULL DEFAULT 1,
                is_active BOOLEAN DEFAULT TRUE,
                last_fetched_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

    def _create_news_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS news (
                id TEXT PRIMARY KEY,
                original_title TEXT NOT NULL,
                original_content TEXT,
                original_url TEXT,
                rss_source_url TEXT,
                source_id INTEGER,
                source_type TEXT NOT NULL DEFAULT 'rss',
                image_url TEXT,
                video_url TEXT,
                video_type TEXT,
                rss_analysis TEXT,  -- JSON ArticleAnalysis
                pre_moderation_status TEXT NOT NULL DEFAULT 'pending'
                    CHECK (pre_moderation_status IN ('pending', 'approved', 'rejected', 'published')),
                rejection_reason TEXT,
                moderation_checked_at TIMESTAMP,
                telegram_message_id INTEGER,
                title_en TEXT,
                title_no TEXT,
                title_ua TEXT,
                content_en TEXT,
                content_no TEXT,
                content_ua TEXT,
                description_en TEXT,
                description_no TEXT,
                description_ua TEXT,
                slug_en TEXT,
                slug_no TEXT,
                slug_ua TEXT,
                tags TEXT DEFAULT '[]',  -- JSON array
                is_rewritten BOOLEAN DEFAULT FALSE,
                is_published BOOLEAN DEFAULT FALSE,
                published_at TIMESTAMP,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP,
                FOREIGN KEY (source_id) REFERENCES news_sources(id) ON DELETE SET NULL
            )
        """
        )

    def _create_blog_posts_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS blog_posts (
                id TEXT PRIMARY KEY,
                title_en TEXT NOT NULL,
                title_no TEXT,
                title_ua TEXT,
                description_en TEXT,
                description_no TEXT,
                description_ua TEXT,
                content_en TEXT,
                slug_en TEXT,
                slug_no TEXT,
                slug_ua TEXT,
                is_published BOOLEAN DEFAULT FALSE,
                published_at TIMESTAMP,
                created_at TIMESTAMP NOT NULL
            )
        """
        )

    def _create_ai_prompts_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS ai_prompts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                prompt_type TEXT NOT NULL,
                prompt_text TEXT NOT NULL,
                is_active BOOLEAN DEFAULT TRUE,
                usage_count INTEGER DEFAULT 0,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
        """
        )

    def _create_api_settings_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS api_settings (
                key_name TEXT PRIMARY KEY,
                key_value TEXT,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

    def _create_social_media_posts_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS social_media_posts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                content_id TEXT NOT NULL,
                content_type TEXT NOT NULL DEFAULT 'news' CHECK (content_type IN ('news', 'blog')),
                platform TEXT NOT NULL CHECK (platform IN ('linkedin', 'facebook', 'youtube')),
                language TEXT NOT NULL DEFAULT 'en',
                status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'posted', 'failed')),
                platform_post_id TEXT,
                platform_post_url TEXT,
                error_message TEXT,
                posted_at TIMESTAMP,
                created_at TIMESTAMP NOT NULL
            )
        """
        )

    def _create_contact_forms_table(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS contact_forms (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                email TEXT NOT NULL,
                subject TEXT,
                message TEXT NOT NULL,
                ip_address TEXT,
                created_at TIMESTAMP NOT NULL
            )
        """
        )

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_news_original_url ON news(original_url)",
            "CREATE INDEX IF NOT EXISTS idx_news_rss_source_url ON news(rss_source_url)",
            "CREATE INDEX IF NOT EXISTS idx_news_created_at ON news(created_at)",
            "CREATE INDEX IF NOT EXISTS idx_news_status ON news(pre_moderation_status, is_published)",
            "CREATE INDEX IF NOT EXISTS idx_sources_active ON news_sources(is_active, source_type, tier)",
            "CREATE INDEX IF NOT EXISTS idx_prompts_type ON ai_prompts(prompt_type, is_active)",
            "CREATE INDEX IF NOT EXISTS idx_social_posts_content ON social_media_posts(content_id, platform, language)",
        ]
        for statement in indexes:
            conn.execute(statement)

    def verify_schema(self) -> bool:
        """Check that every expected table exists."""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        existing = {row[0] for row in rows}
        missing = [table for table in TABLES if table not in existing]
        if missing:
            logger.error(f"Missing tables: {', '.join(missing)}")
            return False
        return True
