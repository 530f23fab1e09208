"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for Newsdesk tests.

- Session-scoped database created once, cleared between tests
- Repository fixtures bound to the clean database
- Mocked AI client and Telegram notifier for pipeline tests
"""

import json
import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

TEST_DIR = Path(tempfile.gettempdir()) / "newsdesk_tests"

# Set test environment variables before any imports
os.environ["NEWSDESK_DATABASE__PATH"] = str(TEST_DIR / "newsdesk_test.db")
os.environ["NEWSDESK_LOGGING__FILE_PATH"] = str(TEST_DIR / "newsdesk_test.log")
os.environ["NEWSDESK_TELEGRAM__WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["NEWSDESK_PROCESSING__SOURCE_DELAY_SECONDS"] = "0"
os.environ["NEWSDESK_PROCESSING__ARTICLE_DELAY_SECONDS"] = "0"
os.environ["NEWSDESK_PROCESSING__TELEGRAM_DELAY_SECONDS"] = "0"
os.environ["NEWSDESK_DEBUG"] = "true"


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def session_test_db():
    """Session-scoped test database (created once for all tests).

    Database name: newsdesk_test.db in the system temp directory.
    """
    from newsdesk.database.schema import DatabaseSchema

    TEST_DIR.mkdir(exist_ok=True)
    db_path = TEST_DIR / "newsdesk_test.db"

    if db_path.exists():
        db_path.unlink()

    schema = DatabaseSchema(str(db_path))
    schema.create_tables()

    yield str(db_path)

    try:
        db_path.unlink()
    except FileNotFoundError:
        pass


@pytest.fixture
def clean_db(session_test_db):
    """Clean database fixture (clears data between tests).

    Returns:
        str: Path to clean database ready for testing
    """
    from newsdesk.database.connection import DatabaseConnection
    from newsdesk.database.schema import TABLES

    conn = DatabaseConnection(session_test_db, pool_size=2)

    with conn.get_connection() as db:
        # Children first for foreign keys
        for table in reversed(TABLES):
            db.execute(f"DELETE FROM {table}")
        db.commit()

    conn.close_all_connections()

    yield session_test_db


@pytest.fixture
def db_connection(clean_db):
    """Create a database connection manager for testing."""
    from newsdesk.database.connection import DatabaseConnection

    connection = DatabaseConnection(clean_db, pool_size=2)
    yield connection

    connection.close_all_connections()


# ============================================================================
# Repository Fixtures
# ============================================================================


@pytest.fixture
def news_repo(db_connection):
    from newsdesk.storage.news_repository import NewsRepository
    return NewsRepository(db_connection)


@pytest.fixture
def source_repo(db_connection):
    from newsdesk.storage.source_repository import SourceRepository
    return SourceRepository(db_connection)


@pytest.fixture
def prompt_repo(db_connection):
    from newsdesk.storage.prompt_repository import PromptRepository
    return PromptRepository(db_connection)


@pytest.fixture
def settings_repo(db_connection):
    from newsdesk.storage.prompt_repository import SettingsRepository
    return SettingsRepository(db_connection)


@pytest.fixture
def social_post_repo(db_connection):
    from newsdesk.storage.social_post_repository import SocialPostRepository
    return SocialPostRepository(db_connection)


@pytest.fixture
def blog_repo(db_connection):
    from newsdesk.storage.social_post_repository import BlogRepository
    return BlogRepository(db_connection)


@pytest.fixture
def contact_repo(db_connection):
    from newsdesk.storage.contact_repository import ContactRepository
    return ContactRepository(db_connection)


# ============================================================================
# Sample Data
# ============================================================================


@pytest.fixture
def seeded_prompts(prompt_repo):
    """Active prompts for every pipeline step."""
    from newsdesk.database.models import AIPrompt
    from newsdesk.storage.prompt_repository import PromptType

    prompts = {
        PromptType.PRE_MODERATION: "Moderate this post.\nTitle: {title}\nContent: {content}\nURL: {url}",
        PromptType.RSS_ARTICLE_ANALYSIS: (
            "Analyze.\nSource: {source}\nTitle: {title}\nURL: {url}\n"
            "Description: {description}\nContent: {content}"
        ),
        PromptType.NEWS_REWRITE: "Rewrite.\nTitle: {title}\nContent: {content}\nURL: {url}",
    }
    ids = {}
    for prompt_type, text in prompts.items():
        ids[prompt_type] = prompt_repo.create_prompt(
            AIPrompt(name=f"{prompt_type} prompt", prompt_type=prompt_type, prompt_text=text)
        )
    return ids


@pytest.fixture
def sample_source(source_repo):
    """Stored active RSS source."""
    from newsdesk.database.models import NewsSource

    source = NewsSource(name="Tech Daily", url="https://techdaily.example", rss_url="https://techdaily.example/feed.xml")
    source.id = source_repo.create_source(source)
    return source


@pytest.fixture
def sample_news():
    """Unsaved news record with an analysis attached."""
    from newsdesk.database.models import ArticleAnalysis, News

    return News(
        original_title="OpenAI releases new reasoning model for developers",
        original_content="The company announced a model that plans before answering. " * 20,
        original_url="https://techdaily.example/articles/reasoning-model",
        rss_source_url="https://techdaily.example/articles/reasoning-model",
        image_url="https://techdaily.example/images/model.jpg",
        rss_analysis=ArticleAnalysis(
            summary="A new reasoning model is available through the API.",
            relevance_score=8,
            category="ai_research",
            key_points=["Plans before answering", "Available to developers"],
            recommended_action="publish",
        ),
    )


@pytest.fixture
def rewrite_payload():
    """Valid multilingual rewrite reply as the model returns it."""
    return {
        "en": {"title": "New reasoning model for developers", "content": "English body.", "description": "English summary."},
        "no": {"title": "Ny resonneringsmodell for utviklere", "content": "Norsk tekst.", "description": "Norsk sammendrag."},
        "ua": {"title": "Нова модель міркувань для розробників", "content": "Український текст.", "description": "Короткий опис."},
        "tags": ["ai", "openai", "models"],
    }


# ============================================================================
# Client Mocks
# ============================================================================


@pytest.fixture
def completion():
    """Factory wrapping a dict or raw string as a completion result."""
    from newsdesk.ai.azure_client import CompletionResult

    def _make(payload):
        content = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
        return CompletionResult(content=content, deployment="test-deployment", tokens_used=42)

    return _make


@pytest.fixture
def mock_ai_client():
    """Configured AI client whose ``complete`` is an AsyncMock."""
    client = MagicMock()
    client.is_configured = True
    client.complete = AsyncMock()
    return client


@pytest.fixture
def mock_notifier():
    """Configured Telegram notifier that records sends."""
    from newsdesk.delivery.telegram_notifier import SendResult

    notifier = MagicMock()
    notifier.bot = None
    notifier.is_configured = True
    notifier.require_configured = MagicMock()
    notifier.send_message = AsyncMock(return_value=SendResult(success=True, message_id=4242))
    notifier.answer_callback = AsyncMock()
    notifier.append_to_message = AsyncMock()
    return notifier
