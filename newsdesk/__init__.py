"""
Newsdesk - News Automation Back End
===================================

RSS ingestion, AI moderation and multilingual publishing for a personal
news site, with a Telegram moderation loop and social cross-posting.

Main Components:
- Database: SQLite with connection pooling and schema management
- Configuration: Environment variables with Pydantic validation
- Processing: RSS fetch, pre-moderation, article analysis, rewriting
- Telegram: Moderation messages and callback handling
- Social: LinkedIn, Facebook and YouTube video cross-posting
- API: FastAPI routes for every pipeline operation
"""

__version__ = "1.0.0"
__author__ = "Newsdesk Development Team"
__description__ = "News automation back end with AI moderation"

# Core imports for easy access
from .config.settings import get_settings
from .database.connection import get_db_manager
from .database.schema import DatabaseSchema
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import NewsdeskError

__all__ = [
    "get_settings",
    "get_db_manager",
    "DatabaseSchema",
    "configure_application_logging",
    "get_logger_for_component",
    "NewsdeskError",
]
