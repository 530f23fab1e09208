"""
Newsdesk Logging Configuration
==============================

Console output goes through rich; the log file gets one JSON object per
line. Every component logs through a ``ComponentLogger`` that stamps the
component name and, where known, the news item, RSS source or social
platform onto each record.
"""

import json
import logging
import logging.handlers
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from rich.logging import RichHandler

ROOT_LOGGER = "newsdesk"

# Record attributes lifted to the top level of JSON log lines
CONTEXT_FIELDS = ("component", "news_id", "source", "platform")

QUIET_LOGGERS = {
    "urllib3": logging.WARNING,
    "requests": logging.WARNING,
    "aiohttp": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "openai": logging.WARNING,
    "telegram": logging.INFO,
    "uvicorn.access": logging.WARNING,
}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, context fields first."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        entry["msg"] = record.getMessage()

        details = getattr(record, "details", None)
        if details:
            entry["details"] = details
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class ComponentLogger(logging.LoggerAdapter):
    """Adapter that attaches component context to every record.

    Extra keyword context passed at call time is nested under ``details``
    so it can never clash with built-in record attributes.
    """

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        call_extra = kwargs.pop("extra", None) or {}
        kwargs["extra"] = {**self.extra, "details": call_extra} if call_extra else dict(self.extra)
        return msg, kwargs

    def bind(self, **context: Any) -> "ComponentLogger":
        """Logger with additional context, e.g. the news item being processed."""
        merged = dict(self.extra)
        merged.update({k: v for k, v in context.items() if v is not None})
        return ComponentLogger(self.logger, merged)


def get_logger_for_component(
    component_name: str,
    news_id: Optional[str] = None,
    source: Optional[str] = None,
    platform: Optional[str] = None,
) -> ComponentLogger:
    """Get a logger for one pipeline component.

    Args:
        component_name: Component name, e.g. 'news_fetcher' or 'social_linkedin'
        news_id: News record being handled (optional)
        source: RSS source name (optional)
        platform: Social platform (optional)

    Returns:
        ComponentLogger under the ``newsdesk`` logger hierarchy
    """
    context = {"component": component_name}
    if news_id:
        context["news_id"] = news_id
    if source:
        context["source"] = source
    if platform:
        context["platform"] = platform
    return ComponentLogger(logging.getLogger(f"{ROOT_LOGGER}.{component_name}"), context)


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/newsdesk.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure the ``newsdesk`` logger for the CLI or the API server.

    Args:
        log_level: Level name for newsdesk loggers
        log_file: Rotating JSON log file; no file logging when None
        enable_console: Log to the terminal
        structured_logging: Emit JSON lines on the console instead of rich output
        max_file_size_mb: Rotation threshold for the log file
        backup_count: Rotated files to keep

    Returns:
        The configured root ``newsdesk`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if enable_console:
        if structured_logging:
            console_handler: logging.Handler = logging.StreamHandler()
            console_handler.setFormatter(JsonLineFormatter())
        else:
            console_handler = RichHandler(rich_tracebacks=True, show_path=False)
            console_handler.setFormatter(logging.Formatter("[%(component)s] %(message)s", defaults={"component": "-"}))
        logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JsonLineFormatter())
        logger.addHandler(file_handler)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    return logger


class PerformanceLogger:
    """Times a block and logs how long it took.

    Example:
        with PerformanceLogger(logger, "article analysis", url=url):
            ...
    """

    def __init__(self, logger: ComponentLogger, operation: str, **context: Any):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.duration = 0.0
        self._started: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        self._started = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration = time.perf_counter() - self._started
        context = {**self.context, "duration_seconds": round(self.duration, 3)}
        if exc_type is None:
            self.logger.info(f"Completed {self.operation} in {self.duration:.2f}s", extra=context)
        else:
            self.logger.warning(
                f"{self.operation} failed after {self.duration:.2f}s: {exc_val}", extra=context
            )
