"""
HTTP Application
================

FastAPI app exposing the pipeline operations and the Telegram webhook.

Run with ``python main.py serve`` or ``uvicorn newsdesk.api.app:create_app --factory``.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional, Type

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config.settings import get_settings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import (
    NewsdeskError,
    RateLimitExceeded,
    ResourceNotFound,
    ValidationError,
    handle_exception,
)
from .routes import router
from .services import Services

logger = get_logger_for_component("api")

EXCEPTION_STATUS_MAP: Dict[Type[NewsdeskError], int] = {
    ValidationError: 400,
    ResourceNotFound: 404,
    RateLimitExceeded: 429,
}


def status_for(exc: NewsdeskError) -> int:
    for exc_type, status_code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def newsdesk_error_handler(request: Request, exc: NewsdeskError) -> JSONResponse:
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": exc.message,
            "code": exc.error_code.value if exc.error_code else None,
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    error = handle_exception(exc, logger, f"{request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": error.user_message,
            "code": error.error_code.value if error.error_code else None,
        },
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    logger.info(f"{settings.app_name} {settings.version} API starting")
    yield
    logger.info("API shutting down")


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        services: Service graph to use; built from the configured database
            when omitted
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.services = services or Services()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(NewsdeskError, newsdesk_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/health", tags=["health"])
    async def health() -> Dict[str, object]:
        db_info = app.state.services.db.get_database_info()
        return {
            "status": "healthy",
            "version": settings.version,
            "database": db_info["table_counts"],
            "telegram": settings.telegram.is_configured,
            "ai": settings.azure.is_configured,
            "social": settings.social.configured_platforms(),
        }

    app.include_router(router)
    return app
