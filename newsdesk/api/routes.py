"""
Function Routes
===============

One POST endpoint per pipeline operation under ``/functions``.
Request bodies use the camelCase keys the site and schedulers send.
"""

import hmac
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..contact.email_sender import ContactRequest
from ..processing.article_analyzer import AnalysisRequest
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import ValidationError, handle_exception
from ..utils.validators import URLValidator
from .services import Services

logger = get_logger_for_component("api")

router = APIRouter(prefix="/functions", tags=["functions"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NewsIdRequest(CamelModel):
    news_id: str = Field(..., min_length=1)


class RewriteRequest(NewsIdRequest):
    title: Optional[str] = None
    content: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None


class PreModerationRequest(CamelModel):
    title: str = Field(..., min_length=1)
    content: str = ""
    url: str = ""


class MonitorRequest(CamelModel):
    batch_index: int = Field(default=0, ge=0)
    batch_size: Optional[int] = Field(default=None, ge=1)


class StaleRequest(CamelModel):
    hours: Optional[int] = Field(default=None, ge=1)


class PreviewRequest(CamelModel):
    rss_url: str = Field(..., min_length=1)
    limit: int = Field(default=5, ge=1, le=50)


class VideoPostRequest(NewsIdRequest):
    file_id: str = Field(..., min_length=1)
    platforms: List[str] = Field(default_factory=lambda: ["linkedin", "facebook", "youtube"])
    language: str = "en"


class ArticleShareRequest(CamelModel):
    news_id: Optional[str] = None
    blog_post_id: Optional[str] = None
    language: str = "en"
    content_type: str = "news"


def get_services(request: Request) -> Services:
    return request.app.state.services


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return (
        request.headers.get("cf-connecting-ip")
        or (request.client.host if request.client else None)
        or "unknown"
    )


@router.post("/fetch-news")
async def fetch_news(services: Services = Depends(get_services)) -> Dict[str, Any]:
    report = await services.news_fetcher.run()
    return report.to_dict()


@router.post("/fetch-rss-preview")
async def fetch_rss_preview(
    body: PreviewRequest, services: Services = Depends(get_services)
) -> Dict[str, Any]:
    rss_url = URLValidator.validate_url(body.rss_url, field_name="rssUrl")
    result = await services.feed_fetcher.fetch(rss_url)
    if not result.success:
        return {"error": result.error, "articles": [], "total": 0}
    articles = [
        {
            "title": item.title,
            "link": item.url,
            "description": item.description,
            "pubDate": item.pub_date.isoformat() if item.pub_date else None,
            "imageUrl": item.image_url,
            "videoUrl": item.video_url,
            "videoType": item.video_type,
        }
        for item in result.items
    ]
    return {"articles": articles[:body.limit], "total": len(articles)}


@router.post("/pre-moderate-news")
async def pre_moderate_news(
    body: PreModerationRequest, services: Services = Depends(get_services)
) -> Dict[str, Any]:
    result = await services.pre_moderator.moderate(body.title, body.content, body.url)
    return result.model_dump()


@router.post("/analyze-rss-article")
async def analyze_rss_article(
    body: AnalysisRequest, services: Services = Depends(get_services)
) -> Dict[str, Any]:
    outcome = await services.analyzer.analyze(body)
    if outcome.already_exists:
        return {
            "success": False,
            "error": outcome.error,
            "newsId": outcome.news_id,
            "telegramMessageId": outcome.telegram_message_id,
        }
    if not outcome.success:
        return {"success": False, "error": outcome.error}
    return {
        "success": True,
        "newsId": outcome.news_id,
        "analysis": outcome.analysis.model_dump(),
        "telegramMessageId": outcome.telegram_message_id,
    }


@router.post("/process-rss-news")
async def process_rss_news(
    body: RewriteRequest, services: Services = Depends(get_services)
) -> Dict[str, Any]:
    result = await services.rewriter.rewrite(
        body.news_id, title=body.title, content=body.content, url=body.url, image_url=body.image_url
    )
    return {"success": True, "newsId": result.news_id, "slugs": result.slugs, "tags": result.tags}


@router.post("/monitor-rss-sources")
async def monitor_rss_sources(
    body: MonitorRequest, services: Services = Depends(get_services)
) -> Dict[str, Any]:
    report = await services.monitor.run(body.batch_index, body.batch_size)
    return {"success": True, "stats": report.to_dict()}


@router.post("/send-rss-to-telegram")
async def send_rss_to_telegram(
    body: NewsIdRequest, services: Services = Depends(get_services)
) -> Dict[str, Any]:
    result = await services.dispatcher.dispatch(body.news_id)
    response: Dict[str, Any] = {"success": result.success, "newsId": result.news_id}
    if result.auto_publish:
        response["autoPublish"] = True
    if result.telegram_message_id:
        response["messageId"] = result.telegram_message_id
    if result.error:
        response["message"] = result.error
    return response


@router.post("/auto-reject-stale-news")
async def auto_reject_stale_news(
    body: Optional[StaleRequest] = None, services: Services = Depends(get_services)
) -> Dict[str, Any]:
    result = await services.stale_rejector.run(body.hours if body else None)
    return result.to_dict()


@router.post("/telegram-webhook")
async def telegram_webhook(request: Request, services: Services = Depends(get_services)):
    secret = services.settings.telegram.webhook_secret
    if secret:
        header = request.headers.get("X-Telegram-Bot-Api-Secret-Token")
        if not header or not hmac.compare_digest(header, secret):
            logger.warning(f"Invalid webhook secret token from {client_ip(request)}")
            return JSONResponse(status_code=403, content={"ok": False})

    # Telegram redelivers any update not answered with 200
    try:
        payload = await request.json()
    except ValueError as e:
        logger.warning(f"Ignoring malformed webhook body: {e}")
        return {"ok": True}

    try:
        await services.callback_handler.handle_update(payload)
    except Exception as e:
        handle_exception(e, logger, "telegram webhook")
    return {"ok": True}


@router.post("/send-contact-email")
async def send_contact_email(
    body: ContactRequest, request: Request, services: Services = Depends(get_services)
):
    response = await services.contact_service.submit(body, client_ip(request))
    return JSONResponse(status_code=response.status_code, content=response.to_dict())


@router.post("/post-video")
async def post_video(
    body: VideoPostRequest, services: Services = Depends(get_services)
) -> Dict[str, Any]:
    report = await services.cross_poster.post_video(
        body.news_id, body.file_id, body.platforms, body.language
    )
    return report.to_dict()


@router.post("/post-to-linkedin")
async def post_to_linkedin(
    body: ArticleShareRequest, services: Services = Depends(get_services)
) -> Dict[str, Any]:
    content_id = body.news_id if body.content_type == "news" else body.blog_post_id
    if not content_id:
        raise ValidationError(
            "Invalid request: must provide either newsId or blogPostId with corresponding contentType",
            field_name="contentType",
        )
    result = await services.cross_poster.share_article(content_id, body.language, body.content_type)
    response = result.to_dict()
    if result.success:
        response["message"] = f"Posted to LinkedIn ({body.language.upper()})"
    return response
