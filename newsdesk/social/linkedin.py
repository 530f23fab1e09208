"""
LinkedIn Publisher
==================

Native video upload and article sharing through the LinkedIn UGC API.
"""

from typing import Any, Dict, Optional

from ..utils.exceptions import SocialPublishError
from .base import BasePublisher, PublishResult

API_BASE = "https://api.linkedin.com/v2"
REGISTER_UPLOAD_URL = f"{API_BASE}/assets?action=registerUpload"
UGC_POSTS_URL = f"{API_BASE}/ugcPosts"
VIDEO_RECIPE = "urn:li:digitalmediaRecipe:feedshare-video"
UPLOAD_MECHANISM = "com.linkedin.digitalmedia.uploading.MediaUploadHttpRequest"
MAX_COMMENTARY_CHARS = 2900


def build_commentary(title: str, description: str, url: str) -> str:
    return f"{title}\n\n{description}\n\n🔗 Read more: {url}"[:MAX_COMMENTARY_CHARS]


def post_url_for(post_id: str) -> str:
    return f"https://www.linkedin.com/feed/update/{post_id}"


class LinkedInPublisher(BasePublisher):
    """Posts videos and article links to a LinkedIn member feed."""

    platform = "linkedin"

    def _headers(self, restli: bool = True) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.settings.linkedin_access_token}",
            "Content-Type": "application/json",
        }
        if restli:
            headers["X-Restli-Protocol-Version"] = "2.0.0"
        return headers

    def register_upload(self) -> Dict[str, str]:
        """Register a video upload.

        Returns:
            Dict with ``upload_url`` and ``asset`` URN
        """
        body = {
            "registerUploadRequest": {
                "recipes": [VIDEO_RECIPE],
                "owner": self.settings.linkedin_person_urn,
                "serviceRelationships": [
                    {"relationshipType": "OWNER", "identifier": "urn:li:userGeneratedContent"}
                ],
            }
        }
        response = self.session.post(
            REGISTER_UPLOAD_URL, json=body, headers=self._headers(restli=False), timeout=self.timeout
        )
        data = self.check_response(response, "Register upload")
        try:
            value = data["value"]
            return {
                "upload_url": value["uploadMechanism"][UPLOAD_MECHANISM]["uploadUrl"],
                "asset": value["asset"],
            }
        except (KeyError, TypeError) as e:
            raise SocialPublishError(
                f"Unexpected registerUpload response: missing {e}", platform=self.platform
            ) from e

    def upload_video(self, upload_url: str, video: bytes) -> None:
        response = self.session.put(
            upload_url,
            data=video,
            headers={
                "Authorization": f"Bearer {self.settings.linkedin_access_token}",
                "Content-Type": "application/octet-stream",
            },
            timeout=max(self.timeout, 300),
        )
        self.check_response(response, "Video upload")

    def _create_post(self, share_content: Dict[str, Any]) -> str:
        body = {
            "author": self.settings.linkedin_person_urn,
            "lifecycleState": "PUBLISHED",
            "specificContent": {"com.linkedin.ugc.ShareContent": share_content},
            "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
        }
        response = self.session.post(
            UGC_POSTS_URL, json=body, headers=self._headers(), timeout=self.timeout
        )
        data = self.check_response(response, "Create post")
        post_id = data.get("id") or data.get("activity") or response.headers.get("x-restli-id")
        if not post_id:
            raise SocialPublishError("LinkedIn returned no post id", platform=self.platform)
        return post_id

    def publish_video(self, video: bytes, title: str, description: str, url: str) -> PublishResult:
        """Upload a native video and share it with commentary.

        Raises:
            SocialPublishError: If any API step fails
        """
        self.require_configured()
        self.logger.info(f"Uploading {len(video) / 1024 / 1024:.2f} MB video to LinkedIn")

        registration = self.register_upload()
        self.upload_video(registration["upload_url"], video)

        post_id = self._create_post({
            "shareCommentary": {"text": build_commentary(title, description, url)},
            "shareMediaCategory": "VIDEO",
            "media": [{"status": "READY", "media": registration["asset"]}],
        })
        self.logger.info(f"LinkedIn video post created: {post_id}")
        return PublishResult(platform=self.platform, success=True, post_id=post_id,
                             post_url=post_url_for(post_id))

    def post_article(
        self, title: str, description: str, url: str, image_url: Optional[str] = None
    ) -> PublishResult:
        """Share an article link with preview."""
        self.require_configured()

        media: Dict[str, Any] = {
            "status": "READY",
            "originalUrl": url,
            "title": {"text": title},
            "description": {"text": description[:200]},
        }
        if image_url:
            media["thumbnails"] = [{"url": image_url}]

        post_id = self._create_post({
            "shareCommentary": {"text": build_commentary(title, description, url)},
            "shareMediaCategory": "ARTICLE",
            "media": [media],
        })
        self.logger.info(f"LinkedIn article post created: {post_id}")
        return PublishResult(platform=self.platform, success=True, post_id=post_id,
                             post_url=post_url_for(post_id))
