"""
YouTube Publisher
=================

Uploads videos as unlisted YouTube videos using an OAuth refresh token.
"""

import json
from typing import List, Optional

from ..utils.exceptions import SocialPublishError, ErrorCode
from .base import BasePublisher, PublishResult

TOKEN_URL = "https://oauth2.googleapis.com/token"
UPLOAD_URL = (
    "https://www.googleapis.com/upload/youtube/v3/videos"
    "?uploadType=multipart&part=snippet,status"
)
MULTIPART_BOUNDARY = "-------314159265358979323846"
PEOPLE_AND_BLOGS_CATEGORY = "22"
MAX_TITLE_CHARS = 100
MAX_DESCRIPTION_CHARS = 5000


def build_multipart_body(metadata: dict, video: bytes, boundary: str = MULTIPART_BOUNDARY) -> bytes:
    """Encode metadata and video as a multipart/related request body."""
    delimiter = f"\r\n--{boundary}\r\n".encode()
    closing = f"\r\n--{boundary}--".encode()
    return b"".join([
        delimiter,
        b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
        json.dumps(metadata, ensure_ascii=False).encode("utf-8"),
        delimiter,
        b"Content-Type: video/mp4\r\n\r\n",
        video,
        closing,
    ])


class YouTubePublisher(BasePublisher):
    """Uploads videos to the configured YouTube channel."""

    platform = "youtube"

    def get_access_token(self) -> str:
        """Exchange the refresh token for a fresh access token."""
        response = self.session.post(
            TOKEN_URL,
            data={
                "client_id": self.settings.youtube_client_id,
                "client_secret": self.settings.youtube_client_secret,
                "refresh_token": self.settings.youtube_refresh_token,
                "grant_type": "refresh_token",
            },
            timeout=self.timeout,
        )
        data = self.check_response(response, "Token refresh")
        token = data.get("access_token")
        if not token:
            raise SocialPublishError(
                "YouTube token response had no access_token",
                platform=self.platform,
                error_code=ErrorCode.SYSTEM_PERMISSION_DENIED,
            )
        return token

    def publish_video(
        self,
        video: bytes,
        title: str,
        description: str,
        url: str,
        tags: Optional[List[str]] = None,
    ) -> PublishResult:
        """Upload an unlisted video.

        Returns:
            PublishResult with watch URL as ``post_url`` and the embed URL

        Raises:
            SocialPublishError: If token refresh or upload fails
        """
        self.require_configured()
        access_token = self.get_access_token()

        full_description = f"{description}\n\n{url}" if url else description
        metadata = {
            "snippet": {
                "title": title[:MAX_TITLE_CHARS],
                "description": full_description[:MAX_DESCRIPTION_CHARS],
                "tags": tags or [],
                "categoryId": PEOPLE_AND_BLOGS_CATEGORY,
            },
            "status": {
                "privacyStatus": "unlisted",
                "selfDeclaredMadeForKids": False,
            },
        }
        body = build_multipart_body(metadata, video)

        self.logger.info(f"Uploading {len(video) / 1024 / 1024:.2f} MB video to YouTube")
        response = self.session.post(
            UPLOAD_URL,
            data=body,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": f"multipart/related; boundary={MULTIPART_BOUNDARY}",
            },
            timeout=max(self.timeout, 600),
        )
        data = self.check_response(response, "YouTube upload")
        video_id = data.get("id")
        if not video_id:
            raise SocialPublishError("YouTube returned no video id", platform=self.platform)

        self.logger.info(f"YouTube video uploaded: {video_id}")
        return PublishResult(
            platform=self.platform,
            success=True,
            post_id=video_id,
            post_url=f"https://youtube.com/watch?v={video_id}",
            embed_url=f"https://youtube.com/embed/{video_id}",
        )
