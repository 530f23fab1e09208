"""
Facebook Publisher
==================

Resumable video upload to a Facebook page through the Graph API.
"""

from typing import Any, Dict

from ..utils.exceptions import SocialPublishError
from .base import BasePublisher, PublishResult

MAX_TITLE_CHARS = 255
MAX_TRANSFER_ROUNDS = 100


class FacebookPublisher(BasePublisher):
    """Publishes videos to the configured Facebook page."""

    platform = "facebook"

    @property
    def videos_url(self) -> str:
        return (
            f"https://graph.facebook.com/{self.settings.facebook_api_version}"
            f"/{self.settings.facebook_page_id}/videos"
        )

    def _post(self, action: str, **kwargs) -> Dict[str, Any]:
        response = self.session.post(self.videos_url, timeout=max(self.timeout, 300), **kwargs)
        return self.check_response(response, action)

    def start_upload(self, file_size: int) -> Dict[str, Any]:
        return self._post("Start upload", params={
            "upload_phase": "start",
            "file_size": str(file_size),
            "access_token": self.settings.facebook_page_access_token,
        })

    def transfer(self, upload_session_id: str, start_offset: int, chunk: bytes) -> Dict[str, Any]:
        return self._post(
            "Transfer chunk",
            data={
                "upload_phase": "transfer",
                "upload_session_id": upload_session_id,
                "start_offset": str(start_offset),
                "access_token": self.settings.facebook_page_access_token,
            },
            files={"video_file_chunk": ("video.mp4", chunk, "application/octet-stream")},
        )

    def finish_upload(self, upload_session_id: str, title: str, description: str) -> Dict[str, Any]:
        return self._post("Finish upload", params={
            "upload_phase": "finish",
            "upload_session_id": upload_session_id,
            "access_token": self.settings.facebook_page_access_token,
            "title": title[:MAX_TITLE_CHARS],
            "description": description,
            "published": "true",
        })

    def publish_video(self, video: bytes, title: str, description: str, url: str) -> PublishResult:
        """Upload and publish a page video.

        Args:
            video: Video bytes
            title: Video title, cut to 255 characters
            description: Video description
            url: Article link appended to the description

        Raises:
            SocialPublishError: If any upload phase fails
        """
        self.require_configured()
        file_size = len(video)
        self.logger.info(f"Uploading {file_size / 1024 / 1024:.2f} MB video to Facebook")

        session = self.start_upload(file_size)
        upload_session_id = session.get("upload_session_id")
        if not upload_session_id:
            raise SocialPublishError("Facebook returned no upload session", platform=self.platform)

        start = int(session.get("start_offset") or 0)
        end = int(session.get("end_offset") or file_size)
        rounds = 0
        while start < end:
            rounds += 1
            if rounds > MAX_TRANSFER_ROUNDS:
                raise SocialPublishError("Facebook upload did not complete", platform=self.platform)
            offsets = self.transfer(upload_session_id, start, video[start:end])
            start = int(offsets.get("start_offset") or end)
            end = int(offsets.get("end_offset") or start)

        full_description = f"{description}\n\n🔗 {url}" if url else description
        result = self.finish_upload(upload_session_id, title, full_description)
        video_id = result.get("id") or result.get("video_id") or session.get("video_id")
        if not video_id:
            raise SocialPublishError("Facebook returned no video id", platform=self.platform)

        self.logger.info(f"Facebook video published: {video_id}")
        return PublishResult(platform=self.platform, success=True, post_id=str(video_id),
                             post_url=f"https://facebook.com/{video_id}")
