"""
AI Pre-Moderation
=================

Classifies scraped content before it reaches a human moderator. The step
is fail-open: a configuration gap, AI outage or malformed reply results
in an approval with an explanatory reason. Only detected duplicates and an
explicit AI rejection keep content out of the moderation queue.
"""

from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from ..ai.azure_client import AzureOpenAIClient, extract_json
from ..ai.prompts import render_prompt
from ..config.settings import get_settings
from ..database.models import ModerationResult
from ..storage.prompt_repository import PromptRepository, PromptType
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import AIError
from .duplicates import DuplicateChecker

MODERATOR_SYSTEM_PROMPT = (
    "You are a content moderator. Analyze posts and respond ONLY with valid JSON."
)


class PreModerator:
    """Runs duplicate detection and AI moderation on incoming content."""

    def __init__(
        self,
        prompt_repo: PromptRepository,
        duplicate_checker: DuplicateChecker,
        ai_client: Optional[AzureOpenAIClient] = None,
    ):
        self.prompt_repo = prompt_repo
        self.duplicate_checker = duplicate_checker
        self.ai_client = ai_client or AzureOpenAIClient()
        self.settings = get_settings()
        self.logger = get_logger_for_component("pre_moderation")

    async def moderate(
        self,
        title: str,
        content: str = "",
        url: str = "",
        exclude_stored: bool = False,
    ) -> ModerationResult:
        """Moderate one piece of content. Never raises.

        Args:
            title: Content title
            content: Content body or description
            url: Source URL
            exclude_stored: The content is already stored, so one copy of
                its title is ignored during duplicate detection

        Returns:
            ModerationResult
        """
        try:
            return await self._moderate(title, content, url, exclude_stored)
        except Exception as e:
            self.logger.error(f"Pre-moderation failed, approving by default: {e}")
            return ModerationResult(
                approved=True,
                reason=f"Error: {getattr(e, 'message', str(e))}, approved by default",
            )

    async def _moderate(
        self, title: str, content: str, url: str, exclude_stored: bool
    ) -> ModerationResult:
        prompt = self.prompt_repo.get_active(PromptType.PRE_MODERATION)
        if prompt is None:
            self.logger.warning("No pre-moderation prompt configured, approving")
            return ModerationResult(
                approved=True,
                reason="No pre-moderation prompt configured",
                quality_score=5,
            )

        if self.duplicate_checker.check(title, exclude_title=title if exclude_stored else None):
            return ModerationResult(
                approved=False,
                reason="Duplicate content detected in database",
                is_duplicate=True,
                quality_score=0,
            )

        if not self.ai_client.is_configured:
            self.logger.warning("Azure OpenAI not configured, approving")
            return ModerationResult(approved=True, reason="AI not configured")

        user_prompt = render_prompt(
            prompt.prompt_text, title=title, content=content or "", url=url or ""
        )

        try:
            completion = await self.ai_client.complete(
                MODERATOR_SYSTEM_PROMPT,
                user_prompt,
                temperature=0.3,
                max_tokens=300,
                deployment=self.settings.azure.moderation_deployment,
            )
        except AIError as e:
            self.logger.warning(f"AI moderation call failed: {e}")
            return ModerationResult(approved=True, reason="AI error, approved by default")

        try:
            result = ModerationResult.model_validate(extract_json(completion.content))
        except (AIError, PydanticValidationError) as e:
            self.logger.warning(f"Could not parse moderation response: {e}")
            return ModerationResult(
                approved=True, reason="AI response parsing error, approved by default"
            )

        if prompt.id is not None:
            self.prompt_repo.increment_usage(prompt.id)

        self.logger.info(
            f"Moderation {'approved' if result.approved else 'rejected'}: "
            f"{title[:60]} ({result.reason})"
        )
        return result
