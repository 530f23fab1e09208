"""
Azure OpenAI Client
===================

Thin async wrapper around Azure OpenAI chat completions with error
mapping and JSON extraction from free-form model replies.
"""

import json
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import openai
from openai import AsyncAzureOpenAI

from ..config.settings import AzureOpenAISettings, get_settings
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import AIError, ErrorCode

JSON_OBJECT_PATTERN = re.compile(r'\{[\s\S]*\}')


@dataclass
class CompletionResult:
    """Text returned by a chat completion."""
    content: str
    deployment: str
    tokens_used: Optional[int] = None
    processing_time_ms: Optional[int] = None


def extract_json(text: str) -> Dict[str, Any]:
    """Parse the outermost JSON object embedded in a model reply.

    Models often wrap JSON in prose or code fences; everything from the
    first ``{`` to the last ``}`` is parsed.

    Args:
        text: Raw completion text

    Returns:
        Parsed object

    Raises:
        AIError: If no object is present or it is not valid JSON
    """
    match = JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        raise AIError(
            "No JSON object found in AI response",
            error_code=ErrorCode.AI_INVALID_RESPONSE,
        )
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AIError(
            f"Invalid JSON in AI response: {e}",
            error_code=ErrorCode.AI_INVALID_RESPONSE,
        ) from e
    if not isinstance(data, dict):
        raise AIError("AI response JSON is not an object", error_code=ErrorCode.AI_INVALID_RESPONSE)
    return data


class AzureOpenAIClient:
    """Chat completion client for Azure OpenAI deployments."""

    def __init__(self, settings: Optional[AzureOpenAISettings] = None):
        """Initialize client.

        Args:
            settings: Azure settings (default from config)
        """
        self.settings = settings or get_settings().azure
        self.logger = get_logger_for_component("azure_openai")
        self._client: Optional[AsyncAzureOpenAI] = None

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    def _get_client(self) -> AsyncAzureOpenAI:
        if not self.is_configured:
            raise AIError(
                "Azure OpenAI is not configured",
                error_code=ErrorCode.AI_NOT_CONFIGURED,
            )
        if self._client is None:
            self._client = AsyncAzureOpenAI(
                azure_endpoint=self.settings.endpoint,
                api_key=self.settings.api_key,
                api_version=self.settings.api_version,
            )
        return self._client

    async def complete(
        self,
        system: str,
        user: str,
        temperature: float = 0.3,
        max_tokens: int = 1000,
        deployment: Optional[str] = None,
    ) -> CompletionResult:
        """Run a two-message chat completion.

        Args:
            system: System instruction
            user: User prompt
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response
            deployment: Azure deployment (default: analysis deployment)

        Returns:
            CompletionResult with the stripped reply text

        Raises:
            AIError: On API, network or empty-response failures
        """
        deployment = deployment or self.settings.analysis_deployment
        client = self._get_client()
        start = time.time()

        try:
            response = await client.chat.completions.create(
                model=deployment,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )

        except openai.RateLimitError as e:
            self.logger.warning(f"Azure OpenAI rate limit exceeded: {e}")
            raise AIError(
                "Azure OpenAI rate limit exceeded",
                deployment=deployment,
                error_code=ErrorCode.AI_RATE_LIMIT,
                retryable=True,
            ) from e

        except openai.AuthenticationError as e:
            self.logger.error(f"Azure OpenAI authentication failed: {e}")
            raise AIError(
                "Invalid Azure OpenAI credentials",
                deployment=deployment,
                error_code=ErrorCode.AI_INVALID_CREDENTIALS,
            ) from e

        except openai.APIConnectionError as e:
            self.logger.error(f"Azure OpenAI connection error: {e}")
            raise AIError(
                f"Connection to Azure OpenAI failed: {e}",
                deployment=deployment,
                error_code=ErrorCode.AI_CONNECTION_ERROR,
                retryable=True,
            ) from e

        except openai.APIStatusError as e:
            self.logger.error(f"Azure OpenAI API error: {e.status_code} - {e.message}")
            raise AIError(
                f"Azure OpenAI API error: {e.status_code}",
                deployment=deployment,
                error_code=ErrorCode.AI_API_ERROR,
                retryable=e.status_code >= 500,
            ) from e

        content = ""
        if response.choices and response.choices[0].message:
            content = (response.choices[0].message.content or "").strip()

        if not content:
            raise AIError(
                "No content in AI response",
                deployment=deployment,
                error_code=ErrorCode.AI_INVALID_RESPONSE,
            )

        tokens_used = response.usage.total_tokens if response.usage else None
        processing_time_ms = int((time.time() - start) * 1000)
        self.logger.debug(f"Completion from {deployment} in {processing_time_ms}ms ({tokens_used} tokens)")

        return CompletionResult(
            content=content,
            deployment=deployment,
            tokens_used=tokens_used,
            processing_time_ms=processing_time_ms,
        )

    async def complete_json(self, system: str, user: str, **kwargs) -> Dict[str, Any]:
        """Run a completion and parse the JSON object in its reply."""
        result = await self.complete(system, user, **kwargs)
        return extract_json(result.content)
