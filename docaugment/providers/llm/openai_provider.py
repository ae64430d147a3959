"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When ``openai_base_url`` is configured (OpenRouter, TogetherAI, Fireworks)
the client points at that URL instead of the default OpenAI endpoint, which
is how paid fallback models such as ``deepseek/deepseek-chat`` are reached.

SDK exceptions are translated into the docaugment hierarchy so the
orchestrator can tell "provider unavailable" (fall through) apart from a
generic API error.
"""

from __future__ import annotations

import openai
import structlog

from docaugment.config.settings import Settings
from docaugment.interfaces.llm_provider import ILLMProvider
from docaugment.utils.errors import (
    DocAugmentError,
    EmptyCompletionError,
    LLMError,
    ProviderUnavailableError,
    RateLimitError,
)

logger = structlog.get_logger(logger_name=__name__)


def translate_openai_error(
    exc: openai.APIError,
    provider_name: str,
    fallback: type[DocAugmentError] = LLMError,
) -> DocAugmentError:
    """Map an ``openai`` SDK exception onto the docaugment error hierarchy.

    Rate limits become :class:`RateLimitError`; connection failures,
    timeouts and 5xx responses become :class:`ProviderUnavailableError`;
    anything else becomes *fallback*.
    """
    if isinstance(exc, openai.RateLimitError):
        return RateLimitError(message=f"rate limited: {exc}", provider_name=provider_name)
    if isinstance(exc, openai.APITimeoutError):
        return ProviderUnavailableError(message="request timed out", provider_name=provider_name)
    if isinstance(exc, openai.APIConnectionError):
        return ProviderUnavailableError(
            message=f"connection failed: {exc}", provider_name=provider_name
        )
    if isinstance(exc, openai.APIStatusError) and exc.status_code >= 500:
        return ProviderUnavailableError(
            message=f"server error {exc.status_code}: {exc}", provider_name=provider_name
        )
    return fallback(message=f"API error: {exc}", provider_name=provider_name)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API.

    Uses ``gpt-4o-mini`` by default; ``openai_text_model`` overrides it for
    OpenAI-compatible hosts.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {
            "api_key": self._api_key or "unset",
            "timeout": openai.Timeout(settings.provider_timeout_seconds, connect=5.0),
            "max_retries": 0,
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._text_model = settings.openai_text_model or "gpt-4o-mini"
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str:
        """Generate a text completion via the chat completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._text_model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APIError as exc:
            raise translate_openai_error(exc, self.get_provider_name()) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise EmptyCompletionError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """Try listing models to verify the API key works."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False

    def get_provider_name(self) -> str:
        """Return 'openai' or 'openai-compatible' depending on configuration."""
        return self._provider_label
