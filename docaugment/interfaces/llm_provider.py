"""Abstract base class for text-completion providers.

Defines the contract for any large-language-model backend used to
summarize documents, answer questions about them, and extract keywords.
Implementations wrap an OpenAI-compatible API (OpenAI, OpenRouter), the
Anthropic API, or a local Ollama server.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider, OllamaLLMProvider
# Located in: docaugment/providers/llm/
class ILLMProvider(ABC):
    """Contract for completion services used by the AI orchestrator.

    Adapters never retry.  They must translate transport failures,
    rate-limit responses and empty completions into
    :class:`~docaugment.utils.errors.ProviderUnavailableError` (or one of its
    subclasses) and every other API failure into
    :class:`~docaugment.utils.errors.LLMError`.
    """

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str:
        """Generate a text completion for a single user prompt.

        Parameters
        ----------
        prompt:
            The full prompt, instructions included.
        max_tokens:
            Upper bound on the number of tokens in the response.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).

        Returns
        -------
        str
            The model's non-empty text response.

        Raises
        ------
        docaugment.utils.errors.ProviderUnavailableError
            On connection failures, timeouts, 5xx, rate limits, or an empty
            completion.
        docaugment.utils.errors.LLMError
            On any other API failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the stable identifier used in logs, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured.

        Implementations verify that credentials or URLs are present without
        making an inference call.
        """

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight API call to confirm the provider accepts us."""
