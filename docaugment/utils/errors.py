"""Custom exception hierarchy for docaugment.

All application exceptions inherit from :class:`DocAugmentError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "ollama", "sqlite") caused the failure.

The hierarchy is organized by pipeline concern:

    DocAugmentError  (base -- catch-all for any docaugment error)
    +-- ExtractionFailedError      (text extractor could not parse the file)
    |   +-- UnsupportedFormatError (no extractor for the declared file kind)
    +-- InvalidStateError          (operation preconditions not met)
    +-- NotFoundError              (document missing or owned by another user)
    +-- AllProvidersFailedError    (every provider in a fallback chain failed)
    +-- ProviderUnavailableError   (transport failure / timeout / 5xx)
    |   +-- RateLimitError         (quota or HTTP 429)
    |   +-- EmptyCompletionError   (provider answered with nothing)
    +-- LLMError                   (any other completion API failure)
    +-- EmbeddingError             (any other embedding API failure)
    +-- ConfigurationError         (startup / missing config)
    +-- StorageError               (persistence layer failure)

Adapters raise the provider-level errors; the AI orchestrator records them
(and any other exception an adapter lets through) while walking its
fallback chain and only lets :class:`AllProvidersFailedError` escape.
"""

from __future__ import annotations

from dataclasses import dataclass


class DocAugmentError(Exception):
    """Base exception for all docaugment errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for
    structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class ExtractionFailedError(DocAugmentError):
    """Raised when the text extractor cannot produce text from a file."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedFormatError(ExtractionFailedError):
    """Raised when no extractor handles the declared file kind."""

    def __init__(
        self,
        message: str = "Unsupported file format",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Lifecycle errors
# ---------------------------------------------------------------------------

class InvalidStateError(DocAugmentError):
    """Raised when an operation is requested on a document lacking its preconditions."""

    def __init__(
        self,
        message: str = "Document is not in a valid state for this operation",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(DocAugmentError):
    """Raised when a document does not exist or belongs to another user."""

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


@dataclass(frozen=True)
class ProviderAttempt:
    """One failed step of a fallback chain: which provider and why."""

    provider: str
    error: str


class AllProvidersFailedError(DocAugmentError):
    """Raised when every provider configured for an operation failed.

    ``attempts`` lists each provider tried, in order, with the reason it
    was skipped.  An empty list means no provider was configured at all.
    """

    def __init__(
        self,
        operation: str,
        attempts: list[ProviderAttempt] | None = None,
    ) -> None:
        self._operation = operation
        self._attempts = list(attempts or [])
        tried = ", ".join(a.provider for a in self._attempts) or "none configured"
        super().__init__(
            message=f"All providers failed for '{operation}' (tried: {tried})",
        )

    @property
    def operation(self) -> str:
        return self._operation

    @property
    def attempts(self) -> list[ProviderAttempt]:
        return list(self._attempts)


# ---------------------------------------------------------------------------
# Provider errors
# ---------------------------------------------------------------------------

class ProviderUnavailableError(DocAugmentError):
    """Raised when an external provider is unreachable, timed out, or returned 5xx.

    The orchestrator's fallback logic catches this to try the next provider
    in the configured priority order.
    """

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(ProviderUnavailableError):
    """Raised when a provider rejects the call for quota or rate-limit reasons."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmptyCompletionError(ProviderUnavailableError):
    """Raised when a provider answers successfully but with no usable content."""

    def __init__(
        self,
        message: str = "Provider returned an empty response",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(DocAugmentError):
    """Raised when a completion API call fails for a non-transport reason."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingError(DocAugmentError):
    """Raised when an embedding API call fails for a non-transport reason."""

    def __init__(
        self,
        message: str = "Embedding API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration / storage errors
# ---------------------------------------------------------------------------

class ConfigurationError(DocAugmentError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(DocAugmentError):
    """Raised when the document store fails to read or write."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
