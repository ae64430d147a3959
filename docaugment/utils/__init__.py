"""Utility modules for docaugment.

- **errors** -- Domain exception hierarchy rooted at DocAugmentError; each
  pipeline concern raises its own subclass so callers can handle failures
  granularly.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **concurrency** -- semaphore-throttled gather for bounded fan-out of
  per-chunk embedding calls.
- **locks** -- per-document advisory locks serialising pipeline operations.
"""

from docaugment.utils.concurrency import throttled_gather
from docaugment.utils.errors import (
    AllProvidersFailedError,
    ConfigurationError,
    DocAugmentError,
    EmbeddingError,
    EmptyCompletionError,
    ExtractionFailedError,
    InvalidStateError,
    LLMError,
    NotFoundError,
    ProviderAttempt,
    ProviderUnavailableError,
    RateLimitError,
    StorageError,
    UnsupportedFormatError,
)
from docaugment.utils.locks import DocumentLockRegistry
from docaugment.utils.logging import configure_logging, get_logger, operation_context

__all__ = [
    "AllProvidersFailedError",
    "ConfigurationError",
    "DocAugmentError",
    "DocumentLockRegistry",
    "EmbeddingError",
    "EmptyCompletionError",
    "ExtractionFailedError",
    "InvalidStateError",
    "LLMError",
    "NotFoundError",
    "ProviderAttempt",
    "ProviderUnavailableError",
    "RateLimitError",
    "StorageError",
    "UnsupportedFormatError",
    "configure_logging",
    "get_logger",
    "operation_context",
    "throttled_gather",
]
