"""Nomic embedding provider adapter (local/free via Ollama).

Wraps the Ollama OpenAI-compatible endpoint to implement
:class:`IEmbeddingProvider` using ``nomic-embed-text`` (768 dimensions).
Runs locally with no API key required.
"""

from __future__ import annotations

import httpx
import openai
import structlog

from docaugment.config.settings import Settings
from docaugment.interfaces.embedding_provider import IEmbeddingProvider
from docaugment.providers.llm.openai_provider import translate_openai_error
from docaugment.utils.errors import EmbeddingError, EmptyCompletionError

logger = structlog.get_logger(logger_name=__name__)

_OLLAMA_BATCH_LIMIT = 512


class NomicEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by ``nomic-embed-text`` served via Ollama."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",
            timeout=openai.Timeout(settings.provider_timeout_seconds, connect=5.0),
            max_retries=0,
        )
        self._model = settings.ollama_embedding_model
        self._dimension = 768

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors, in batches of 512 for the Ollama backend."""
        if not texts:
            return []

        all_embeddings: list[list[float]] = []
        for start in range(0, len(texts), _OLLAMA_BATCH_LIMIT):
            batch = texts[start : start + _OLLAMA_BATCH_LIMIT]
            try:
                response = await self._client.embeddings.create(
                    input=batch,
                    model=self._model,
                )
            except openai.APIError as exc:
                raise translate_openai_error(
                    exc, self.get_provider_name(), fallback=EmbeddingError
                ) from exc

            batch_embeddings = [list(item.embedding) for item in response.data]
            if len(batch_embeddings) != len(batch) or any(not v for v in batch_embeddings):
                raise EmptyCompletionError(
                    message="Ollama returned no vector for some inputs",
                    provider_name=self.get_provider_name(),
                )
            all_embeddings.extend(batch_embeddings)
            logger.info(
                "nomic_embedding_batch",
                model=self._model,
                batch_size=len(batch),
            )
        return all_embeddings

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        """Return 768 (nomic-embed-text dimension)."""
        return self._dimension

    def get_provider_name(self) -> str:
        return "nomic_embedding"

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama server answers on ``/api/tags``."""
        if not self._base_url:
            return False
        try:
            response = httpx.get(f"{self._base_url}/api/tags", timeout=3.0)
            return response.status_code == 200
        except (httpx.ConnectError, httpx.TimeoutException):
            return False
