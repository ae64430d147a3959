"""Shared pytest fixtures for the docaugment test suite."""

from __future__ import annotations

import asyncio
import io
from collections.abc import Callable
from pathlib import Path

import pytest

from docaugment.interfaces.embedding_provider import IEmbeddingProvider
from docaugment.interfaces.llm_provider import ILLMProvider
from docaugment.pipeline.document_pipeline import DocumentPipeline
from docaugment.pipeline.lifecycle import DocumentLifecycleManager
from docaugment.providers.extraction.file_text_extractor import FileTextExtractor
from docaugment.providers.store.memory_document_store import MemoryDocumentStore
from docaugment.services.ai_orchestrator import AIOrchestrator
from docaugment.services.chat_service import ChatService
from docaugment.services.chunker import SentenceChunker
from docaugment.services.search_service import SearchService
from docaugment.utils.errors import ProviderUnavailableError
from docaugment.utils.logging import configure_logging

# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


class FakeLLMProvider(ILLMProvider):
    """Scripted completion provider.

    ``reply`` is returned for every call unless ``fail`` is set, in which
    case ProviderUnavailableError is raised.  Every call is recorded.
    """

    def __init__(
        self,
        name: str = "fake-llm",
        reply: str = "A generated answer.",
        fail: bool = False,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.reply = reply
        self.fail = fail
        self.delay = delay
        self.calls: list[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def complete(self, prompt: str, max_tokens: int = 1000, temperature: float = 0.7) -> str:
        self.calls.append({"prompt": prompt, "max_tokens": max_tokens, "temperature": temperature})
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail:
                raise ProviderUnavailableError(message="down", provider_name=self.name)
            return self.reply
        finally:
            self.in_flight -= 1

    def get_provider_name(self) -> str:
        return self.name

    def is_available(self) -> bool:
        return True

    async def validate_credentials(self) -> bool:
        return True


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider whose vectors come from ``vector_for(text)``.

    The default maps texts mentioning "apple" to ``[1, 0, 0]``, "banana" to
    ``[0, 1, 0]`` and everything else to ``[0, 0, 1]``.
    """

    def __init__(
        self,
        name: str = "fake-embedding",
        vector_for: Callable[[str], list[float]] | None = None,
        fail_on: str | None = None,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.vector_for = vector_for or keyword_vector
        self.fail_on = fail_on
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed_single(t) for t in texts]

    async def embed_single(self, text: str) -> list[float]:
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_on is not None and self.fail_on in text:
                raise ProviderUnavailableError(message="embedding down", provider_name=self.name)
            return self.vector_for(text)
        finally:
            self.in_flight -= 1

    def get_dimension(self) -> int:
        return 3

    def get_provider_name(self) -> str:
        return self.name

    def is_available(self) -> bool:
        return True


def keyword_vector(text: str) -> list[float]:
    lowered = text.lower()
    if "apple" in lowered:
        return [1.0, 0.0, 0.0]
    if "banana" in lowered:
        return [0.0, 1.0, 0.0]
    return [0.0, 0.0, 1.0]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True, scope="session")
def quiet_logging() -> io.StringIO:
    """Send log output to an in-memory buffer for the whole session.

    Loggers are cached on first use, so they must never be bound to a
    per-test capture stream that is closed afterwards.
    """
    buffer = io.StringIO()
    configure_logging(log_level="WARNING", stream=buffer)
    return buffer


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def llm() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def embedder() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def make_pipeline(memory_store: MemoryDocumentStore):
    """Factory assembling a pipeline over fakes and the in-memory store."""

    def _make(
        llms: list[ILLMProvider] | None = None,
        embedders: list[IEmbeddingProvider] | None = None,
        chunk_size: int = 1000,
        embedding_concurrency: int = 4,
        timeout_seconds: float = 5.0,
        max_distance: float = 0.5,
    ) -> DocumentPipeline:
        llms = [FakeLLMProvider()] if llms is None else llms
        embedders = [FakeEmbeddingProvider()] if embedders is None else embedders
        orchestrator = AIOrchestrator.from_providers(
            {"summarize": llms, "chat": llms, "keywords": llms},
            embedders,
            timeout_seconds=timeout_seconds,
        )
        lifecycle = DocumentLifecycleManager(
            store=memory_store,
            extractor=FileTextExtractor(),
            orchestrator=orchestrator,
            chunker=SentenceChunker(chunk_size=chunk_size),
            embedding_concurrency=embedding_concurrency,
        )
        return DocumentPipeline(
            store=memory_store,
            lifecycle=lifecycle,
            orchestrator=orchestrator,
            search_service=SearchService(memory_store, orchestrator, max_distance=max_distance),
            chat_service=ChatService(memory_store, orchestrator),
        )

    return _make


@pytest.fixture
def fake_llm_cls() -> type[FakeLLMProvider]:
    return FakeLLMProvider


@pytest.fixture
def fake_embedding_cls() -> type[FakeEmbeddingProvider]:
    return FakeEmbeddingProvider
