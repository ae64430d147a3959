"""Dependency assembly for the docaugment pipeline.

Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, builds every provider adapter once, arranges them into
per-capability fallback chains, and wires the services into a
:class:`~docaugment.pipeline.document_pipeline.DocumentPipeline`.
"""

from __future__ import annotations

from typing import Any, TextIO

import structlog

from docaugment.config.loader import load_config, provider_order
from docaugment.config.settings import Settings
from docaugment.interfaces.document_store import IDocumentStore
from docaugment.interfaces.embedding_provider import IEmbeddingProvider
from docaugment.interfaces.llm_provider import ILLMProvider
from docaugment.pipeline.document_pipeline import DocumentPipeline
from docaugment.pipeline.lifecycle import DocumentLifecycleManager
from docaugment.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from docaugment.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docaugment.providers.extraction.file_text_extractor import FileTextExtractor
from docaugment.providers.llm.anthropic_provider import AnthropicLLMProvider
from docaugment.providers.llm.ollama_provider import OllamaLLMProvider
from docaugment.providers.llm.openai_provider import OpenAILLMProvider
from docaugment.providers.store.memory_document_store import MemoryDocumentStore
from docaugment.providers.store.sqlite_document_store import SQLiteDocumentStore
from docaugment.services.ai_orchestrator import AIOrchestrator
from docaugment.services.chat_service import ChatService
from docaugment.services.chunker import SentenceChunker
from docaugment.services.search_service import SearchService
from docaugment.utils.locks import DocumentLockRegistry
from docaugment.utils.logging import configure_logging

logger = structlog.get_logger(logger_name=__name__)

MEMORY_DATABASE = ":memory:"

_LLM_FACTORIES = {
    "openai": OpenAILLMProvider,
    "anthropic": AnthropicLLMProvider,
    "ollama": OllamaLLMProvider,
}

_EMBEDDING_FACTORIES = {
    "openai": OpenAIEmbeddingProvider,
    "nomic": NomicEmbeddingProvider,
}


def build_provider_chains(
    app_settings: Settings, config: dict[str, Any]
) -> tuple[dict[str, list[ILLMProvider]], list[IEmbeddingProvider]]:
    """Instantiate each configured adapter once and order it per capability.

    Returns
    -------
    tuple
        ``(completion_chains, embedding_chain)`` where *completion_chains*
        maps ``summarize`` / ``chat`` / ``keywords`` to ordered adapters.
    """
    llm_instances: dict[str, ILLMProvider] = {}
    completion_chains: dict[str, list[ILLMProvider]] = {}
    for capability in ("summarize", "chat", "keywords"):
        chain: list[ILLMProvider] = []
        for name in provider_order(config, capability):
            if name not in _LLM_FACTORIES:
                logger.warning("unknown_provider_skipped", provider=name, capability=capability)
                continue
            if name not in llm_instances:
                llm_instances[name] = _LLM_FACTORIES[name](settings=app_settings)
            chain.append(llm_instances[name])
        completion_chains[capability] = chain

    embedding_chain: list[IEmbeddingProvider] = []
    for name in provider_order(config, "embed"):
        if name not in _EMBEDDING_FACTORIES:
            logger.warning("unknown_provider_skipped", provider=name, capability="embed")
            continue
        embedding_chain.append(_EMBEDDING_FACTORIES[name](settings=app_settings))

    return completion_chains, embedding_chain


def build_store(app_settings: Settings) -> IDocumentStore:
    """Return the in-memory store for ``DATABASE_PATH=:memory:``, else SQLite."""
    if app_settings.database_path == MEMORY_DATABASE:
        return MemoryDocumentStore()
    return SQLiteDocumentStore(db_path=app_settings.database_path)


def build_pipeline(
    custom_settings: Settings | None = None,
    config_path: str = "config/config.yaml",
    store: IDocumentStore | None = None,
    log_stream: TextIO | None = None,
) -> DocumentPipeline:
    """Construct the fully wired pipeline.

    Parameters
    ----------
    custom_settings:
        Settings to use instead of reading the environment.
    config_path:
        YAML file holding the provider order and prompt budgets.
    store:
        Store to use instead of the one selected by ``database_path``.
    log_stream:
        Destination for log output (default stdout).
    """
    s = custom_settings or Settings()
    config = load_config(config_path, settings=s)

    configure_logging(
        log_level=s.log_level,
        json_output=(s.app_env == "production"),
        stream=log_stream,
    )

    completion_chains, embedding_chain = build_provider_chains(s, config)
    prompts = config.get("prompts", {})
    orchestrator = AIOrchestrator.from_providers(
        completion_chains,
        embedding_chain,
        timeout_seconds=s.provider_timeout_seconds,
        temperature=s.completion_temperature,
        chat_excerpt_chars=prompts.get("chat_excerpt_chars", 3000),
        keywords_excerpt_chars=prompts.get("keywords_excerpt_chars", 2000),
        embed_max_chars=prompts.get("embed_max_chars", 8000),
    )

    store = store or build_store(s)
    lifecycle = DocumentLifecycleManager(
        store=store,
        extractor=FileTextExtractor(),
        orchestrator=orchestrator,
        chunker=SentenceChunker(chunk_size=s.chunk_size),
        locks=DocumentLockRegistry(),
        embedding_concurrency=s.embedding_concurrency,
        summary_max_input_chars=s.summary_max_input_chars,
    )

    logger.info(
        "pipeline_built",
        summarize=orchestrator.provider_names("summarize"),
        chat=orchestrator.provider_names("chat"),
        keywords=orchestrator.provider_names("keywords"),
        embed=orchestrator.provider_names("embed"),
        store=type(store).__name__,
    )

    return DocumentPipeline(
        store=store,
        lifecycle=lifecycle,
        orchestrator=orchestrator,
        search_service=SearchService(
            store=store,
            orchestrator=orchestrator,
            max_distance=s.search_max_distance,
        ),
        chat_service=ChatService(store=store, orchestrator=orchestrator),
        default_search_limit=s.search_default_limit,
    )
