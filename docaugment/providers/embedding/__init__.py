"""Embedding provider implementations.

Embeddings convert chunk text into numeric vectors used for similarity
search.  Two implementations of IEmbeddingProvider, in default priority:
    1. OpenAIEmbeddingProvider -- text-embedding-3-small (1536 dims), needs an API key
    2. NomicEmbeddingProvider  -- nomic-embed-text via Ollama (768 dims), local
"""

from docaugment.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from docaugment.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider", "NomicEmbeddingProvider"]
