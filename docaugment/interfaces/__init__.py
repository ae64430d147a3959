"""Public interface definitions for all external collaborators.

Every AI provider, extractor and store used by the pipeline is accessed
exclusively through the abstract base classes defined in this package.
Concrete adapters implement these interfaces and are injected at startup
by ``docaugment/main.py``.

CONCRETE PROVIDER MAP:
    Interface            ->  Concrete implementations (in docaugment/providers/)
    ---------------------------------------------------------------------
    ILLMProvider         ->  OpenAILLMProvider, AnthropicLLMProvider,
                             OllamaLLMProvider
    IEmbeddingProvider   ->  OpenAIEmbeddingProvider, NomicEmbeddingProvider
    ITextExtractor       ->  FileTextExtractor
    IDocumentStore       ->  SQLiteDocumentStore, MemoryDocumentStore
"""

from docaugment.interfaces.document_store import UPDATABLE_FIELDS, IDocumentStore
from docaugment.interfaces.embedding_provider import IEmbeddingProvider
from docaugment.interfaces.llm_provider import ILLMProvider
from docaugment.interfaces.text_extractor import ITextExtractor

__all__ = [
    "IDocumentStore",
    "IEmbeddingProvider",
    "ILLMProvider",
    "ITextExtractor",
    "UPDATABLE_FIELDS",
]
