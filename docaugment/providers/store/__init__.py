"""Document store implementations (SQLite and in-memory)."""

from docaugment.providers.store.memory_document_store import MemoryDocumentStore
from docaugment.providers.store.sqlite_document_store import SQLiteDocumentStore

__all__ = ["MemoryDocumentStore", "SQLiteDocumentStore"]
