"""docaugment domain models -- re-exports all public model classes.

    - document.py -- documents, embedded chunks, chat records, aggregates
    - search.py   -- vector search hits
"""

from __future__ import annotations

from docaugment.models.document import (
    ChatMessage,
    ChatSession,
    ChatSessionPage,
    ChatSessionStats,
    Document,
    DocumentEmbedding,
    DocumentPage,
    DocumentStats,
    DocumentStatus,
)
from docaugment.models.search import SearchHit

__all__ = [
    "ChatMessage",
    "ChatSession",
    "ChatSessionPage",
    "ChatSessionStats",
    "Document",
    "DocumentEmbedding",
    "DocumentPage",
    "DocumentStats",
    "DocumentStatus",
    "SearchHit",
]
