"""Abstract base class for document persistence.

Defines the storage contract the lifecycle manager, search service and chat
service consume.  Implementations may use SQLite (local), PostgreSQL, or an
in-process map; the pipeline never touches a database API directly.

Stores own referential integrity: deleting a document removes its
embeddings, chat sessions and chat messages.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

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

# Columns a caller may change through update_document().
UPDATABLE_FIELDS = frozenset(
    {"title", "extracted_text", "summary", "summary_status", "embedding_status"}
)


class IDocumentStore(ABC):
    """Contract for document, embedding and chat persistence.

    All operations are async to support network-backed stores.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables / indices.  Safe to call more than once."""

    # -- Documents ---------------------------------------------------------

    @abstractmethod
    async def create_document(
        self,
        user_id: int,
        title: str,
        file_name: str,
        file_type: str,
        file_size: int,
        file_url: str | None = None,
        extracted_text: str | None = None,
        summary_status: DocumentStatus = DocumentStatus.PENDING,
    ) -> Document:
        """Insert a new document and return it with its assigned id."""

    @abstractmethod
    async def update_document(self, document_id: int, **fields: Any) -> Document:
        """Update the given columns and bump ``updated_at``.

        Only names in :data:`UPDATABLE_FIELDS` are accepted.

        Raises
        ------
        docaugment.utils.errors.NotFoundError
            If the document does not exist.
        """

    @abstractmethod
    async def get_document(self, document_id: int) -> Document | None:
        """Return the document, or ``None`` if it does not exist."""

    @abstractmethod
    async def delete_document(self, document_id: int) -> None:
        """Delete the document and cascade to embeddings and chats.

        Raises
        ------
        docaugment.utils.errors.NotFoundError
            If the document does not exist.
        """

    @abstractmethod
    async def list_documents(self, user_id: int, page: int = 1, limit: int = 10) -> DocumentPage:
        """Return one page of the user's documents, newest first."""

    @abstractmethod
    async def search_documents(
        self, user_id: int, term: str, page: int = 1, limit: int = 10
    ) -> DocumentPage:
        """Return one page of the user's documents matching *term*, newest first.

        A document matches when *term* occurs, ignoring case, in its title,
        file name or extracted text.
        """

    @abstractmethod
    async def document_stats(self, user_id: int | None = None) -> DocumentStats:
        """Return counts by derived status and total size, for one user or all."""

    # -- Embeddings --------------------------------------------------------

    @abstractmethod
    async def insert_embedding_chunk(
        self,
        document_id: int,
        chunk_index: int,
        chunk_text: str,
        embedding: list[float],
    ) -> DocumentEmbedding:
        """Append one chunk row for *document_id*."""

    @abstractmethod
    async def replace_embeddings(
        self, document_id: int, chunks: list[DocumentEmbedding]
    ) -> None:
        """Atomically swap the document's chunk set for *chunks*.

        Either every previous row is removed and every new row inserted, or
        nothing changes.
        """

    @abstractmethod
    async def list_embeddings(self, document_id: int) -> list[DocumentEmbedding]:
        """Return the document's chunks ordered by ``chunk_index``."""

    @abstractmethod
    async def list_embeddings_for_user(self, user_id: int) -> list[DocumentEmbedding]:
        """Return every chunk of every document owned by *user_id*."""

    # -- Chat --------------------------------------------------------------

    @abstractmethod
    async def create_chat_session(
        self, user_id: int, document_id: int, session_name: str
    ) -> ChatSession:
        """Insert a chat session bound to a document."""

    @abstractmethod
    async def get_chat_session(self, session_id: int) -> ChatSession | None:
        """Return the session, or ``None`` if it does not exist."""

    @abstractmethod
    async def add_chat_message(self, session_id: int, message: str, response: str) -> ChatMessage:
        """Append a message/response pair and touch the session."""

    @abstractmethod
    async def list_chat_messages(self, session_id: int) -> list[ChatMessage]:
        """Return the session's messages, oldest first."""

    @abstractmethod
    async def list_chat_sessions(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        document_id: int | None = None,
    ) -> ChatSessionPage:
        """Return one page of the user's sessions, most recently active first.

        Each session carries its ``message_count``.  *document_id* narrows
        the page to sessions on one document.
        """

    @abstractmethod
    async def delete_chat_session(self, session_id: int) -> None:
        """Delete the session and its messages.

        Raises
        ------
        docaugment.utils.errors.NotFoundError
            If the session does not exist.
        """

    @abstractmethod
    async def chat_session_stats(self, user_id: int | None = None) -> ChatSessionStats:
        """Return session and message counts, for one user or all."""

    async def close(self) -> None:
        """Release held resources.  Default is a no-op."""
