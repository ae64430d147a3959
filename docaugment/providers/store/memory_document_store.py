"""In-process document store.

Keeps documents, chunks and chat records in plain dictionaries.  Intended
for tests and for one-shot CLI runs where nothing needs to survive the
process; behaviour matches :class:`SQLiteDocumentStore` including cascade
deletes and all-or-nothing chunk replacement.
"""

from __future__ import annotations

from collections import Counter
from typing import Any

import structlog

from docaugment.interfaces.document_store import UPDATABLE_FIELDS, IDocumentStore
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
    utcnow,
)
from docaugment.utils.errors import NotFoundError

logger = structlog.get_logger(logger_name=__name__)


class MemoryDocumentStore(IDocumentStore):
    """Dictionary-backed implementation of :class:`IDocumentStore`."""

    def __init__(self) -> None:
        self._documents: dict[int, Document] = {}
        self._embeddings: dict[int, list[DocumentEmbedding]] = {}
        self._sessions: dict[int, ChatSession] = {}
        self._messages: dict[int, list[ChatMessage]] = {}
        self._next_document_id = 1
        self._next_session_id = 1
        self._next_message_id = 1

    async def initialize(self) -> None:
        logger.debug("memory_store_initialized")

    # -- Documents ---------------------------------------------------------

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
        now = utcnow()
        document = Document(
            id=self._next_document_id,
            user_id=user_id,
            title=title,
            file_name=file_name,
            file_type=file_type,
            file_size=file_size,
            file_url=file_url,
            extracted_text=extracted_text,
            summary_status=summary_status,
            created_at=now,
            updated_at=now,
        )
        self._next_document_id += 1
        self._documents[document.id] = document
        return document

    async def update_document(self, document_id: int, **fields: Any) -> Document:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update document fields: {sorted(unknown)}")
        current = self._require_document(document_id)
        updated = current.model_copy(update={**fields, "updated_at": utcnow()})
        self._documents[document_id] = updated
        return updated

    async def get_document(self, document_id: int) -> Document | None:
        return self._documents.get(document_id)

    async def delete_document(self, document_id: int) -> None:
        self._require_document(document_id)
        del self._documents[document_id]
        self._embeddings.pop(document_id, None)
        for session_id in [s.id for s in self._sessions.values() if s.document_id == document_id]:
            del self._sessions[session_id]
            self._messages.pop(session_id, None)

    async def list_documents(self, user_id: int, page: int = 1, limit: int = 10) -> DocumentPage:
        owned = [d for d in self._documents.values() if d.user_id == user_id]
        return self._document_page(owned, page, limit)

    async def search_documents(
        self, user_id: int, term: str, page: int = 1, limit: int = 10
    ) -> DocumentPage:
        needle = term.lower()
        matches = [
            d
            for d in self._documents.values()
            if d.user_id == user_id
            and any(
                needle in (value or "").lower()
                for value in (d.title, d.file_name, d.extracted_text)
            )
        ]
        return self._document_page(matches, page, limit)

    @staticmethod
    def _document_page(documents: list[Document], page: int, limit: int) -> DocumentPage:
        page = max(page, 1)
        ordered = sorted(documents, key=lambda d: (d.created_at, d.id), reverse=True)
        start = (page - 1) * limit
        return DocumentPage(
            data=ordered[start : start + limit],
            page=page,
            limit=limit,
            total=len(ordered),
        )

    async def document_stats(self, user_id: int | None = None) -> DocumentStats:
        docs = [
            d for d in self._documents.values() if user_id is None or d.user_id == user_id
        ]
        return DocumentStats(
            total=len(docs),
            by_status=dict(Counter(d.status.value for d in docs)),
            total_size=sum(d.file_size for d in docs),
        )

    # -- Embeddings --------------------------------------------------------

    async def insert_embedding_chunk(
        self,
        document_id: int,
        chunk_index: int,
        chunk_text: str,
        embedding: list[float],
    ) -> DocumentEmbedding:
        self._require_document(document_id)
        chunk = DocumentEmbedding(
            document_id=document_id,
            chunk_index=chunk_index,
            chunk_text=chunk_text,
            embedding=embedding,
        )
        self._embeddings.setdefault(document_id, []).append(chunk)
        return chunk

    async def replace_embeddings(
        self, document_id: int, chunks: list[DocumentEmbedding]
    ) -> None:
        self._require_document(document_id)
        foreign = [c for c in chunks if c.document_id != document_id]
        if foreign:
            raise ValueError("All chunks must belong to the document being replaced")
        self._embeddings[document_id] = sorted(chunks, key=lambda c: c.chunk_index)

    async def list_embeddings(self, document_id: int) -> list[DocumentEmbedding]:
        return sorted(self._embeddings.get(document_id, []), key=lambda c: c.chunk_index)

    async def list_embeddings_for_user(self, user_id: int) -> list[DocumentEmbedding]:
        rows: list[DocumentEmbedding] = []
        for document_id, chunks in self._embeddings.items():
            document = self._documents.get(document_id)
            if document is not None and document.user_id == user_id:
                rows.extend(sorted(chunks, key=lambda c: c.chunk_index))
        return rows

    # -- Chat --------------------------------------------------------------

    async def create_chat_session(
        self, user_id: int, document_id: int, session_name: str
    ) -> ChatSession:
        self._require_document(document_id)
        session = ChatSession(
            id=self._next_session_id,
            user_id=user_id,
            document_id=document_id,
            session_name=session_name,
        )
        self._next_session_id += 1
        self._sessions[session.id] = session
        return session

    async def get_chat_session(self, session_id: int) -> ChatSession | None:
        session = self._sessions.get(session_id)
        return self._with_count(session) if session is not None else None

    async def list_chat_sessions(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        document_id: int | None = None,
    ) -> ChatSessionPage:
        page = max(page, 1)
        owned = sorted(
            (
                s
                for s in self._sessions.values()
                if s.user_id == user_id and (document_id is None or s.document_id == document_id)
            ),
            key=lambda s: (s.updated_at, s.id),
            reverse=True,
        )
        start = (page - 1) * limit
        return ChatSessionPage(
            data=[self._with_count(s) for s in owned[start : start + limit]],
            page=page,
            limit=limit,
            total=len(owned),
        )

    async def delete_chat_session(self, session_id: int) -> None:
        if session_id not in self._sessions:
            raise NotFoundError(message=f"Chat session {session_id} not found")
        del self._sessions[session_id]
        self._messages.pop(session_id, None)

    async def chat_session_stats(self, user_id: int | None = None) -> ChatSessionStats:
        sessions = [
            s for s in self._sessions.values() if user_id is None or s.user_id == user_id
        ]
        return ChatSessionStats(
            total=len(sessions),
            total_messages=sum(len(self._messages.get(s.id, [])) for s in sessions),
        )

    async def add_chat_message(self, session_id: int, message: str, response: str) -> ChatMessage:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError(message=f"Chat session {session_id} not found")
        chat_message = ChatMessage(
            id=self._next_message_id,
            session_id=session_id,
            message=message,
            response=response,
        )
        self._next_message_id += 1
        self._messages.setdefault(session_id, []).append(chat_message)
        self._sessions[session_id] = session.model_copy(update={"updated_at": utcnow()})
        return chat_message

    async def list_chat_messages(self, session_id: int) -> list[ChatMessage]:
        return list(self._messages.get(session_id, []))

    # ------------------------------------------------------------------

    def _with_count(self, session: ChatSession) -> ChatSession:
        return session.model_copy(
            update={"message_count": len(self._messages.get(session.id, []))}
        )

    def _require_document(self, document_id: int) -> Document:
        document = self._documents.get(document_id)
        if document is None:
            raise NotFoundError(message=f"Document {document_id} not found")
        return document
