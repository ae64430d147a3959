"""Document-grounded chat.

A chat session binds one user to one document.  Each message is answered
by the orchestrator's ``chat`` chain using an excerpt of the document's
extracted text, and the message/response pair is appended to the session.
"""

from __future__ import annotations

import structlog

from docaugment.interfaces.document_store import IDocumentStore
from docaugment.models.document import (
    ChatMessage,
    ChatSession,
    ChatSessionPage,
    ChatSessionStats,
    Document,
    utcnow,
)
from docaugment.services.ai_orchestrator import AIOrchestrator
from docaugment.utils.errors import InvalidStateError, NotFoundError
from docaugment.utils.logging import operation_context

logger = structlog.get_logger(logger_name=__name__)


class ChatService:
    """Answers questions about a document and records the exchange."""

    def __init__(self, store: IDocumentStore, orchestrator: AIOrchestrator) -> None:
        self._store = store
        self._orchestrator = orchestrator

    async def start_session(
        self,
        user_id: int,
        document_id: int,
        session_name: str | None = None,
    ) -> ChatSession:
        """Open a session on one of the user's documents.

        The name defaults to ``"Chat <YYYY-MM-DD>"``.
        """
        await self._owned_document(user_id, document_id)
        name = session_name or f"Chat {utcnow().date().isoformat()}"
        session = await self._store.create_chat_session(user_id, document_id, name)
        logger.info("chat_session_started", session_id=session.id, document_id=document_id)
        return session

    async def send_message(self, user_id: int, session_id: int, message: str) -> ChatMessage:
        """Answer *message* within a session and persist the pair."""
        with operation_context("chat", session_id=session_id, user_id=user_id):
            session = await self._owned_session(user_id, session_id)
            document = await self._owned_document(user_id, session.document_id)
            response = await self.ask(document, message)
            recorded = await self._store.add_chat_message(session_id, message, response)
            logger.info("chat_message_recorded", document_id=document.id, message_id=recorded.id)
            return recorded

    async def history(self, user_id: int, session_id: int) -> list[ChatMessage]:
        await self._owned_session(user_id, session_id)
        return await self._store.list_chat_messages(session_id)

    async def list_sessions(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        document_id: int | None = None,
    ) -> ChatSessionPage:
        return await self._store.list_chat_sessions(
            user_id, page=page, limit=limit, document_id=document_id
        )

    async def delete_session(self, user_id: int, session_id: int) -> None:
        """Delete one of the user's sessions together with its messages."""
        await self._owned_session(user_id, session_id)
        await self._store.delete_chat_session(session_id)
        logger.info("chat_session_removed", session_id=session_id, user_id=user_id)

    async def session_stats(self, user_id: int | None = None) -> ChatSessionStats:
        return await self._store.chat_session_stats(user_id)

    async def ask(self, document: Document, message: str) -> str:
        """Answer one question about *document* without recording it.

        Raises
        ------
        InvalidStateError
            If the document has no extracted text or the message is blank.
        AllProvidersFailedError
            If every chat provider failed.
        """
        if not message or not message.strip():
            raise InvalidStateError(message="Chat message must not be empty")
        if not document.has_text:
            raise InvalidStateError(
                message=f"Document {document.id} has no extracted text to chat about"
            )
        return await self._orchestrator.chat(document.extracted_text or "", message)

    async def _owned_document(self, user_id: int, document_id: int) -> Document:
        document = await self._store.get_document(document_id)
        if document is None or document.user_id != user_id:
            raise NotFoundError(message=f"Document {document_id} not found")
        return document

    async def _owned_session(self, user_id: int, session_id: int) -> ChatSession:
        session = await self._store.get_chat_session(session_id)
        if session is None or session.user_id != user_id:
            raise NotFoundError(message=f"Chat session {session_id} not found")
        return session
