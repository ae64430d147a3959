"""Public entry point of the augmentation pipeline.

:class:`DocumentPipeline` bundles the lifecycle manager, search, chat and
keyword extraction behind one object.  Only :class:`DocAugmentError`
subclasses cross this boundary; callers (the CLI, an HTTP layer) never see
SDK or database exceptions.
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
    DocumentEmbedding,
    DocumentPage,
    DocumentStats,
)
from docaugment.models.search import SearchHit
from docaugment.pipeline.lifecycle import DocumentLifecycleManager
from docaugment.services.ai_orchestrator import AIOrchestrator
from docaugment.services.chat_service import ChatService
from docaugment.services.search_service import SearchService
from docaugment.utils.errors import InvalidStateError

logger = structlog.get_logger(logger_name=__name__)


class DocumentPipeline:
    """Facade over ingest, augmentation, retrieval and chat."""

    def __init__(
        self,
        store: IDocumentStore,
        lifecycle: DocumentLifecycleManager,
        orchestrator: AIOrchestrator,
        search_service: SearchService,
        chat_service: ChatService,
        default_search_limit: int = 5,
    ) -> None:
        self._store = store
        self._lifecycle = lifecycle
        self._orchestrator = orchestrator
        self._search = search_service
        self._chat = chat_service
        self._default_search_limit = default_search_limit

    @property
    def store(self) -> IDocumentStore:
        return self._store

    @property
    def orchestrator(self) -> AIOrchestrator:
        return self._orchestrator

    async def initialize(self) -> None:
        await self._store.initialize()

    async def close(self) -> None:
        await self._store.close()

    # -- Lifecycle ---------------------------------------------------------

    async def ingest(
        self,
        data: bytes,
        file_name: str,
        declared_kind: str | None,
        user_id: int,
        title: str | None = None,
        file_url: str | None = None,
    ) -> Document:
        return await self._lifecycle.ingest(
            data,
            file_name,
            declared_kind,
            user_id,
            title=title,
            file_url=file_url,
        )

    async def summarize(self, document_id: int, user_id: int | None = None) -> str:
        return await self._lifecycle.summarize(document_id, user_id)

    async def generate_embeddings(
        self, document_id: int, user_id: int | None = None
    ) -> list[DocumentEmbedding]:
        return await self._lifecycle.generate_embeddings(document_id, user_id)

    async def get_document(self, document_id: int, user_id: int | None = None) -> Document:
        return await self._lifecycle.get_document(document_id, user_id)

    async def delete_document(self, document_id: int, user_id: int | None = None) -> None:
        await self._lifecycle.delete(document_id, user_id)

    async def list_documents(self, user_id: int, page: int = 1, limit: int = 10) -> DocumentPage:
        return await self._store.list_documents(user_id, page=page, limit=limit)

    async def search_documents(
        self, user_id: int, term: str, page: int = 1, limit: int = 10
    ) -> DocumentPage:
        """Text search over title, file name and extracted text.  No embeddings involved."""
        if not term or not term.strip():
            raise InvalidStateError(message="Search term must not be empty")
        return await self._store.search_documents(user_id, term.strip(), page=page, limit=limit)

    async def recent_documents(self, user_id: int, limit: int = 5) -> list[Document]:
        page = await self._store.list_documents(user_id, page=1, limit=limit)
        return page.data

    async def stats(self, user_id: int | None = None) -> DocumentStats:
        return await self._store.document_stats(user_id)

    # -- Augmentation ------------------------------------------------------

    async def extract_keywords(self, document_id: int, user_id: int | None = None) -> list[str]:
        """Return key terms for the document.  Nothing is persisted."""
        document = await self._lifecycle.get_document(document_id, user_id)
        if not document.has_text:
            raise InvalidStateError(
                message=f"Document {document_id} has no extracted text for keywords"
            )
        keywords = await self._orchestrator.extract_keywords(document.extracted_text or "")
        logger.info("keywords_extracted", document_id=document_id, count=len(keywords))
        return keywords

    async def search(self, user_id: int, query: str, limit: int | None = None) -> list[SearchHit]:
        return await self._search.search(
            user_id, query, self._default_search_limit if limit is None else limit
        )

    # -- Chat --------------------------------------------------------------

    async def chat(self, document_id: int, message: str, user_id: int | None = None) -> str:
        """Answer one question about a document without opening a session."""
        document = await self._lifecycle.get_document(document_id, user_id)
        return await self._chat.ask(document, message)

    async def start_chat_session(
        self, user_id: int, document_id: int, session_name: str | None = None
    ) -> ChatSession:
        return await self._chat.start_session(user_id, document_id, session_name)

    async def send_chat_message(self, user_id: int, session_id: int, message: str) -> ChatMessage:
        return await self._chat.send_message(user_id, session_id, message)

    async def chat_history(self, user_id: int, session_id: int) -> list[ChatMessage]:
        return await self._chat.history(user_id, session_id)

    async def list_chat_sessions(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        document_id: int | None = None,
    ) -> ChatSessionPage:
        return await self._chat.list_sessions(
            user_id, page=page, limit=limit, document_id=document_id
        )

    async def delete_chat_session(self, user_id: int, session_id: int) -> None:
        await self._chat.delete_session(user_id, session_id)

    async def chat_stats(self, user_id: int | None = None) -> ChatSessionStats:
        return await self._chat.session_stats(user_id)
