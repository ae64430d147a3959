"""Document domain models for the augmentation pipeline.

Defines Pydantic v2 models for uploaded documents, their embedded chunks,
and the chat records that read from them.  All models use frozen config:
state transitions produce new instances via ``model_copy(update={...})``
and are persisted through
:class:`~docaugment.interfaces.document_store.IDocumentStore`.

Each document tracks two independent operations -- summarization and
embedding generation -- with one :class:`DocumentStatus` each.  The derived
:attr:`Document.status` folds both into the single document-level outcome
callers display.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class DocumentStatus(str, Enum):  # noqa: UP042
    """Processing state of one document operation.

    PENDING -> PROCESSING -> COMPLETED | FAILED.  A new run of the same
    operation re-enters at PROCESSING from either terminal state.
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class Document(BaseModel):
    """An uploaded file, its extracted text, and its AI-derived artifacts."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    title: str
    file_name: str
    file_type: str = Field(description="Declared MIME type of the upload.")
    file_size: int = Field(ge=0, description="Size of the upload in bytes.")
    file_url: str | None = None
    extracted_text: str | None = None
    summary: str | None = None
    summary_status: DocumentStatus = DocumentStatus.PENDING
    embedding_status: DocumentStatus = DocumentStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def status(self) -> DocumentStatus:
        """Document-level outcome across summarization and embedding generation."""
        statuses = (self.summary_status, self.embedding_status)
        if DocumentStatus.FAILED in statuses:
            return DocumentStatus.FAILED
        if DocumentStatus.PROCESSING in statuses:
            return DocumentStatus.PROCESSING
        if self.summary_status is DocumentStatus.COMPLETED:
            return DocumentStatus.COMPLETED
        return DocumentStatus.PENDING

    @property
    def has_text(self) -> bool:
        return bool(self.extracted_text and self.extracted_text.strip())

    def to_artifact(self) -> dict[str, object]:
        """Return the persisted-artifact view of the document."""
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "summary_status": self.summary_status.value,
            "embedding_status": self.embedding_status.value,
            "summary": self.summary,
            "extracted_text": self.extracted_text,
        }


class DocumentEmbedding(BaseModel):
    """One sentence-aligned chunk of a document and its embedding vector."""

    model_config = ConfigDict(frozen=True)

    document_id: int
    chunk_index: int = Field(ge=0)
    chunk_text: str = Field(min_length=1)
    embedding: list[float]
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def dimension(self) -> int:
        return len(self.embedding)


class ChatSession(BaseModel):
    """A conversation binding one user to one document."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    document_id: int
    session_name: str
    message_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ChatMessage(BaseModel):
    """A user utterance paired with the generated response."""

    model_config = ConfigDict(frozen=True)

    id: int
    session_id: int
    message: str
    response: str
    created_at: datetime = Field(default_factory=utcnow)


class DocumentStats(BaseModel):
    """Aggregate counts over a user's (or every) document."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    total_size: int = 0


class ChatSessionStats(BaseModel):
    """Session and message counts over a user's (or every) chat session."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    total_messages: int = 0

    @property
    def average_messages_per_session(self) -> float:
        return self.total_messages / self.total if self.total else 0.0


class _Page(BaseModel):
    """Pagination fields shared by the list results."""

    model_config = ConfigDict(frozen=True)

    page: int = 1
    limit: int = 10
    total: int = 0

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


class DocumentPage(_Page):
    """One page of a user's documents, newest first."""

    data: list[Document] = Field(default_factory=list)


class ChatSessionPage(_Page):
    """One page of a user's chat sessions, most recently active first."""

    data: list[ChatSession] = Field(default_factory=list)
