"""Document lifecycle state machine.

Tracks each document through two independent operations, summarization
and embedding generation, each with its own :class:`DocumentStatus`:

    PENDING -> PROCESSING -> COMPLETED | FAILED

A new run of an operation re-enters at PROCESSING from either terminal
state, so a FAILED summary can be retried and a COMPLETED chunk set can be
regenerated.  Every operation holds the document's advisory lock for its
whole duration, so two runs on one document never interleave inside this
process.

Failure rules:

- An operation whose preconditions are unmet raises
  :class:`InvalidStateError` and leaves every status untouched.
- Any other failure of a started operation (exhausted providers, a store
  error, cancellation) persists FAILED, then re-raises.  Previously
  stored fields (extracted text, the last summary, the last complete
  chunk set) are never erased by a failure.
"""

from __future__ import annotations

import asyncio
from pathlib import PurePath

import structlog

from docaugment.interfaces.document_store import IDocumentStore
from docaugment.interfaces.text_extractor import ITextExtractor
from docaugment.models.document import Document, DocumentEmbedding, DocumentStatus
from docaugment.services.ai_orchestrator import AIOrchestrator
from docaugment.services.chunker import SentenceChunker
from docaugment.utils.concurrency import DEFAULT_CONCURRENCY, throttled_gather
from docaugment.utils.errors import (
    DocAugmentError,
    EmbeddingError,
    ExtractionFailedError,
    InvalidStateError,
    NotFoundError,
)
from docaugment.utils.locks import DocumentLockRegistry
from docaugment.utils.logging import operation_context

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_FILE_TYPE = "application/octet-stream"


class DocumentLifecycleManager:
    """Drives documents through extraction, summarization and embedding.

    Parameters
    ----------
    store:
        Persistence for documents and chunks.
    extractor:
        Turns upload bytes into text.
    orchestrator:
        AI fallback chains for summaries and embeddings.
    chunker:
        Splits extracted text into embedding-sized chunks.
    locks:
        Per-document lock registry; a private one is created when omitted.
    embedding_concurrency:
        Maximum number of chunk embedding calls in flight at once.
    summary_max_input_chars:
        Upper bound on the text sent for summarization.
    """

    def __init__(
        self,
        store: IDocumentStore,
        extractor: ITextExtractor,
        orchestrator: AIOrchestrator,
        chunker: SentenceChunker | None = None,
        locks: DocumentLockRegistry | None = None,
        embedding_concurrency: int = DEFAULT_CONCURRENCY,
        summary_max_input_chars: int = 100_000,
    ) -> None:
        self._store = store
        self._extractor = extractor
        self._orchestrator = orchestrator
        self._chunker = chunker or SentenceChunker()
        self._locks = locks or DocumentLockRegistry()
        self._embedding_concurrency = embedding_concurrency
        self._summary_max_input_chars = summary_max_input_chars

    # ------------------------------------------------------------------
    # Ingest
    # ------------------------------------------------------------------

    async def ingest(
        self,
        data: bytes,
        file_name: str,
        declared_kind: str | None,
        user_id: int,
        title: str | None = None,
        file_url: str | None = None,
    ) -> Document:
        """Extract text, create the document and attempt a first summary.

        Never raises for extraction or summarization failures: the returned
        document carries ``summary_status=FAILED`` instead.
        """
        title = title or PurePath(file_name).stem or file_name
        file_type = declared_kind or _DEFAULT_FILE_TYPE

        try:
            text = await asyncio.to_thread(self._extractor.extract, data, file_name, declared_kind)
        except ExtractionFailedError as exc:
            logger.warning(
                "document_extraction_failed",
                file_name=file_name,
                user_id=user_id,
                error=str(exc),
            )
            return await self._store.create_document(
                user_id=user_id,
                title=title,
                file_name=file_name,
                file_type=file_type,
                file_size=len(data),
                file_url=file_url,
                extracted_text=None,
                summary_status=DocumentStatus.FAILED,
            )

        document = await self._store.create_document(
            user_id=user_id,
            title=title,
            file_name=file_name,
            file_type=file_type,
            file_size=len(data),
            file_url=file_url,
            extracted_text=text,
        )
        logger.info(
            "document_ingested",
            document_id=document.id,
            user_id=user_id,
            chars=len(text),
        )

        try:
            await self.summarize(document.id)
        except DocAugmentError as exc:
            logger.warning("ingest_summary_failed", document_id=document.id, error=str(exc))

        return await self._load(document.id)

    # ------------------------------------------------------------------
    # Summarize
    # ------------------------------------------------------------------

    async def summarize(self, document_id: int, user_id: int | None = None) -> str:
        """Generate and persist a summary of the document's extracted text.

        Raises
        ------
        NotFoundError
            If the document does not exist or belongs to another user.
        InvalidStateError
            If the document has no extracted text.
        AllProvidersFailedError
            If every summarize provider failed; ``summary_status`` is FAILED.
            The same status is written when the call is cancelled.
        """
        with operation_context("summarize", document_id=document_id, user_id=user_id):
            async with self._locks.hold(document_id):
                document = await self._load(document_id, user_id)
                if not document.has_text:
                    raise InvalidStateError(
                        message=f"Document {document_id} has no extracted text to summarize"
                    )

                await self._store.update_document(
                    document_id, summary_status=DocumentStatus.PROCESSING
                )
                text = (document.extracted_text or "")[: self._summary_max_input_chars]
                try:
                    summary = await self._orchestrator.summarize(text)
                    await self._store.update_document(
                        document_id,
                        summary=summary,
                        summary_status=DocumentStatus.COMPLETED,
                    )
                except BaseException as exc:
                    # Cancellation included: PROCESSING never outlives the run.
                    await self._record_failure(document_id, "summary_status", exc)
                    raise

                logger.info("summary_completed", document_id=document_id, chars=len(summary))
                return summary

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    async def generate_embeddings(
        self, document_id: int, user_id: int | None = None
    ) -> list[DocumentEmbedding]:
        """Chunk the document's text, embed every chunk and replace its chunk set.

        The previous chunk set is replaced only when every chunk embedded
        successfully with a common vector dimension; otherwise it is left
        as it was and ``embedding_status`` becomes FAILED.

        Raises
        ------
        NotFoundError
            If the document does not exist or belongs to another user.
        InvalidStateError
            If the document has no text, or no sentence to chunk.
        AllProvidersFailedError
            If any chunk could not be embedded by any provider.
        EmbeddingError
            If chunks came back with different vector dimensions.
        """
        with operation_context("generate_embeddings", document_id=document_id, user_id=user_id):
            async with self._locks.hold(document_id):
                document = await self._load(document_id, user_id)
                if not document.has_text:
                    raise InvalidStateError(
                        message=f"Document {document_id} has no extracted text to embed"
                    )
                chunks = self._chunker.chunk(document.extracted_text or "")
                if not chunks:
                    raise InvalidStateError(
                        message=f"Document {document_id} has no sentences to embed"
                    )

                await self._store.update_document(
                    document_id, embedding_status=DocumentStatus.PROCESSING
                )
                try:
                    rows = await self._replace_chunk_set(document_id, chunks)
                except BaseException as exc:
                    await self._record_failure(document_id, "embedding_status", exc)
                    raise

                logger.info(
                    "embeddings_completed",
                    document_id=document_id,
                    chunks=len(rows),
                    dimension=rows[0].dimension,
                )
                return rows

    async def _replace_chunk_set(
        self, document_id: int, chunks: list[str]
    ) -> list[DocumentEmbedding]:
        semaphore = asyncio.Semaphore(self._embedding_concurrency)
        results = await throttled_gather(
            [self._orchestrator.embed(chunk) for chunk in chunks],
            semaphore=semaphore,
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.warning(
                "chunk_embedding_failed", document_id=document_id, failed_chunks=len(failures)
            )
            raise failures[0]

        dimensions = sorted({len(vector) for vector in results})
        if len(dimensions) > 1:
            raise EmbeddingError(
                message=(
                    f"Chunks of document {document_id} were embedded with mixed "
                    f"dimensions {dimensions}"
                ),
            )

        rows = [
            DocumentEmbedding(
                document_id=document_id,
                chunk_index=index,
                chunk_text=chunk,
                embedding=vector,
            )
            for index, (chunk, vector) in enumerate(zip(chunks, results))
        ]
        await self._store.replace_embeddings(document_id, rows)
        await self._store.update_document(document_id, embedding_status=DocumentStatus.COMPLETED)
        return rows

    async def _record_failure(
        self, document_id: int, status_field: str, error: BaseException
    ) -> None:
        """Persist FAILED for *status_field* after an interrupted or failed run.

        A store error raised here is logged and dropped so the caller
        re-raises the original error.
        """
        reason = "cancelled" if isinstance(error, asyncio.CancelledError) else str(error)
        try:
            await self._store.update_document(
                document_id, **{status_field: DocumentStatus.FAILED}
            )
        except DocAugmentError as exc:
            logger.error(
                "status_write_failed",
                document_id=document_id,
                field=status_field,
                error=str(exc),
            )
        logger.error(
            "operation_failed",
            document_id=document_id,
            field=status_field,
            error=reason,
        )

    # ------------------------------------------------------------------
    # Reads / delete
    # ------------------------------------------------------------------

    async def get_document(self, document_id: int, user_id: int | None = None) -> Document:
        return await self._load(document_id, user_id)

    async def delete(self, document_id: int, user_id: int | None = None) -> None:
        """Delete the document together with its chunks and chat records."""
        with operation_context("delete", document_id=document_id, user_id=user_id):
            async with self._locks.hold(document_id):
                await self._load(document_id, user_id)
                await self._store.delete_document(document_id)
                logger.info("document_removed", document_id=document_id)

    async def _load(self, document_id: int, user_id: int | None = None) -> Document:
        document = await self._store.get_document(document_id)
        if document is None or (user_id is not None and document.user_id != user_id):
            raise NotFoundError(message=f"Document {document_id} not found")
        return document
