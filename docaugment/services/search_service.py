"""Vector-distance search over a user's embedded chunks.

A linear scan, not an index: every chunk the user owns is loaded and
compared against the query vector with cosine distance (``1 - cosine
similarity``).  Each document is represented by its nearest chunk, and
documents farther than ``max_distance`` are dropped.

Ordering is deterministic: ascending distance (rounded to 6 decimals so
float noise cannot reorder equal scores), then newest ``created_at``, then
higher document id.
"""

from __future__ import annotations

import numpy as np
import structlog

from docaugment.interfaces.document_store import IDocumentStore
from docaugment.models.document import DocumentEmbedding
from docaugment.models.search import SearchHit
from docaugment.services.ai_orchestrator import AIOrchestrator

logger = structlog.get_logger(logger_name=__name__)

_DISTANCE_DECIMALS = 6


def cosine_distances(query: list[float], matrix: np.ndarray) -> np.ndarray:
    """Return ``1 - cos(query, row)`` for each row of *matrix*.

    Zero-norm rows (or a zero-norm query) get distance 1.0.
    """
    q = np.asarray(query, dtype=np.float64)
    q_norm = np.linalg.norm(q)
    row_norms = np.linalg.norm(matrix, axis=1)
    denom = row_norms * q_norm
    with np.errstate(divide="ignore", invalid="ignore"):
        similarity = np.where(denom > 0, matrix @ q / denom, 0.0)
    return np.clip(1.0 - similarity, 0.0, 2.0)


class SearchService:
    """Ranks a user's documents by similarity of their chunks to a query.

    Parameters
    ----------
    store:
        Source of chunks and documents.
    orchestrator:
        Used to embed the query through the configured embedding chain.
    max_distance:
        Documents whose nearest chunk is farther than this are excluded.
    """

    def __init__(
        self,
        store: IDocumentStore,
        orchestrator: AIOrchestrator,
        max_distance: float = 0.5,
    ) -> None:
        self._store = store
        self._orchestrator = orchestrator
        self._max_distance = max_distance

    async def search(self, user_id: int, query: str, limit: int = 5) -> list[SearchHit]:
        """Return up to *limit* documents nearest to *query*.

        Blank queries, non-positive limits and users without any embedded
        chunk yield an empty list without calling a provider.

        Raises
        ------
        AllProvidersFailedError
            If the query cannot be embedded by any provider.
        """
        if not query or not query.strip() or limit <= 0:
            return []

        chunks = await self._store.list_embeddings_for_user(user_id)
        if not chunks:
            logger.info("search_no_embeddings", user_id=user_id)
            return []

        query_vector = await self._orchestrator.embed(query)
        nearest = self._nearest_per_document(query_vector, chunks)

        hits: list[SearchHit] = []
        for document_id, (distance, chunk) in nearest.items():
            if distance > self._max_distance:
                continue
            document = await self._store.get_document(document_id)
            if document is None or document.user_id != user_id:
                continue
            hits.append(
                SearchHit(
                    document=document,
                    distance=distance,
                    chunk_index=chunk.chunk_index,
                    chunk_text=chunk.chunk_text,
                )
            )

        hits.sort(
            key=lambda h: (
                round(h.distance, _DISTANCE_DECIMALS),
                -h.document.created_at.timestamp(),
                -h.document.id,
            )
        )
        logger.info(
            "search_completed",
            user_id=user_id,
            candidates=len(nearest),
            matched=len(hits),
            limit=limit,
        )
        return hits[:limit]

    @staticmethod
    def _nearest_per_document(
        query_vector: list[float],
        chunks: list[DocumentEmbedding],
    ) -> dict[int, tuple[float, DocumentEmbedding]]:
        comparable = [c for c in chunks if c.dimension == len(query_vector)]
        skipped = len(chunks) - len(comparable)
        if skipped:
            logger.warning(
                "search_dimension_mismatch",
                skipped=skipped,
                query_dimension=len(query_vector),
            )
        if not comparable:
            return {}

        matrix = np.asarray([c.embedding for c in comparable], dtype=np.float64)
        distances = cosine_distances(query_vector, matrix)

        nearest: dict[int, tuple[float, DocumentEmbedding]] = {}
        for chunk, distance in zip(comparable, distances.tolist()):
            best = nearest.get(chunk.document_id)
            if best is None or distance < best[0]:
                nearest[chunk.document_id] = (distance, chunk)
        return nearest
