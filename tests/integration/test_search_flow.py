"""Integration tests for vector search over embedded documents."""

from __future__ import annotations

import pytest

from docaugment.utils.errors import AllProvidersFailedError

pytestmark = pytest.mark.integration


async def _embedded(pipeline, text: str, name: str, user_id: int = 1):
    document = await pipeline.ingest(text.encode(), name, "text/plain", user_id)
    await pipeline.generate_embeddings(document.id)
    return document


class TestSearch:
    @pytest.mark.asyncio
    async def test_only_close_documents_are_returned(self, make_pipeline) -> None:
        pipeline = make_pipeline()
        apples = [await _embedded(pipeline, f"Apple study {i}.", f"apple{i}.txt") for i in range(3)]
        for i in range(2):
            await _embedded(pipeline, f"Banana study {i}.", f"banana{i}.txt")

        hits = await pipeline.search(1, "apple orchards", limit=10)

        assert {h.document.id for h in hits} == {d.id for d in apples}
        assert all(h.distance == pytest.approx(0.0) for h in hits)
        assert all(h.score == pytest.approx(1.0) for h in hits)

    @pytest.mark.asyncio
    async def test_ties_ordered_newest_first_and_limited(self, make_pipeline) -> None:
        pipeline = make_pipeline()
        docs = [await _embedded(pipeline, "Apple facts.", f"a{i}.txt") for i in range(4)]

        hits = await pipeline.search(1, "apple", limit=2)

        assert [h.document.id for h in hits] == [docs[3].id, docs[2].id]

    @pytest.mark.asyncio
    async def test_default_limit(self, make_pipeline) -> None:
        pipeline = make_pipeline()
        for i in range(7):
            await _embedded(pipeline, "Apple facts.", f"a{i}.txt")
        assert len(await pipeline.search(1, "apple")) == 5

    @pytest.mark.asyncio
    async def test_document_represented_by_nearest_chunk(self, make_pipeline) -> None:
        pipeline = make_pipeline(chunk_size=15)
        document = await _embedded(pipeline, "Banana split. Apple crumble.", "mixed.txt")

        hits = await pipeline.search(1, "apple")

        assert len(hits) == 1
        assert hits[0].document.id == document.id
        assert hits[0].chunk_index == 1
        assert hits[0].chunk_text == "Apple crumble."

    @pytest.mark.asyncio
    async def test_max_distance_is_configurable(self, make_pipeline) -> None:
        pipeline = make_pipeline(max_distance=1.0)
        await _embedded(pipeline, "Apple facts.", "a.txt")
        await _embedded(pipeline, "Banana facts.", "b.txt")

        hits = await pipeline.search(1, "apple")

        assert [round(h.distance, 6) for h in hits] == [0.0, 1.0]

    @pytest.mark.asyncio
    async def test_other_users_chunks_are_invisible(self, make_pipeline) -> None:
        pipeline = make_pipeline()
        await _embedded(pipeline, "Apple facts.", "a.txt", user_id=1)
        assert await pipeline.search(2, "apple") == []

    @pytest.mark.asyncio
    async def test_mismatched_dimension_chunks_are_skipped(
        self, make_pipeline, memory_store
    ) -> None:
        pipeline = make_pipeline()
        good = await _embedded(pipeline, "Apple facts.", "good.txt")
        odd = await pipeline.ingest(b"Apple legacy.", "odd.txt", "text/plain", 1)
        await memory_store.insert_embedding_chunk(odd.id, 0, "Apple legacy.", [1.0, 0.0])

        hits = await pipeline.search(1, "apple")

        assert [h.document.id for h in hits] == [good.id]

    @pytest.mark.asyncio
    async def test_no_embeddings_skips_provider(self, make_pipeline, embedder) -> None:
        pipeline = make_pipeline(embedders=[embedder])
        await pipeline.ingest(b"Apple facts.", "a.txt", "text/plain", 1)

        assert await pipeline.search(1, "apple") == []
        assert embedder.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("query", "limit"), [("", 5), ("   ", 5), ("apple", 0)])
    async def test_degenerate_requests_return_nothing(
        self, make_pipeline, embedder, query: str, limit: int
    ) -> None:
        pipeline = make_pipeline(embedders=[embedder])
        await _embedded(pipeline, "Apple facts.", "a.txt")
        embedder.calls.clear()

        assert await pipeline.search(1, query, limit=limit) == []
        assert embedder.calls == []

    @pytest.mark.asyncio
    async def test_query_embedding_failure_propagates(self, make_pipeline, embedder) -> None:
        pipeline = make_pipeline(embedders=[embedder])
        await _embedded(pipeline, "Apple facts.", "a.txt")
        embedder.fail_on = "broken"

        with pytest.raises(AllProvidersFailedError):
            await pipeline.search(1, "broken query")
