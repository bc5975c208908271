"""
Test HybridRetriever
====================

Merge-and-rank behaviour, strategy presets and graceful degradation.
"""

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from hybridrag.exceptions import EmbeddingServiceError, VectorStoreError
from hybridrag.storage.base import VectorHit
from hybridrag.storage.retriever import HybridRetriever, Provenance, SearchStrategy


@pytest_asyncio.fixture
async def corpus(pipeline, sample_text, unrelated_text):
    """Two ingested documents: one about OpenAI, one about Python."""
    openai_doc = await pipeline.ingest(sample_text, "openai.txt")
    python_doc = await pipeline.ingest(unrelated_text, "python.txt")
    return openai_doc, python_doc


class TestSearchStrategy:
    """Test SearchStrategy validation and presets."""

    def test_defaults(self):
        strategy = SearchStrategy()
        assert strategy.vector_weight == 0.7
        assert strategy.graph_weight == 0.3
        assert strategy.enable_graph_expansion is True
        assert strategy.max_graph_depth == 2

    def test_vector_only_preset(self):
        strategy = SearchStrategy.vector_only()
        assert (strategy.vector_weight, strategy.graph_weight) == (1.0, 0.0)
        assert strategy.enable_graph_expansion is False

    def test_invalid_weights(self):
        with pytest.raises(ValueError, match="vector_weight must be in"):
            SearchStrategy(vector_weight=1.5)
        with pytest.raises(ValueError, match="graph_weight must be in"):
            SearchStrategy(graph_weight=-0.1)
        with pytest.raises(ValueError, match="max_graph_depth must be"):
            SearchStrategy(max_graph_depth=-1)


class TestHybridSearch:
    """Test hybrid ranking against the in-memory stores."""

    @pytest.mark.asyncio
    async def test_hybrid_scenario(self, retriever, corpus):
        openai_doc, _ = corpus

        results = await retriever.search("OpenAI GPT-4", limit=5, strategy=SearchStrategy.hybrid())

        top = results[0]
        assert top.document_id == openai_doc.document_id
        assert top.provenance == Provenance.HYBRID
        assert top.graph_context is not None
        assert top.graph_context.related_entities
        assert "Microsoft" in top.graph_context.related_entities

    @pytest.mark.asyncio
    async def test_hybrid_score_formula(self, retriever, corpus):
        results = await retriever.search("OpenAI GPT-4", limit=5)

        for r in results:
            expected = r.similarity * 0.7
            if r.provenance == Provenance.HYBRID:
                expected += 0.3
            if r.graph_context is not None:
                expected += 0.1 * min(len(r.graph_context.related_entities), 5)
            assert r.score == pytest.approx(expected)

    @pytest.mark.asyncio
    async def test_vector_only_scenario(self, retriever, corpus):
        results = await retriever.search("OpenAI GPT-4", limit=5, strategy=SearchStrategy.vector_only())

        assert results
        assert all(r.provenance == Provenance.VECTOR for r in results)
        assert all(r.graph_context is None for r in results)
        assert all(r.score == pytest.approx(r.similarity) for r in results)

    @pytest.mark.asyncio
    async def test_vector_only_preserves_store_order(self, retriever, vector_store, fake_embedder, corpus):
        query = "readable code Python OpenAI"
        raw = await vector_store.nearest_chunks(await fake_embedder.embed(query), 10)

        results = await retriever.search(query, limit=10, strategy=SearchStrategy.vector_only())

        assert [r.chunk_id for r in results] == [h.chunk_id for h in raw]

    @pytest.mark.asyncio
    async def test_hybrid_documents_mention_query_entities(self, retriever, graph_store, extractor, corpus):
        query = "OpenAI GPT-4"
        mentioned = set(await graph_store.related_documents(await extractor.extract_query_entities(query)))

        results = await retriever.search(query, limit=5)

        hybrid = [r for r in results if r.provenance == Provenance.HYBRID]
        assert hybrid
        assert all(r.document_id in mentioned for r in hybrid)

    @pytest.mark.asyncio
    async def test_results_sorted_by_score(self, retriever, corpus):
        results = await retriever.search("Python OpenAI", limit=5)

        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, 1, 2])
    async def test_never_exceeds_limit(self, retriever, corpus, limit):
        results = await retriever.search("OpenAI Python", limit=limit)

        assert len(results) <= limit

    @pytest.mark.asyncio
    async def test_over_fetches_from_vector_store(self, retriever, vector_store, corpus):
        spy = AsyncMock(side_effect=vector_store.nearest_chunks)
        with patch.object(vector_store, "nearest_chunks", spy):
            await retriever.search("OpenAI", limit=4)

        assert spy.call_args.args[1] == 6

    @pytest.mark.asyncio
    async def test_blank_query_rejected(self, retriever):
        with pytest.raises(ValueError):
            await retriever.search("   ")

    @pytest.mark.asyncio
    async def test_empty_store(self, retriever):
        assert await retriever.search("OpenAI GPT-4") == []

    @pytest.mark.asyncio
    async def test_no_query_entities_means_no_graph_signal(self, retriever, corpus):
        results = await retriever.search("readable code", limit=5)

        assert all(r.provenance == Provenance.VECTOR for r in results)
        assert all(r.graph_context is None for r in results)


class TestDegradation:
    """Test fallback to vector-only ranking."""

    @pytest.mark.asyncio
    async def test_graph_failure_falls_back(self, retriever, graph_store, corpus):
        with patch.object(graph_store, "related_context", AsyncMock(side_effect=ConnectionError("down"))):
            results = await retriever.search("OpenAI GPT-4", limit=5)

        assert results
        assert all(r.provenance == Provenance.VECTOR for r in results)
        assert all(r.graph_context is None for r in results)

    @pytest.mark.asyncio
    async def test_extraction_exception_falls_back(self, retriever, extractor, corpus):
        with patch.object(extractor, "extract_query_entities", AsyncMock(side_effect=RuntimeError("boom"))):
            results = await retriever.search("OpenAI GPT-4", limit=2)

        assert len(results) <= 2
        assert all(r.provenance == Provenance.VECTOR for r in results)

    @pytest.mark.asyncio
    async def test_vector_store_failure_propagates(self, retriever, vector_store):
        with patch.object(vector_store, "nearest_chunks", AsyncMock(side_effect=VectorStoreError("down"))):
            with pytest.raises(VectorStoreError):
                await retriever.search("OpenAI")

    @pytest.mark.asyncio
    async def test_query_embedding_failure_propagates(self, retriever, fake_embedder):
        with patch.object(fake_embedder, "embed", AsyncMock(side_effect=EmbeddingServiceError("down"))):
            with pytest.raises(EmbeddingServiceError):
                await retriever.search("OpenAI")


class TestRanking:
    """Test ranking with stubbed collaborators."""

    @pytest.mark.asyncio
    async def test_graph_bonus_reorders_hits(self, fake_embedder, extractor, vector_store, graph_store):
        hits = [
            VectorHit("doc-x", "x.txt", "x", 0, 0.9, chunk_id="x0"),
            VectorHit("doc-y", "y.txt", "y", 0, 0.7, chunk_id="y0"),
        ]
        retriever = HybridRetriever(fake_embedder, extractor, vector_store, graph_store)

        with patch.object(vector_store, "nearest_chunks", AsyncMock(return_value=hits)), \
                patch.object(graph_store, "related_documents", AsyncMock(return_value=["doc-y"])):
            results = await retriever.search("OpenAI", limit=2)

        assert [r.chunk_id for r in results] == ["y0", "x0"]
        assert results[0].provenance == Provenance.HYBRID
        assert results[0].score == pytest.approx(0.7 * 0.7 + 0.3)
        assert results[1].score == pytest.approx(0.9 * 0.7)
