"""
Test In-Memory Stores
=====================

InMemoryVectorStore ranking and InMemoryGraphStore traversal.
"""

import pytest

from hybridrag.pipeline.models import (
    Chunk,
    Document,
    Entity,
    EntityType,
    Relationship,
    RelationshipType,
)


def _chunk(document_id, index, embedding, content="text"):
    return Chunk(
        document_id=document_id,
        chunk_index=index,
        content=content,
        embedding=embedding,
        filename=f"{document_id}.txt",
    )


@pytest.fixture
def populated_graph(graph_store):
    """Two documents sharing no entities, one relationship chain."""

    async def _build():
        doc_a = Document(filename="a.txt", text="a", document_id="doc-a")
        doc_b = Document(filename="b.txt", text="b", document_id="doc-b")
        entities_a = [
            Entity("doc-a_entity_openai", "OpenAI", EntityType.ORGANIZATION),
            Entity("doc-a_entity_gpt_4", "GPT-4", EntityType.TECHNOLOGY),
            Entity("doc-a_entity_microsoft", "Microsoft", EntityType.ORGANIZATION),
        ]
        entities_b = [Entity("doc-b_entity_python", "Python", EntityType.TECHNOLOGY)]

        for doc, entities in ((doc_a, entities_a), (doc_b, entities_b)):
            await graph_store.upsert_document(doc)
            await graph_store.upsert_entities(entities)
            await graph_store.link_document_to_entities(doc.document_id, [e.entity_id for e in entities])

        await graph_store.upsert_relationships([
            Relationship("doc-a_entity_openai", "doc-a_entity_gpt_4", RelationshipType.RELATES_TO),
        ])
        return graph_store

    return _build


class TestInMemoryVectorStore:
    """Test cosine ranking and document management."""

    @pytest.mark.asyncio
    async def test_nearest_orders_by_similarity(self, vector_store):
        await vector_store.upsert_chunks("d1", [
            _chunk("d1", 0, [1.0, 0.0]),
            _chunk("d1", 1, [0.6, 0.8]),
            _chunk("d1", 2, [0.0, 1.0]),
        ])

        hits = await vector_store.nearest_chunks([1.0, 0.0], limit=2)

        assert [h.chunk_index for h in hits] == [0, 1]
        assert hits[0].similarity == pytest.approx(1.0)
        assert hits[1].similarity == pytest.approx(0.6)

    @pytest.mark.asyncio
    async def test_ties_keep_insertion_order(self, vector_store):
        await vector_store.upsert_chunks("d1", [_chunk("d1", i, [1.0, 1.0]) for i in range(4)])

        hits = await vector_store.nearest_chunks([1.0, 1.0], limit=4)

        assert [h.chunk_index for h in hits] == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_zero_limit_and_empty_store(self, vector_store):
        assert await vector_store.nearest_chunks([1.0], limit=5) == []
        await vector_store.upsert_chunks("d1", [_chunk("d1", 0, [1.0])])
        assert await vector_store.nearest_chunks([1.0], limit=0) == []

    @pytest.mark.asyncio
    async def test_rejects_foreign_or_unembedded_chunks(self, vector_store):
        with pytest.raises(ValueError):
            await vector_store.upsert_chunks("d1", [_chunk("d2", 0, [1.0])])
        with pytest.raises(ValueError):
            await vector_store.upsert_chunks("d1", [_chunk("d1", 0, [])])

    @pytest.mark.asyncio
    async def test_chunks_of_list_and_delete(self, vector_store):
        await vector_store.upsert_chunks("d1", [_chunk("d1", 1, [1.0]), _chunk("d1", 0, [1.0])])
        await vector_store.upsert_chunks("d2", [_chunk("d2", 0, [1.0])])

        assert [c.chunk_index for c in await vector_store.chunks_of("d1")] == [0, 1]
        summaries = {s.document_id: s.chunk_count for s in await vector_store.list_documents()}
        assert summaries == {"d1": 2, "d2": 1}

        assert await vector_store.delete_document("d1") == 2
        assert await vector_store.delete_document("d1") == 0
        assert len(vector_store) == 1


class TestInMemoryGraphStore:
    """Test graph writes and traversal."""

    @pytest.mark.asyncio
    async def test_related_context_distances(self, populated_graph):
        store = await populated_graph()

        related = await store.related_context(["OpenAI"], max_depth=2)
        by_name = {r.entity_name: r for r in related}

        assert "OpenAI" not in by_name
        assert by_name["GPT-4"].distance == 1
        assert by_name["GPT-4"].path_names == ["OpenAI", "GPT-4"]
        assert by_name["Microsoft"].distance == 2
        assert by_name["Microsoft"].path_names == ["OpenAI", "a.txt", "Microsoft"]
        assert "Python" not in by_name

    @pytest.mark.asyncio
    async def test_related_context_sorted_and_bounded(self, populated_graph):
        store = await populated_graph()

        related = await store.related_context(["openai"], max_depth=1)

        assert [r.entity_name for r in related] == ["GPT-4"]
        assert await store.related_context(["OpenAI"], max_depth=0) == []
        assert await store.related_context(["Unknown"], max_depth=2) == []

    @pytest.mark.asyncio
    async def test_seed_by_id(self, populated_graph):
        store = await populated_graph()

        related = await store.related_context(["doc-a_entity_gpt_4"], max_depth=1)

        assert [r.entity_name for r in related] == ["OpenAI"]

    @pytest.mark.asyncio
    async def test_distance_counts_hops_not_edge_weights(self, populated_graph):
        store = await populated_graph()
        await store.upsert_relationships([
            Relationship(
                "doc-a_entity_openai",
                "doc-a_entity_microsoft",
                RelationshipType.PART_OF,
                properties={"weight": 10.0},
            ),
        ])

        related = await store.related_context(["OpenAI"], max_depth=2)
        by_name = {r.entity_name: r for r in related}

        assert by_name["Microsoft"].distance == 1
        assert by_name["Microsoft"].path_names == ["OpenAI", "Microsoft"]

    @pytest.mark.asyncio
    async def test_related_documents(self, populated_graph):
        store = await populated_graph()

        assert await store.related_documents(["OpenAI", "Python"]) == ["doc-a", "doc-b"]
        assert await store.related_documents(["nobody"]) == []

    @pytest.mark.asyncio
    async def test_upserts_are_idempotent(self, populated_graph):
        store = await populated_graph()
        before = await store.stats()

        await store.upsert_relationships([
            Relationship("doc-a_entity_openai", "doc-a_entity_gpt_4", RelationshipType.RELATES_TO),
        ])
        await store.link_document_to_entities("doc-a", ["doc-a_entity_openai"])

        assert await store.stats() == before

    @pytest.mark.asyncio
    async def test_relationship_with_unknown_endpoint_skipped(self, graph_store):
        await graph_store.upsert_entities([Entity("e1", "A")])
        await graph_store.upsert_relationships([Relationship("e1", "missing")])

        assert graph_store.graph.number_of_edges() == 0
        assert "missing" not in graph_store.graph

    @pytest.mark.asyncio
    async def test_delete_document_detaches(self, populated_graph):
        store = await populated_graph()

        await store.delete_document("doc-a")

        assert await store.related_documents(["OpenAI"]) == []
        assert "doc-a" not in store.graph
