"""
HybridRetriever
===============

Vector similarity search enriched by entity-graph expansion.

Core algorithm:
1. Over-fetch ceil(limit * 1.5) nearest chunks
2. In parallel, extract entity names from the query
3. Seed the graph with those names: related entities (distance <= depth)
   and documents mentioning the seeds
4. Score: sim * vector_weight
          + graph_weight           if the chunk's document mentions a query entity
          + 0.1 * min(n, 5)        if n related entities were found (n > 0)
5. Stable sort by score, truncate to limit

Any failure after the vector fetch degrades the call to plain vector
search; only a failing vector store reaches the caller.
"""

import asyncio
import math
from typing import Any, List, Optional, Sequence, Set

import structlog

from hybridrag.exceptions import SearchDegradedError
from hybridrag.pipeline.extraction import EntityExtractor
from hybridrag.storage.base import GraphStore, RelatedEntity, VectorHit, VectorStore
from hybridrag.storage.retriever.models import (
    GraphContext,
    HybridResult,
    Provenance,
    SearchStrategy,
)

log = structlog.get_logger()

OVER_FETCH_FACTOR = 1.5
CONTEXT_MAX_DISTANCE = 2
ENTITY_BONUS = 0.1
ENTITY_BONUS_CAP = 5


class HybridRetriever:
    """
    Hybrid retriever combining vector similarity and graph relationships.

    Flow:
        Query ─┬─► embed ─► VectorStore.nearest_chunks (over-fetch)
               │
               └─► extract query entities
                         │
                         ▼
              GraphStore.related_context + related_documents
                         │
                         ▼
        score = sim·w_v + w_g·[doc mentions query entity] + 0.1·min(|related|, 5)
                         │
                         ▼
                  re-ranked top `limit`

    Example:
        >>> retriever = HybridRetriever(embedder, extractor, vector_store, graph_store)
        >>> results = await retriever.search("OpenAI GPT-4", limit=5)
        >>> results[0].provenance
        <Provenance.HYBRID: 'hybrid'>
    """

    def __init__(
        self,
        embedder: Any,
        extractor: EntityExtractor,
        vector_store: VectorStore,
        graph_store: GraphStore,
    ):
        self.embedder = embedder
        self.extractor = extractor
        self.vector_store = vector_store
        self.graph_store = graph_store

    async def search(
        self,
        query: str,
        limit: int = 5,
        strategy: Optional[SearchStrategy] = None,
    ) -> List[HybridResult]:
        """
        Ranked hybrid search.

        Args:
            query: Free-text query
            limit: Maximum number of results
            strategy: Weighting (default 0.7 / 0.3, expansion on, depth 2)

        Returns:
            At most ``limit`` HybridResult sorted by score (descending)

        Raises:
            ValueError: blank query
            EmbeddingServiceError / VectorStoreError: the vector side itself failed
        """
        if not query or not query.strip():
            raise ValueError("query must not be empty")
        strategy = strategy or SearchStrategy()
        if limit <= 0:
            return []

        log.debug(f"search() - limit={limit}, strategy={strategy.to_dict()}")

        query_embedding = await self.embedder.embed(query)
        fetch_limit = math.ceil(limit * OVER_FETCH_FACTOR)

        if strategy.enable_graph_expansion:
            hits, query_entities = await asyncio.gather(
                self.vector_store.nearest_chunks(query_embedding, fetch_limit),
                self.extractor.extract_query_entities(query),
                return_exceptions=True,
            )
            if isinstance(hits, BaseException):
                raise hits
        else:
            hits = await self.vector_store.nearest_chunks(query_embedding, fetch_limit)
            query_entities = []

        try:
            if isinstance(query_entities, BaseException):
                raise SearchDegradedError(
                    f"Query entity extraction failed: {query_entities}",
                    original_error=query_entities,
                )
            results = await self._rank(hits, query_entities, strategy)
        except Exception as e:
            log.warning(f"Hybrid search degraded to vector-only: {e}", exc_info=True)
            return await self.vector_search(query_embedding, limit)

        top_results = results[:limit]
        if top_results:
            avg_score = sum(r.score for r in top_results) / len(top_results)
            log.info(
                f"search() - returned {len(top_results)} results "
                f"(avg score={avg_score:.3f}, query_entities={len(query_entities)})"
            )
        else:
            log.info("search() - returned 0 results")

        return top_results

    async def vector_search(self, query_embedding: Sequence[float], limit: int) -> List[HybridResult]:
        """Plain vector ranking: score equals similarity, provenance vector."""
        hits = await self.vector_store.nearest_chunks(query_embedding, limit)
        return [self._to_result(hit, hit.similarity, Provenance.VECTOR, None) for hit in hits[:limit]]

    async def _rank(
        self,
        hits: List[VectorHit],
        query_entities: List[str],
        strategy: SearchStrategy,
    ) -> List[HybridResult]:
        related: List[RelatedEntity] = []
        related_docs: Set[str] = set()
        expanded = strategy.enable_graph_expansion and bool(query_entities)

        if expanded:
            try:
                related, documents = await asyncio.gather(
                    self.graph_store.related_context(query_entities, strategy.max_graph_depth),
                    self.graph_store.related_documents(query_entities),
                )
            except Exception as e:
                raise SearchDegradedError(f"Graph expansion failed: {e}", original_error=e)
            related_docs = set(documents)
            log.debug(
                f"Graph expansion - seeds={query_entities}, related={len(related)}, "
                f"documents={len(related_docs)}"
            )

        context = self._build_context(related) if expanded else None

        results = []
        for hit in hits:
            provenance = (
                Provenance.HYBRID if expanded and hit.document_id in related_docs
                else Provenance.VECTOR
            )
            score = self._score(hit.similarity, provenance, context, strategy)
            results.append(self._to_result(hit, score, provenance, context))

        # list.sort is stable, so exact ties keep vector-store order
        results.sort(key=lambda r: r.score, reverse=True)
        return results

    @staticmethod
    def _build_context(related: List[RelatedEntity]) -> Optional[GraphContext]:
        """Context from rows within two hops; None when there are none."""
        close = [r for r in related if r.distance <= CONTEXT_MAX_DISTANCE]
        if not close:
            return None
        return GraphContext(
            related_entities=[r.entity_name for r in close],
            relationship_paths=[list(r.path_names) for r in close if r.path_names],
        )

    @staticmethod
    def _score(
        similarity: float,
        provenance: Provenance,
        context: Optional[GraphContext],
        strategy: SearchStrategy,
    ) -> float:
        score = similarity * strategy.vector_weight
        if provenance in (Provenance.HYBRID, Provenance.GRAPH):
            score += strategy.graph_weight
        if context is not None and context.related_entities:
            score += ENTITY_BONUS * min(len(context.related_entities), ENTITY_BONUS_CAP)
        return score

    @staticmethod
    def _to_result(
        hit: VectorHit,
        score: float,
        provenance: Provenance,
        context: Optional[GraphContext],
    ) -> HybridResult:
        return HybridResult(
            document_id=hit.document_id,
            filename=hit.filename,
            chunk_index=hit.chunk_index,
            content=hit.chunk_content,
            similarity=hit.similarity,
            score=score,
            provenance=provenance,
            graph_context=context,
            chunk_id=hit.chunk_id,
        )
