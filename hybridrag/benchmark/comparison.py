"""
Search Comparison
=================

Runs one query through the vector-only and hybrid presets side by side.

Usage:
    >>> comparison = SearchComparison(retriever)
    >>> report = await comparison.compare("OpenAI GPT-4", limit=5)
    >>> report.hybrid.context_enriched
    5

Read-only: performs no writes to either store.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from hybridrag.storage.retriever.hybrid import HybridRetriever
from hybridrag.storage.retriever.models import HybridResult, Provenance, SearchStrategy

log = structlog.get_logger()

VECTOR_ONLY = SearchStrategy.vector_only()
HYBRID = SearchStrategy.hybrid()

PREVIEW_COUNT = 3
PREVIEW_CHARS = 200


def truncate(text: str, max_chars: int) -> str:
    """Cut ``text`` to ``max_chars`` characters, marking the cut with '...'."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


@dataclass
class StrategyStats:
    """
    Statistics for one side of a comparison.

    Attributes:
        strategy: Preset used
        count: Results returned
        avg_similarity: Mean raw similarity
        avg_score: Mean combined score
        context_enriched: Results carrying graph context
        hybrid_count: Results with provenance "hybrid"
        top_results: Preview of the top three results
        duration_ms: Search latency
    """
    strategy: SearchStrategy
    count: int
    avg_similarity: float
    avg_score: float
    context_enriched: int
    hybrid_count: int
    top_results: List[Dict[str, Any]] = field(default_factory=list)
    duration_ms: float = 0.0

    @classmethod
    def from_results(
        cls,
        strategy: SearchStrategy,
        results: List[HybridResult],
        duration_ms: float = 0.0,
    ) -> "StrategyStats":
        count = len(results)
        return cls(
            strategy=strategy,
            count=count,
            avg_similarity=sum(r.similarity for r in results) / count if count else 0.0,
            avg_score=sum(r.score for r in results) / count if count else 0.0,
            context_enriched=sum(1 for r in results if r.graph_context is not None),
            hybrid_count=sum(1 for r in results if r.provenance == Provenance.HYBRID),
            top_results=[
                {
                    "document_id": r.document_id,
                    "filename": r.filename,
                    "chunk_index": r.chunk_index,
                    "content": truncate(r.content, PREVIEW_CHARS),
                    "similarity": round(r.similarity, 4),
                    "score": round(r.score, 4),
                    "provenance": r.provenance.value,
                }
                for r in results[:PREVIEW_COUNT]
            ],
            duration_ms=duration_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.to_dict(),
            "count": self.count,
            "avg_similarity": round(self.avg_similarity, 4),
            "avg_score": round(self.avg_score, 4),
            "context_enriched": self.context_enriched,
            "hybrid_count": self.hybrid_count,
            "top_results": self.top_results,
            "duration_ms": round(self.duration_ms, 2),
        }


@dataclass
class ComparisonReport:
    """Side-by-side statistics for one query."""
    query: str
    limit: int
    vector_only: StrategyStats
    hybrid: StrategyStats

    @property
    def score_gain(self) -> float:
        return self.hybrid.avg_score - self.vector_only.avg_score

    def insights(self) -> List[str]:
        """Short human-readable observations."""
        notes = []
        if self.hybrid.hybrid_count:
            notes.append(
                f"{self.hybrid.hybrid_count} of {self.hybrid.count} hybrid results "
                f"come from documents mentioning query entities"
            )
        else:
            notes.append("No query entity matched the knowledge graph; hybrid ranking equals vector ranking")
        if self.hybrid.context_enriched:
            notes.append(f"{self.hybrid.context_enriched} results carry graph context")
        notes.append(f"Average score change with graph signal: {self.score_gain:+.4f}")
        return notes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "limit": self.limit,
            "vector_only": self.vector_only.to_dict(),
            "hybrid": self.hybrid.to_dict(),
            "insights": self.insights(),
        }


class SearchComparison:
    """Contrasts vector-only and hybrid ranking for the same query."""

    def __init__(
        self,
        retriever: HybridRetriever,
        vector_strategy: Optional[SearchStrategy] = None,
        hybrid_strategy: Optional[SearchStrategy] = None,
    ):
        self.retriever = retriever
        self.vector_strategy = vector_strategy or VECTOR_ONLY
        self.hybrid_strategy = hybrid_strategy or HYBRID

    async def _timed(self, query: str, limit: int, strategy: SearchStrategy) -> StrategyStats:
        start = time.time()
        results = await self.retriever.search(query, limit=limit, strategy=strategy)
        return StrategyStats.from_results(strategy, results, (time.time() - start) * 1000)

    async def compare(self, query: str, limit: int = 5) -> ComparisonReport:
        """Run both presets concurrently and report their statistics."""
        vector_stats, hybrid_stats = await asyncio.gather(
            self._timed(query, limit, self.vector_strategy),
            self._timed(query, limit, self.hybrid_strategy),
        )
        report = ComparisonReport(
            query=query,
            limit=limit,
            vector_only=vector_stats,
            hybrid=hybrid_stats,
        )
        log.info(
            f"compare() - vector avg={vector_stats.avg_score:.3f}, "
            f"hybrid avg={hybrid_stats.avg_score:.3f}, enriched={hybrid_stats.context_enriched}"
        )
        return report
