"""
Hybrid Retrieval
================

HybridRetriever merges vector similarity with entity-graph expansion.
"""

from hybridrag.storage.retriever.hybrid import HybridRetriever
from hybridrag.storage.retriever.models import (
    GraphContext,
    HybridResult,
    Provenance,
    SearchStrategy,
)

__all__ = [
    "HybridRetriever",
    "GraphContext",
    "HybridResult",
    "Provenance",
    "SearchStrategy",
]
