"""
Storage Layer
=============

Dual-index storage behind the hybrid engine.

    Query -> embedding ----------> [VectorStore]  chunks, cosine similarity
          -> query entities -----> [GraphStore]   entities, MENTIONS, relationships
                                         |
                    HybridRetriever merges both signals

Components:
- base: VectorStore / GraphStore contracts
- vectors/: Qdrant and in-memory chunk stores, embedding clients
- graph/: FalkorDB and in-memory graph stores
- retriever/: HybridRetriever (merge and rank)
"""

from hybridrag.storage.base import GraphStore, RelatedEntity, VectorHit, VectorStore
from hybridrag.storage.graph import FalkorDBConfig, FalkorGraphStore, InMemoryGraphStore
from hybridrag.storage.vectors import InMemoryVectorStore, QdrantConfig, QdrantVectorStore

__all__ = [
    "GraphStore",
    "VectorStore",
    "VectorHit",
    "RelatedEntity",
    "FalkorDBConfig",
    "FalkorGraphStore",
    "InMemoryGraphStore",
    "QdrantConfig",
    "QdrantVectorStore",
    "InMemoryVectorStore",
]
