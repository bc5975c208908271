"""
Hybrid RAG
==========

Hybrid retrieval over document chunks and an entity knowledge graph.

Quick Start:
    from hybridrag import HybridRAG, HybridRAGConfig, SearchStrategy

    engine = HybridRAG(HybridRAGConfig())
    await engine.connect()

    result = await engine.ingest(text, "report.txt")
    results = await engine.search("OpenAI GPT-4", strategy=SearchStrategy.hybrid())

Components:
- core: HybridRAG, HybridRAGConfig
- pipeline: IngestionPipeline, EntityExtractor, TextChunker
- storage: Qdrant / FalkorDB / in-memory stores, HybridRetriever
- benchmark: SearchComparison
- api: FastAPI application (hybridrag.api.main:app)
"""

__version__ = "0.1.0"

from hybridrag.core import HybridRAG, HybridRAGConfig
from hybridrag.exceptions import (
    EmbeddingServiceError,
    EmptyContentError,
    GraphUnavailableError,
    HybridRAGError,
    SearchDegradedError,
    VectorStoreError,
)
from hybridrag.storage.retriever import HybridResult, Provenance, SearchStrategy

__all__ = [
    "HybridRAG",
    "HybridRAGConfig",
    "SearchStrategy",
    "HybridResult",
    "Provenance",
    "HybridRAGError",
    "EmptyContentError",
    "EmbeddingServiceError",
    "GraphUnavailableError",
    "VectorStoreError",
    "SearchDegradedError",
]
