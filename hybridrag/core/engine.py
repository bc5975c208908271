"""
HybridRAG Engine
================

Facade wiring configuration, collaborators, ingestion and retrieval.

The facade owns the process-wide lifecycle of its service handles:
construct once at startup, ``connect()``, share between requests, and
``close()`` at shutdown. Per-request state lives only inside the
pipeline and retriever calls.

Quick Start:
    engine = HybridRAG(HybridRAGConfig())
    await engine.connect()

    result = await engine.ingest(text, "notes.txt")
    results = await engine.search("OpenAI GPT-4", limit=5)
    report = await engine.compare("OpenAI GPT-4")

    await engine.close()
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from hybridrag.benchmark.comparison import ComparisonReport, SearchComparison
from hybridrag.config.environments import EnvironmentConfig, get_current_environment
from hybridrag.config.settings import EmbeddingConfig, IngestionConfig, LLMConfig
from hybridrag.exceptions import GraphUnavailableError
from hybridrag.llm.openrouter import OpenRouterService
from hybridrag.pipeline.extraction import EntityExtractor
from hybridrag.pipeline.ingestion import IngestionPipeline, IngestionResult
from hybridrag.pipeline.models import Chunk, DocumentSummary
from hybridrag.storage.base import GraphStore, VectorStore
from hybridrag.storage.graph import FalkorDBConfig, FalkorGraphStore, InMemoryGraphStore
from hybridrag.storage.retriever import HybridResult, HybridRetriever, SearchStrategy
from hybridrag.storage.vectors import (
    InMemoryVectorStore,
    QdrantConfig,
    QdrantVectorStore,
    create_embedding_client,
)

log = structlog.get_logger()

VECTOR_BACKENDS = ("qdrant", "memory")
GRAPH_BACKENDS = ("falkordb", "memory")


@dataclass
class HybridRAGConfig:
    """
    Configuration for HybridRAG.

    Backends and store names default to the active environment preset
    (HYBRIDRAG_ENV); VECTOR_BACKEND, GRAPH_BACKEND, QDRANT_COLLECTION_NAME
    and FALKORDB_GRAPH_NAME override the preset.
    """
    environment: EnvironmentConfig = field(default_factory=get_current_environment)
    vector_backend: Optional[str] = field(default_factory=lambda: os.environ.get("VECTOR_BACKEND"))
    graph_backend: Optional[str] = field(default_factory=lambda: os.environ.get("GRAPH_BACKEND"))
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    qdrant: Optional[QdrantConfig] = None
    falkordb: Optional[FalkorDBConfig] = None

    def __post_init__(self):
        self.vector_backend = (self.vector_backend or self.environment.vector_backend).lower()
        self.graph_backend = (self.graph_backend or self.environment.graph_backend).lower()

        if self.vector_backend not in VECTOR_BACKENDS:
            raise ValueError(f"vector_backend must be one of {VECTOR_BACKENDS}, got {self.vector_backend!r}")
        if self.graph_backend not in GRAPH_BACKENDS:
            raise ValueError(f"graph_backend must be one of {GRAPH_BACKENDS}, got {self.graph_backend!r}")

        if self.qdrant is None:
            self.qdrant = QdrantConfig()
            if "QDRANT_COLLECTION_NAME" not in os.environ:
                self.qdrant.collection_name = self.environment.qdrant_collection
        if self.falkordb is None:
            self.falkordb = FalkorDBConfig()
            if "FALKORDB_GRAPH_NAME" not in os.environ:
                self.falkordb.graph_name = self.environment.falkordb_graph


class HybridRAG:
    """
    Entry point for ingestion and hybrid search.

    Collaborators may be injected (tests pass fakes and in-memory stores);
    anything not injected is built from the configuration.
    """

    def __init__(
        self,
        config: Optional[HybridRAGConfig] = None,
        *,
        embedder: Any = None,
        llm: Optional[OpenRouterService] = None,
        extractor: Optional[EntityExtractor] = None,
        vector_store: Optional[VectorStore] = None,
        graph_store: Optional[GraphStore] = None,
    ):
        self.config = config or HybridRAGConfig()
        self.embedder = embedder or create_embedding_client(self.config.embedding)
        self.llm = llm or OpenRouterService(self.config.llm)
        self.extractor = extractor or EntityExtractor(self.llm)
        self.vector_store = vector_store or self._build_vector_store()
        self.graph_store = graph_store or self._build_graph_store()

        self.pipeline = IngestionPipeline(
            embedder=self.embedder,
            extractor=self.extractor,
            vector_store=self.vector_store,
            graph_store=self.graph_store,
            config=self.config.ingestion,
        )
        self.retriever = HybridRetriever(
            embedder=self.embedder,
            extractor=self.extractor,
            vector_store=self.vector_store,
            graph_store=self.graph_store,
        )
        self.comparison = SearchComparison(self.retriever)
        self._connected = False

        log.info(
            f"HybridRAG initialized - env={self.config.environment.name}, "
            f"vector={type(self.vector_store).__name__}, graph={type(self.graph_store).__name__}"
        )

    def _build_vector_store(self) -> VectorStore:
        if self.config.vector_backend == "memory":
            return InMemoryVectorStore()
        return QdrantVectorStore(self.config.qdrant)

    def _build_graph_store(self) -> GraphStore:
        if self.config.graph_backend == "memory":
            return InMemoryGraphStore()
        return FalkorGraphStore(self.config.falkordb)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Connect both stores.

        A vector store failure is fatal. An unreachable graph store is
        logged: search keeps working (degraded to vector-only) and uploads
        are refused until the graph answers again.
        """
        if self._connected:
            log.warning("Already connected")
            return

        await self.vector_store.connect()
        try:
            await self.graph_store.connect()
        except GraphUnavailableError as e:
            log.warning(f"Graph store unavailable at startup: {e}")

        self._connected = True
        log.info("HybridRAG connected")

    async def close(self) -> None:
        """Close all connections and HTTP sessions."""
        await self.vector_store.close()
        await self.graph_store.close()
        await self.llm.close()
        close_embedder = getattr(self.embedder, "close", None)
        if close_embedder is not None:
            await close_embedder()

        self._connected = False
        log.info("HybridRAG connections closed")

    @property
    def is_connected(self) -> bool:
        return self._connected

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def ingest(self, text: str, filename: str) -> IngestionResult:
        return await self.pipeline.ingest(text, filename)

    async def ingest_pdf(
        self,
        source: Union[str, Path, bytes],
        filename: Optional[str] = None,
    ) -> IngestionResult:
        return await self.pipeline.ingest_pdf(source, filename)

    async def search(
        self,
        query: str,
        limit: int = 5,
        strategy: Optional[SearchStrategy] = None,
    ) -> List[HybridResult]:
        return await self.retriever.search(query, limit=limit, strategy=strategy)

    async def compare(self, query: str, limit: int = 5) -> ComparisonReport:
        return await self.comparison.compare(query, limit=limit)

    async def graph_available(self) -> bool:
        return await self.graph_store.ping()

    async def list_documents(self) -> List[DocumentSummary]:
        return await self.vector_store.list_documents()

    async def chunks_of(self, document_id: str) -> List[Chunk]:
        return await self.vector_store.chunks_of(document_id)

    async def delete_document(self, document_id: str) -> int:
        """
        Delete a document from both stores.

        Returns:
            Number of chunks removed (0 when the document is unknown)
        """
        removed = await self.vector_store.delete_document(document_id)
        try:
            await self.graph_store.delete_document(document_id)
        except Exception as e:
            log.warning(f"Graph delete failed for {document_id}: {e}")
        return removed

    async def status(self) -> Dict[str, Any]:
        """Capability probe for every collaborator."""
        vector_ok = await self.vector_store.ping()
        graph_ok = await self.graph_store.ping()
        extraction_ok = self.llm.is_configured

        recommendations = []
        if not graph_ok:
            recommendations.append(
                "Start FalkorDB (docker run -p 6380:6379 falkordb/falkordb) to enable graph expansion"
            )
        if not extraction_ok:
            recommendations.append("Set OPENROUTER_API_KEY to enable entity extraction")
        if not vector_ok:
            recommendations.append("Vector store unreachable: check QDRANT_HOST/QDRANT_PORT")
        if vector_ok and graph_ok and extraction_ok:
            recommendations.append("All systems operational - hybrid search fully enabled")

        return {
            "status": "operational" if vector_ok else "degraded",
            "capabilities": {
                "vectorSearch": vector_ok,
                "graphDatabase": graph_ok,
                "entityExtraction": extraction_ok,
                "hybridRAG": vector_ok and graph_ok and extraction_ok,
            },
            "graph": await self.graph_store.stats() if graph_ok else {},
            "recommendations": recommendations,
        }
