"""
Ingestion Pipeline
==================

Turns one source document into searchable chunks and graph entities.

Flow:
    text ─► clean/cap ─► Document
                            │
                            ▼
                  recursive split (1000/200)
                            │
              ┌─────────────┴─────────────┐
              ▼                           ▼
    embeddings (batches of 5,     entity extraction per chunk
    1s pause between batches)     (bounded concurrency)
              │                           │
              ▼                           ▼
         VectorStore                 GraphStore
    (chunks + embeddings)   (Document, Entities, MENTIONS, relationships)

The two writes are independent: a graph failure after the vector write
leaves the document vector-searchable and is reported as a warning.
"""

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from hybridrag.config.settings import IngestionConfig
from hybridrag.exceptions import EmbeddingServiceError, EmptyContentError, GraphUnavailableError
from hybridrag.pipeline.chunking import TextChunker
from hybridrag.pipeline.extraction import EntityExtractor, merge_extractions
from hybridrag.pipeline.models import Chunk, Document, ExtractionResult
from hybridrag.pipeline.pdf import extract_pdf_text
from hybridrag.pipeline.text import prepare_text
from hybridrag.storage.base import GraphStore, VectorStore

log = structlog.get_logger()


@dataclass
class IngestionResult:
    """
    Outcome of ingesting one document.

    Attributes:
        document_id: Id shared by both stores
        filename: Source file name
        chunk_count: Chunks written to the vector store
        entity_count: Entities written (or attempted) to the graph
        relationship_count: Relationships written (or attempted)
        graph_written: False when the graph write failed
        warnings: Partial-success messages
        duration_ms: Wall time
    """
    document_id: str
    filename: str
    chunk_count: int = 0
    entity_count: int = 0
    relationship_count: int = 0
    graph_written: bool = True
    warnings: List[str] = field(default_factory=list)
    duration_ms: float = 0.0

    def summary(self) -> Dict[str, Any]:
        """Return summary for logging."""
        return {
            "document_id": self.document_id,
            "chunks": self.chunk_count,
            "entities": self.entity_count,
            "relationships": self.relationship_count,
            "graph": self.graph_written,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "filename": self.filename,
            "chunk_count": self.chunk_count,
            "entity_count": self.entity_count,
            "relationship_count": self.relationship_count,
            "graph_written": self.graph_written,
            "warnings": self.warnings,
            "duration_ms": round(self.duration_ms, 2),
        }


class IngestionPipeline:
    """
    Dual-write ingestion into a VectorStore and a GraphStore.

    Collaborators are injected so the same pipeline runs against Qdrant +
    FalkorDB in production and in-memory stores in tests.

    Example:
        >>> pipeline = IngestionPipeline(embedder, extractor, vector_store, graph_store)
        >>> result = await pipeline.ingest(text, "report.pdf")
        >>> print(result.document_id, result.chunk_count)
    """

    def __init__(
        self,
        embedder: Any,
        extractor: EntityExtractor,
        vector_store: VectorStore,
        graph_store: GraphStore,
        config: Optional[IngestionConfig] = None,
    ):
        self.embedder = embedder
        self.extractor = extractor
        self.vector_store = vector_store
        self.graph_store = graph_store
        self.config = config or IngestionConfig()
        self.chunker = TextChunker(
            chunk_size=self.config.chunk_size,
            chunk_overlap=self.config.chunk_overlap,
        )

    @property
    def embedding_model(self) -> str:
        return getattr(self.embedder, "model_name", "") or ""

    async def ingest(self, text: str, filename: str) -> IngestionResult:
        """
        Ingest one document.

        Args:
            text: Raw document text
            filename: Source file name

        Returns:
            IngestionResult carrying the new document id

        Raises:
            EmptyContentError: no extractable text (nothing written)
            EmbeddingServiceError: embedding failed (nothing written)
            VectorStoreError: chunk write failed
        """
        start = time.time()

        cleaned = prepare_text(text, self.config.max_text_length)
        document = Document(filename=filename, text=cleaned)
        chunks = self.chunker.chunk(document, embedding_model=self.embedding_model)
        if not chunks:
            raise EmptyContentError("Document produced no chunks")

        log.info(
            f"Ingesting {filename}: {len(cleaned)} chars, {len(chunks)} chunks",
            document_id=document.document_id,
        )

        await self._embed_chunks(chunks)
        extraction = await self._extract(document, chunks)

        result = IngestionResult(
            document_id=document.document_id,
            filename=filename,
            chunk_count=len(chunks),
            entity_count=len(extraction.entities),
            relationship_count=len(extraction.relationships),
        )

        await self.vector_store.upsert_chunks(document.document_id, chunks)

        try:
            await self._write_graph(document, extraction)
        except GraphUnavailableError as e:
            log.warning(f"Graph write failed, document is vector-only: {e}")
            result.graph_written = False
            result.warnings.append(
                f"Knowledge graph not updated ({e.message}); document is searchable by vector only"
            )

        result.duration_ms = (time.time() - start) * 1000
        log.info("Ingestion complete", **result.summary())
        return result

    async def ingest_pdf(
        self,
        source: Union[str, Path, bytes],
        filename: Optional[str] = None,
    ) -> IngestionResult:
        """Extract text from a PDF (path or bytes) and ingest it."""
        if filename is None:
            filename = Path(source).name if not isinstance(source, (bytes, bytearray)) else "upload.pdf"

        loop = asyncio.get_event_loop()
        text = await loop.run_in_executor(None, extract_pdf_text, source)
        return await self.ingest(text, filename)

    async def _embed_chunks(self, chunks: List[Chunk]) -> None:
        """Embed in fixed-size batches, pausing between batches."""
        batch_size = self.config.embedding_batch_size
        total_batches = (len(chunks) + batch_size - 1) // batch_size

        for i in range(0, len(chunks), batch_size):
            batch = chunks[i:i + batch_size]
            batch_num = i // batch_size + 1

            try:
                vectors = await self.embedder.embed_batch([c.content for c in batch])
            except EmbeddingServiceError:
                raise
            except Exception as e:
                raise EmbeddingServiceError(f"Embedding batch {batch_num} failed: {e}", original_error=e)

            if len(vectors) != len(batch):
                raise EmbeddingServiceError(
                    f"Embedding batch {batch_num} returned {len(vectors)} vectors for {len(batch)} chunks"
                )
            for chunk, vector in zip(batch, vectors):
                chunk.embedding = list(vector)

            log.debug(f"Embedded batch {batch_num}/{total_batches}")
            if batch_num < total_batches and self.config.embedding_batch_delay > 0:
                await asyncio.sleep(self.config.embedding_batch_delay)

    async def _extract(self, document: Document, chunks: List[Chunk]) -> ExtractionResult:
        """Best-effort extraction; any failure yields an empty result."""
        try:
            results = await self.extractor.extract_many(
                [c.content for c in chunks],
                document.document_id,
                concurrency=self.config.extraction_concurrency,
            )
        except Exception as e:
            log.warning(f"Entity extraction failed for {document.filename}: {e}")
            return ExtractionResult()

        merged = merge_extractions(results)
        log.info(
            f"Extracted {len(merged.entities)} entities and "
            f"{len(merged.relationships)} relationships from {document.filename}"
        )
        return merged

    async def _write_graph(self, document: Document, extraction: ExtractionResult) -> None:
        try:
            await self.graph_store.upsert_document(document)
            await self.graph_store.upsert_entities(extraction.entities)
            await self.graph_store.link_document_to_entities(
                document.document_id,
                [e.entity_id for e in extraction.entities],
            )
            await self.graph_store.upsert_relationships(extraction.relationships)
        except GraphUnavailableError:
            raise
        except Exception as e:
            raise GraphUnavailableError(f"Graph write failed: {e}", original_error=e)
