"""
Qdrant Vector Store
===================

Chunk storage and cosine nearest-neighbour search on Qdrant.

Each chunk is one point (id = chunk_id) with payload:
    document_id, filename, chunk_index, content, metadata, created_at, seq

``seq`` is a monotonically increasing insertion number used to break
score ties in insertion order. Searches over-request by TIE_MARGIN rows so
ties at the cutoff are resolved too; a tie group wider than the margin is
still cut in Qdrant's own order. The collection is created on the first
upsert, sized from the first embedding, with a keyword index on
``document_id``.

qdrant-client is synchronous here; calls run in the default executor.
"""

import asyncio
import time
from datetime import datetime
from functools import partial
from typing import Any, Dict, List, Optional, Sequence

import structlog
from qdrant_client import QdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from hybridrag.exceptions import VectorStoreError
from hybridrag.pipeline.models import Chunk, DocumentSummary
from hybridrag.storage.base import VectorHit, VectorStore
from hybridrag.storage.vectors.config import QdrantConfig

log = structlog.get_logger()

SCROLL_PAGE_SIZE = 256
# Extra rows requested so equal scores at the cutoff can be ordered by seq
TIE_MARGIN = 16


def _document_filter(document_id: str) -> Filter:
    return Filter(must=[FieldCondition(key="document_id", match=MatchValue(value=document_id))])


class QdrantVectorStore(VectorStore):
    """
    VectorStore backed by a single Qdrant collection.

    Example:
        store = QdrantVectorStore(QdrantConfig(collection_name="docs"))
        await store.connect()
        hits = await store.nearest_chunks(query_vector, limit=8)
        await store.close()
    """

    def __init__(self, config: Optional[QdrantConfig] = None, client: Optional[QdrantClient] = None):
        self.config = config or QdrantConfig()
        self._client = client
        self._collection_ready = False

        log.info(
            f"QdrantVectorStore initialized - "
            f"host={self.config.host}:{self.config.port}, "
            f"collection={self.config.collection_name}"
        )

    @property
    def collection_name(self) -> str:
        return self.config.collection_name

    async def _run(self, func, *args, **kwargs):
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def connect(self) -> None:
        if self._client is None:
            self._client = QdrantClient(
                host=self.config.host,
                port=self.config.port,
                api_key=self.config.api_key,
                timeout=self.config.timeout,
            )
        self._collection_ready = await self._run(self._collection_exists)
        log.info(
            f"Connected to Qdrant at {self.config.host}:{self.config.port} "
            f"(collection exists: {self._collection_ready})"
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._run(self._client.close)
            self._client = None
            log.info("Disconnected from Qdrant")

    @property
    def client(self) -> QdrantClient:
        if self._client is None:
            raise RuntimeError("Not connected to Qdrant. Call connect() first.")
        return self._client

    def _collection_exists(self) -> bool:
        collections = self.client.get_collections().collections
        return any(c.name == self.collection_name for c in collections)

    async def _has_collection(self) -> bool:
        """Cached flag, re-checked while False: the collection can appear after connect()."""
        if not self._collection_ready:
            try:
                self._collection_ready = await self._run(self._collection_exists)
            except Exception as e:
                raise VectorStoreError(f"Qdrant collection check failed: {e}", original_error=e)
        return self._collection_ready

    def _ensure_collection_sync(self, vector_size: int) -> None:
        if self._collection_ready or self._collection_exists():
            self._collection_ready = True
            return

        self.client.create_collection(
            collection_name=self.collection_name,
            vectors_config=VectorParams(size=vector_size, distance=Distance.COSINE),
        )
        self.client.create_payload_index(
            collection_name=self.collection_name,
            field_name="document_id",
            field_schema=PayloadSchemaType.KEYWORD,
        )
        self._collection_ready = True
        log.info(f"Created Qdrant collection {self.collection_name} (size={vector_size})")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_chunks(self, document_id: str, chunks: Sequence[Chunk]) -> None:
        if not chunks:
            return

        base_seq = time.time_ns()
        points = []
        for offset, chunk in enumerate(chunks):
            if chunk.document_id != document_id:
                raise ValueError(
                    f"Chunk {chunk.chunk_id} belongs to {chunk.document_id}, not {document_id}"
                )
            if not chunk.embedding:
                raise ValueError(f"Chunk {chunk.chunk_id} has no embedding")
            points.append(PointStruct(
                id=chunk.chunk_id,
                vector=list(chunk.embedding),
                payload={
                    "document_id": document_id,
                    "filename": chunk.filename,
                    "chunk_index": chunk.chunk_index,
                    "content": chunk.content,
                    "metadata": chunk.metadata,
                    "created_at": chunk.created_at.isoformat(),
                    "seq": base_seq + offset,
                },
            ))

        try:
            await self._run(self._ensure_collection_sync, len(points[0].vector))
            await self._run(
                self.client.upsert,
                collection_name=self.collection_name,
                points=points,
                wait=True,
            )
        except Exception as e:
            log.error(f"Qdrant upsert failed for document {document_id}: {e}")
            raise VectorStoreError(f"Failed to store chunks: {e}", original_error=e)

        log.info(f"Upserted {len(points)} chunks for document {document_id}")

    async def delete_document(self, document_id: str) -> int:
        try:
            if not await self._has_collection():
                return 0
            count = await self._run(
                self.client.count,
                collection_name=self.collection_name,
                count_filter=_document_filter(document_id),
                exact=True,
            )
            await self._run(
                self.client.delete,
                collection_name=self.collection_name,
                points_selector=FilterSelector(filter=_document_filter(document_id)),
                wait=True,
            )
        except Exception as e:
            raise VectorStoreError(f"Failed to delete document {document_id}: {e}", original_error=e)

        log.info(f"Deleted {count.count} chunks of document {document_id}")
        return count.count

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def nearest_chunks(self, query_embedding: Sequence[float], limit: int) -> List[VectorHit]:
        if limit <= 0:
            return []

        try:
            if not await self._has_collection():
                return []
            response = await self._run(
                self.client.query_points,
                collection_name=self.collection_name,
                query=list(query_embedding),
                limit=limit + TIE_MARGIN,
                with_payload=True,
            )
        except Exception as e:
            log.error(f"Vector search failed: {e}")
            raise VectorStoreError(f"Vector search failed: {e}", original_error=e)

        points = sorted(
            response.points,
            key=lambda p: (-p.score, (p.payload or {}).get("seq", 0)),
        )
        return [self._to_hit(p) for p in points[:limit]]

    async def chunks_of(self, document_id: str) -> List[Chunk]:
        if not await self._has_collection():
            return []

        records = await self._scroll(_document_filter(document_id))
        chunks = [self._to_chunk(str(r.id), r.payload or {}) for r in records]
        return sorted(chunks, key=lambda c: c.chunk_index)

    async def list_documents(self) -> List[DocumentSummary]:
        if not await self._has_collection():
            return []

        records = await self._scroll(None, payload=["document_id", "filename", "created_at"])
        summaries: Dict[str, DocumentSummary] = {}
        for record in records:
            payload = record.payload or {}
            document_id = payload.get("document_id", "")
            summary = summaries.get(document_id)
            if summary is None:
                summaries[document_id] = DocumentSummary(
                    document_id=document_id,
                    filename=payload.get("filename", ""),
                    chunk_count=1,
                    created_at=payload.get("created_at"),
                )
            else:
                summary.chunk_count += 1
        return sorted(summaries.values(), key=lambda s: s.created_at or "")

    async def ping(self) -> bool:
        try:
            await self._run(self.client.get_collections)
            return True
        except Exception as e:
            log.warning(f"Qdrant health check failed: {e}")
            return False

    async def _scroll(self, scroll_filter: Optional[Filter], payload: Any = True) -> List[Any]:
        records: List[Any] = []
        offset = None
        try:
            while True:
                page, offset = await self._run(
                    self.client.scroll,
                    collection_name=self.collection_name,
                    scroll_filter=scroll_filter,
                    limit=SCROLL_PAGE_SIZE,
                    offset=offset,
                    with_payload=payload,
                    with_vectors=False,
                )
                records.extend(page)
                if offset is None:
                    break
        except Exception as e:
            raise VectorStoreError(f"Qdrant scroll failed: {e}", original_error=e)
        return records

    @staticmethod
    def _to_hit(point: Any) -> VectorHit:
        payload = point.payload or {}
        return VectorHit(
            document_id=payload.get("document_id", ""),
            filename=payload.get("filename", ""),
            chunk_content=payload.get("content", ""),
            chunk_index=int(payload.get("chunk_index", 0)),
            similarity=float(point.score),
            chunk_id=str(point.id),
        )

    @staticmethod
    def _to_chunk(chunk_id: str, payload: Dict[str, Any]) -> Chunk:
        chunk = Chunk(
            document_id=payload.get("document_id", ""),
            chunk_index=int(payload.get("chunk_index", 0)),
            content=payload.get("content", ""),
            metadata=payload.get("metadata") or {},
            filename=payload.get("filename", ""),
            chunk_id=chunk_id,
        )
        if payload.get("created_at"):
            chunk.created_at = datetime.fromisoformat(payload["created_at"])
        return chunk
