"""
In-Memory Vector Store
======================

Brute-force cosine scan over numpy arrays, for tests and local
development without a Qdrant server.
"""

from collections import OrderedDict
from typing import Dict, List, Sequence

import numpy as np
import structlog

from hybridrag.pipeline.models import Chunk, DocumentSummary
from hybridrag.storage.base import VectorHit, VectorStore

log = structlog.get_logger()


class InMemoryVectorStore(VectorStore):
    """
    Vector store kept in process memory.

    Chunks are held in insertion order; the stable sort in
    ``nearest_chunks`` therefore breaks score ties by insertion order.
    """

    def __init__(self):
        self._chunks: "OrderedDict[str, Chunk]" = OrderedDict()

    async def upsert_chunks(self, document_id: str, chunks: Sequence[Chunk]) -> None:
        for chunk in chunks:
            if chunk.document_id != document_id:
                raise ValueError(
                    f"Chunk {chunk.chunk_id} belongs to {chunk.document_id}, not {document_id}"
                )
            if not chunk.embedding:
                raise ValueError(f"Chunk {chunk.chunk_id} has no embedding")
            self._chunks[chunk.chunk_id] = chunk

        log.debug("Upserted chunks", document_id=document_id, count=len(chunks))

    async def nearest_chunks(self, query_embedding: Sequence[float], limit: int) -> List[VectorHit]:
        if limit <= 0 or not self._chunks:
            return []

        chunks = list(self._chunks.values())
        matrix = np.asarray([c.embedding for c in chunks], dtype=float)
        query = np.asarray(query_embedding, dtype=float)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        with np.errstate(divide="ignore", invalid="ignore"):
            similarities = np.where(norms > 0, matrix @ query / norms, 0.0)

        order = np.argsort(-similarities, kind="stable")[:limit]
        return [
            VectorHit(
                document_id=chunks[i].document_id,
                filename=chunks[i].filename,
                chunk_content=chunks[i].content,
                chunk_index=chunks[i].chunk_index,
                similarity=float(similarities[i]),
                chunk_id=chunks[i].chunk_id,
            )
            for i in order
        ]

    async def chunks_of(self, document_id: str) -> List[Chunk]:
        chunks = [c for c in self._chunks.values() if c.document_id == document_id]
        return sorted(chunks, key=lambda c: c.chunk_index)

    async def delete_document(self, document_id: str) -> int:
        doomed = [cid for cid, c in self._chunks.items() if c.document_id == document_id]
        for cid in doomed:
            del self._chunks[cid]
        return len(doomed)

    async def list_documents(self) -> List[DocumentSummary]:
        summaries: Dict[str, DocumentSummary] = {}
        for chunk in self._chunks.values():
            summary = summaries.get(chunk.document_id)
            if summary is None:
                summaries[chunk.document_id] = DocumentSummary(
                    document_id=chunk.document_id,
                    filename=chunk.filename,
                    chunk_count=1,
                    created_at=chunk.created_at.isoformat(),
                )
            else:
                summary.chunk_count += 1
        return list(summaries.values())

    async def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._chunks)
