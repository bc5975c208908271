"""
Storage Interfaces
==================

Abstract contracts for the two stores behind the hybrid engine.

Both stores are keyed by the same client-generated document id and every
write is an idempotent upsert, so a retry after a partial failure is safe.
There is no transaction spanning the two stores.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from hybridrag.pipeline.models import (
    Chunk,
    Document,
    DocumentSummary,
    Entity,
    Relationship,
)

# Safety cap on related-context rows, independent of the caller's limit
RELATED_CONTEXT_LIMIT = 50


@dataclass
class VectorHit:
    """Raw nearest-neighbour row from the vector store."""
    document_id: str
    filename: str
    chunk_content: str
    chunk_index: int
    similarity: float
    chunk_id: str = ""

    def __repr__(self) -> str:
        return (
            f"<VectorHit(document={self.document_id[:8]}..., "
            f"index={self.chunk_index}, sim={self.similarity:.3f})>"
        )


@dataclass
class RelatedEntity:
    """Entity reached from a seed by graph traversal."""
    entity_id: str
    entity_name: str
    entity_type: str
    distance: int
    path_names: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "entity_type": self.entity_type,
            "distance": self.distance,
            "path_names": self.path_names,
        }


class VectorStore(ABC):
    """
    Chunk store ranked by cosine similarity.

    Similarity is ``1 - cosine_distance``. Results are ordered by
    descending similarity, ties by insertion order, and never exceed
    ``limit`` rows.
    """

    async def connect(self) -> None:
        """Open connections and create collections if needed."""

    async def close(self) -> None:
        """Release connections."""

    @abstractmethod
    async def upsert_chunks(self, document_id: str, chunks: Sequence[Chunk]) -> None:
        """Store embedded chunks of a document."""

    @abstractmethod
    async def nearest_chunks(self, query_embedding: Sequence[float], limit: int) -> List[VectorHit]:
        """Return up to ``limit`` chunks closest to the query embedding."""

    @abstractmethod
    async def chunks_of(self, document_id: str) -> List[Chunk]:
        """Return a document's chunks ordered by chunk index."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> int:
        """Delete every chunk of a document, returning how many were removed."""

    @abstractmethod
    async def list_documents(self) -> List[DocumentSummary]:
        """Summaries of stored documents with chunk counts."""

    @abstractmethod
    async def ping(self) -> bool:
        """True when the backend answers."""


class GraphStore(ABC):
    """
    Entity graph with Document nodes linked to the entities they mention.

    Seeds passed to ``related_context``/``related_documents`` may be
    entity ids or display names (matched case-insensitively).
    """

    async def connect(self) -> None:
        """Open connections."""

    async def close(self) -> None:
        """Release connections."""

    @abstractmethod
    async def upsert_document(self, document: Document) -> None:
        """Create or update the Document node."""

    @abstractmethod
    async def upsert_entities(self, entities: Sequence[Entity]) -> None:
        """Merge entity nodes by id."""

    @abstractmethod
    async def upsert_relationships(self, relationships: Sequence[Relationship]) -> None:
        """Merge relationship edges between existing entity nodes."""

    @abstractmethod
    async def link_document_to_entities(self, document_id: str, entity_ids: Sequence[str]) -> None:
        """Create MENTIONS edges from the Document node to each entity."""

    @abstractmethod
    async def related_context(self, seeds: Sequence[str], max_depth: int) -> List[RelatedEntity]:
        """
        Entities within ``max_depth`` hops of any seed.

        Seeds themselves are excluded, so the minimum distance is 1.
        Ordered by distance then name, capped at RELATED_CONTEXT_LIMIT.
        """

    @abstractmethod
    async def related_documents(self, seeds: Sequence[str]) -> List[str]:
        """Distinct ids of documents mentioning any seed entity."""

    @abstractmethod
    async def delete_document(self, document_id: str) -> None:
        """Remove the Document node; its entities are left in place."""

    @abstractmethod
    async def ping(self) -> bool:
        """True when the backend answers."""

    async def stats(self) -> Dict[str, int]:
        """Node and edge counts, when the backend can report them."""
        return {}
