"""
Pipeline Models
===============

Dataclasses for documents, chunks, entities and relationships produced
by ingestion and written to the vector and graph stores.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntityType(str, Enum):
    """Closed set of entity types."""
    PERSON = "PERSON"
    ORGANIZATION = "ORGANIZATION"
    LOCATION = "LOCATION"
    CONCEPT = "CONCEPT"
    TECHNOLOGY = "TECHNOLOGY"
    DOCUMENT = "DOCUMENT"

    @classmethod
    def coerce(cls, value: Any) -> "EntityType":
        """Map a loosely formatted label to a member, CONCEPT if unknown."""
        label = str(value or "").strip().upper().replace(" ", "_")
        try:
            return cls(label)
        except ValueError:
            return cls.CONCEPT


class RelationshipType(str, Enum):
    """Closed set of relationship types."""
    RELATES_TO = "RELATES_TO"
    PART_OF = "PART_OF"
    MENTIONS = "MENTIONS"
    SIMILAR_TO = "SIMILAR_TO"
    CONTAINS = "CONTAINS"

    @classmethod
    def coerce(cls, value: Any) -> "RelationshipType":
        """Map a loosely formatted label to a member, RELATES_TO if unknown."""
        label = str(value or "").strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls(label)
        except ValueError:
            return cls.RELATES_TO


@dataclass
class Document:
    """
    A source document.

    Attributes:
        document_id: Opaque unique id shared by both stores
        filename: Original file name
        text: Cleaned full text
        created_at: Ingestion timestamp
    """
    filename: str
    text: str
    document_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "filename": self.filename,
            "text_length": len(self.text),
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Chunk:
    """
    A contiguous slice of a document, the unit of vector indexing.

    Attributes:
        document_id: Owning document
        chunk_index: 0-based ordinal, contiguous within the document
        content: Chunk text
        embedding: Dense vector (empty until embedded)
        metadata: chunk_size, embedding_model, processed_at
        filename: Owning document's file name
        chunk_id: Unique id (uuid4)
        created_at: Creation timestamp
    """
    document_id: str
    chunk_index: int
    content: str
    embedding: List[float] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    filename: str = ""
    chunk_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self, include_embedding: bool = False) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {
            "chunk_id": self.chunk_id,
            "document_id": self.document_id,
            "filename": self.filename,
            "chunk_index": self.chunk_index,
            "content": self.content,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }
        if include_embedding:
            data["embedding"] = self.embedding
        return data

    def __repr__(self) -> str:
        return (
            f"<Chunk(document={self.document_id[:8]}..., index={self.chunk_index}, "
            f"chars={len(self.content)})>"
        )


@dataclass
class Entity:
    """
    Named thing extracted from a document.

    ``properties`` holds description, confidence, extracted_at and document_id.
    """
    entity_id: str
    name: str
    entity_type: EntityType = EntityType.CONCEPT
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.entity_id,
            "name": self.name,
            "type": self.entity_type.value,
            "properties": self.properties,
        }


@dataclass
class Relationship:
    """
    Directed edge between two entity ids.

    ``properties`` holds confidence and context (short justification).
    """
    source_id: str
    target_id: str
    relationship_type: RelationshipType = RelationshipType.RELATES_TO
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple:
        return (self.source_id, self.relationship_type.value, self.target_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.source_id,
            "to": self.target_id,
            "type": self.relationship_type.value,
            "properties": self.properties,
        }


@dataclass
class ExtractionResult:
    """Entities and relationships extracted from one text span."""
    entities: List[Entity] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entities)


@dataclass
class DocumentSummary:
    """Per-document summary returned by ``VectorStore.list_documents``."""
    document_id: str
    filename: str
    chunk_count: int
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "filename": self.filename,
            "chunk_count": self.chunk_count,
            "created_at": self.created_at,
        }
