"""
Ingestion Pipeline
==================

Document -> clean text -> chunks -> embeddings + entities -> dual write.

Modules:
- models: Document, Chunk, Entity, Relationship
- text / chunking / pdf: text preparation
- extraction: LLM entity and relationship extraction
- ingestion: IngestionPipeline (import from hybridrag.pipeline.ingestion)
"""

from hybridrag.pipeline.models import (
    Chunk,
    Document,
    DocumentSummary,
    Entity,
    EntityType,
    ExtractionResult,
    Relationship,
    RelationshipType,
)

__all__ = [
    "Chunk",
    "Document",
    "DocumentSummary",
    "Entity",
    "EntityType",
    "ExtractionResult",
    "Relationship",
    "RelationshipType",
]
