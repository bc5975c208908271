"""
Pydantic schemas for the /hybrid endpoints.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class SearchRequest(CamelModel):
    """Body of POST /hybrid/search-hybrid."""

    query: Optional[str] = Field(
        default=None,
        description="Natural language query",
        examples=["OpenAI GPT-4"],
    )
    limit: int = Field(default=5, ge=0, le=100, description="Maximum results")
    vector_weight: float = Field(default=0.7, ge=0.0, le=1.0, description="Weight of cosine similarity")
    graph_weight: float = Field(default=0.3, ge=0.0, le=1.0, description="Bonus for graph-confirmed results")
    enable_graph_expansion: bool = Field(default=True, description="Consult the entity graph")
    max_graph_depth: int = Field(default=2, ge=0, le=5, description="Traversal bound in hops")


class CompareRequest(CamelModel):
    """Body of POST /hybrid/compare-search."""

    query: Optional[str] = Field(default=None, description="Natural language query")
    limit: int = Field(default=5, ge=0, le=100, description="Maximum results per strategy")


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class UploadResponse(CamelModel):
    message: str
    document_id: str
    features: List[str]
    chunk_count: int
    entity_count: int
    relationship_count: int
    warnings: List[str] = Field(default_factory=list)


class ResultDocument(CamelModel):
    id: str
    filename: str
    chunk_index: int
    content: str


class GraphContextOut(CamelModel):
    related_entities: List[str]
    relationship_paths: List[List[str]]
    has_relationships: bool


class SearchResultOut(CamelModel):
    document: ResultDocument
    similarity: float
    score: float
    source: str
    graph_context: Optional[GraphContextOut] = None


class SearchResponse(CamelModel):
    query: str
    strategy: Dict[str, Any]
    results: List[SearchResultOut]
    count: int


class CompareResponse(CamelModel):
    query: str
    comparison: Dict[str, Any]
    insights: List[str]


class Capabilities(CamelModel):
    vector_search: bool
    graph_database: bool
    entity_extraction: bool
    hybrid_rag: bool = Field(alias="hybridRAG")


class StatusResponse(CamelModel):
    status: str
    capabilities: Capabilities
    graph: Dict[str, Any] = Field(default_factory=dict)
    recommendations: List[str]


class DocumentOut(CamelModel):
    document_id: str
    filename: str
    chunk_count: int
    created_at: Optional[str] = None


class ChunkOut(CamelModel):
    chunk_id: str
    chunk_index: int
    content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class DeleteResponse(CamelModel):
    document_id: str
    deleted_chunks: int


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
