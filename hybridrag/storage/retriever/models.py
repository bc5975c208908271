"""
HybridRetriever Models
======================

Search strategy and result dataclasses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Provenance(str, Enum):
    """Which signal surfaced a result."""
    VECTOR = "vector"
    GRAPH = "graph"
    HYBRID = "hybrid"


@dataclass
class SearchStrategy:
    """
    Per-request weighting of the vector and graph signals.

    Attributes:
        vector_weight: Multiplier on raw cosine similarity [0-1]
        graph_weight: Flat bonus for graph-confirmed results [0-1]
        enable_graph_expansion: Extract query entities and consult the graph
        max_graph_depth: Traversal bound in hops (0 = no related entities)
    """
    vector_weight: float = 0.7
    graph_weight: float = 0.3
    enable_graph_expansion: bool = True
    max_graph_depth: int = 2

    def __post_init__(self):
        """Validate configuration values."""
        if not 0 <= self.vector_weight <= 1:
            raise ValueError(f"vector_weight must be in [0, 1], got {self.vector_weight}")
        if not 0 <= self.graph_weight <= 1:
            raise ValueError(f"graph_weight must be in [0, 1], got {self.graph_weight}")
        if self.max_graph_depth < 0:
            raise ValueError(f"max_graph_depth must be >= 0, got {self.max_graph_depth}")

    @classmethod
    def vector_only(cls) -> "SearchStrategy":
        return cls(vector_weight=1.0, graph_weight=0.0, enable_graph_expansion=False, max_graph_depth=0)

    @classmethod
    def hybrid(cls) -> "SearchStrategy":
        return cls(vector_weight=0.7, graph_weight=0.3, enable_graph_expansion=True, max_graph_depth=2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vector_weight": self.vector_weight,
            "graph_weight": self.graph_weight,
            "enable_graph_expansion": self.enable_graph_expansion,
            "max_graph_depth": self.max_graph_depth,
        }


@dataclass
class GraphContext:
    """
    Graph evidence attached to a result.

    Attributes:
        related_entities: Names of entities within two hops of the query entities
        relationship_paths: Node-name traces from a query entity to each related entity
    """
    related_entities: List[str] = field(default_factory=list)
    relationship_paths: List[List[str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "related_entities": self.related_entities,
            "relationship_paths": self.relationship_paths,
        }


@dataclass
class HybridResult:
    """
    One ranked search hit.

    Attributes:
        document_id: Owning document
        filename: Owning document's file name
        chunk_index: Position of the chunk in its document
        content: Chunk text
        similarity: Raw cosine similarity from the vector store
        score: Combined relevance score
        provenance: vector / graph / hybrid
        graph_context: Present only when graph expansion found related entities
    """
    document_id: str
    filename: str
    chunk_index: int
    content: str
    similarity: float
    score: float
    provenance: Provenance = Provenance.VECTOR
    graph_context: Optional[GraphContext] = None
    chunk_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "document_id": self.document_id,
            "filename": self.filename,
            "chunk_index": self.chunk_index,
            "content": self.content,
            "similarity": round(self.similarity, 4),
            "score": round(self.score, 4),
            "provenance": self.provenance.value,
        }
        if self.graph_context is not None:
            data["graph_context"] = self.graph_context.to_dict()
        return data

    def __repr__(self) -> str:
        return (
            f"<HybridResult(document={self.document_id[:8]}..., index={self.chunk_index}, "
            f"score={self.score:.3f}, sim={self.similarity:.3f}, {self.provenance.value})>"
        )
