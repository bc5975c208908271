"""
Hybrid RAG Exceptions
=====================

Error hierarchy shared by ingestion, storage and retrieval.

Ingestion errors propagate to the caller with enough detail to retry.
Search errors are caught inside the retriever and degraded to a
vector-only result (see ``HybridRetriever.search``).
"""

from typing import Optional


class HybridRAGError(Exception):
    """Base exception for the hybrid retrieval engine."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class EmptyContentError(HybridRAGError):
    """Document has no extractable text. Nothing is written."""


class EmbeddingServiceError(HybridRAGError):
    """Embedding backend failed; ingestion is aborted before persistence."""


class VectorStoreError(HybridRAGError):
    """Vector store operation failed."""


class GraphUnavailableError(HybridRAGError):
    """Graph store unreachable or graph write failed."""


class ExtractionError(HybridRAGError):
    """LLM call for entity extraction failed."""


class SearchDegradedError(HybridRAGError):
    """
    Raised internally when graph expansion fails mid-search.

    Never reaches the caller: the retriever logs it and falls back to
    vector-only ranking.
    """
