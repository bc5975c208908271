from hybridrag.api.schemas.hybrid import (
    ChunkOut,
    CompareRequest,
    CompareResponse,
    DeleteResponse,
    DocumentOut,
    HealthResponse,
    SearchRequest,
    SearchResponse,
    StatusResponse,
    UploadResponse,
)

__all__ = [
    "ChunkOut",
    "CompareRequest",
    "CompareResponse",
    "DeleteResponse",
    "DocumentOut",
    "HealthResponse",
    "SearchRequest",
    "SearchResponse",
    "StatusResponse",
    "UploadResponse",
]
