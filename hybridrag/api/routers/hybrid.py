"""
Hybrid Router

FastAPI router for PDF upload, hybrid search, strategy comparison,
capability status and document management.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse

from hybridrag.api.dependencies import get_engine
from hybridrag.api.schemas.hybrid import (
    ChunkOut,
    CompareRequest,
    CompareResponse,
    DeleteResponse,
    DocumentOut,
    SearchRequest,
    SearchResponse,
    StatusResponse,
    UploadResponse,
)
from hybridrag.benchmark.comparison import truncate
from hybridrag.core.engine import HybridRAG
from hybridrag.exceptions import EmbeddingServiceError, EmptyContentError, VectorStoreError
from hybridrag.storage.retriever.models import HybridResult, SearchStrategy

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/hybrid",
    tags=["Hybrid RAG"]
)

MAX_UPLOAD_BYTES = 100 * 1024 * 1024
CONTENT_PREVIEW_CHARS = 500
RELATED_ENTITIES_SHOWN = 5

UPLOAD_FEATURES = [
    "Vector embeddings for semantic search",
    "Entity extraction for knowledge graph",
    "Relationship mapping between entities",
    "Hybrid retrieval combining both signals",
]


def _error(status_code: int, error: str, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "detail": detail})


def _is_pdf(upload: UploadFile) -> bool:
    if upload.content_type == "application/pdf":
        return True
    return bool(upload.filename) and upload.filename.lower().endswith(".pdf")


def _require_query(query) -> str:
    if query is None or not query.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Query is required")
    return query.strip()


def _result_out(result: HybridResult) -> dict:
    data = {
        "document": {
            "id": result.document_id,
            "filename": result.filename,
            "chunkIndex": result.chunk_index,
            "content": truncate(result.content, CONTENT_PREVIEW_CHARS),
        },
        "similarity": round(result.similarity, 4),
        "score": round(result.score, 4),
        "source": result.provenance.value,
    }
    if result.graph_context is not None:
        context = result.graph_context
        data["graphContext"] = {
            "relatedEntities": context.related_entities[:RELATED_ENTITIES_SHOWN],
            "relationshipPaths": context.relationship_paths,
            "hasRelationships": bool(context.relationship_paths),
        }
    return data


# ============================================================================
# Upload
# ============================================================================

@router.post(
    "/upload-hybrid",
    response_model=UploadResponse,
    summary="Upload PDF",
    description="Extract, chunk, embed and graph a PDF. Refused when the graph database is unreachable.",
)
async def upload_hybrid(
    pdf: UploadFile = File(..., description="PDF document"),
    engine: HybridRAG = Depends(get_engine),
):
    if not await engine.graph_available():
        logger.warning("Upload refused: graph database unavailable")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Graph database unavailable",
                "suggestion": "Start FalkorDB (docker run -p 6380:6379 falkordb/falkordb) and retry",
            },
        )

    if not _is_pdf(pdf):
        return _error(status.HTTP_400_BAD_REQUEST, "Only PDF files are supported", f"Got {pdf.content_type}")

    data = await pdf.read()
    if len(data) > MAX_UPLOAD_BYTES:
        return _error(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            "File too large",
            f"Maximum upload size is {MAX_UPLOAD_BYTES // (1024 * 1024)} MB",
        )

    try:
        result = await engine.ingest_pdf(data, filename=pdf.filename or "upload.pdf")
    except EmptyContentError as e:
        logger.warning(f"Upload rejected, no text: {e}")
        return _error(status.HTTP_400_BAD_REQUEST, "No text content could be extracted", str(e))
    except EmbeddingServiceError as e:
        logger.error(f"Embedding service failed during upload: {e}")
        return _error(status.HTTP_502_BAD_GATEWAY, "Embedding service failed", str(e))
    except VectorStoreError as e:
        logger.error(f"Vector store failed during upload: {e}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Vector store failed", str(e))

    logger.info(
        f"Uploaded {result.filename}: {result.chunk_count} chunks, "
        f"{result.entity_count} entities, {result.relationship_count} relationships"
    )
    return UploadResponse(
        message="Document processed with hybrid RAG",
        document_id=result.document_id,
        features=UPLOAD_FEATURES,
        chunk_count=result.chunk_count,
        entity_count=result.entity_count,
        relationship_count=result.relationship_count,
        warnings=result.warnings,
    )


# ============================================================================
# Search
# ============================================================================

@router.post(
    "/search-hybrid",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    summary="Hybrid Search",
    description="Vector similarity merged with entity-graph expansion.",
)
async def search_hybrid(request: SearchRequest, engine: HybridRAG = Depends(get_engine)):
    query = _require_query(request.query)
    strategy = SearchStrategy(
        vector_weight=request.vector_weight,
        graph_weight=request.graph_weight,
        enable_graph_expansion=request.enable_graph_expansion,
        max_graph_depth=request.max_graph_depth,
    )

    try:
        results = await engine.search(query, limit=request.limit, strategy=strategy)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except EmbeddingServiceError as e:
        logger.error(f"Query embedding failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return {
        "query": query,
        "strategy": strategy.to_dict(),
        "results": [_result_out(r) for r in results],
        "count": len(results),
    }


@router.post(
    "/compare-search",
    response_model=CompareResponse,
    summary="Compare Strategies",
    description="Run the vector-only and hybrid presets for the same query.",
)
async def compare_search(request: CompareRequest, engine: HybridRAG = Depends(get_engine)):
    query = _require_query(request.query)
    try:
        report = await engine.compare(query, limit=request.limit)
    except EmbeddingServiceError as e:
        logger.error(f"Query embedding failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return {
        "query": query,
        "comparison": {
            "vectorOnly": report.vector_only.to_dict(),
            "hybrid": report.hybrid.to_dict(),
        },
        "insights": report.insights(),
    }


@router.get(
    "/status",
    response_model=StatusResponse,
    response_model_by_alias=True,
    summary="Capability Status",
)
async def hybrid_status(engine: HybridRAG = Depends(get_engine)):
    return await engine.status()


# ============================================================================
# Documents
# ============================================================================

@router.get("/documents", response_model=List[DocumentOut], summary="List Documents")
async def list_documents(engine: HybridRAG = Depends(get_engine)):
    return [DocumentOut(**d.to_dict()) for d in await engine.list_documents()]


@router.get("/documents/{document_id}/chunks", response_model=List[ChunkOut], summary="Document Chunks")
async def document_chunks(document_id: str, engine: HybridRAG = Depends(get_engine)):
    chunks = await engine.chunks_of(document_id)
    if not chunks:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Document {document_id} not found")
    return [
        ChunkOut(chunk_id=c.chunk_id, chunk_index=c.chunk_index, content=c.content, metadata=c.metadata)
        for c in chunks
    ]


@router.delete("/documents/{document_id}", response_model=DeleteResponse, summary="Delete Document")
async def delete_document(document_id: str, engine: HybridRAG = Depends(get_engine)):
    removed = await engine.delete_document(document_id)
    if removed == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Document {document_id} not found")
    logger.info(f"Deleted document {document_id} ({removed} chunks)")
    return DeleteResponse(document_id=document_id, deleted_chunks=removed)
