"""
Hybrid RAG API Application

FastAPI application exposing ingestion and hybrid search.

Run:
    uvicorn hybridrag.api.main:app --port 8000
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hybridrag import __version__
from hybridrag.api.routers import hybrid_router
from hybridrag.api.schemas.hybrid import HealthResponse
from hybridrag.config.environments import get_current_environment
from hybridrag.config.logging_setup import configure_logging
from hybridrag.core.engine import HybridRAG

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the shared engine on startup and release it on shutdown."""
    logger.info("Hybrid RAG API starting...")

    if getattr(app.state, "engine", None) is None:
        app.state.engine = HybridRAG()
    await app.state.engine.connect()

    yield

    logger.info("Hybrid RAG API shutting down...")
    await app.state.engine.close()


def create_app(engine: Optional[HybridRAG] = None) -> FastAPI:
    """
    Build the application.

    Args:
        engine: Pre-built engine (tests inject one wired to in-memory stores)
    """
    environment = get_current_environment()
    configure_logging(level=environment.log_level, json_logs=environment.json_logs)

    app = FastAPI(
        title="Hybrid RAG API",
        description="Vector similarity search enriched with an entity knowledge graph",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors with detailed messages."""
        logger.error(f"Validation error for {request.url}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": jsonable_errors(exc),
                "message": "Request validation failed. Check the 'detail' field for specific errors.",
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler for unexpected errors."""
        logger.error(
            f"Unhandled exception for {request.method} {request.url}: {str(exc)}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "message": str(exc),
                "path": str(request.url),
            },
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming requests with timing."""
        start_time = time.time()
        logger.info(f"{request.method} {request.url.path}")

        response = await call_next(request)

        elapsed_ms = (time.time() - start_time) * 1000
        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {elapsed_ms:.0f}ms"
        )
        return response

    app.include_router(hybrid_router)

    @app.get("/health", response_model=HealthResponse, summary="Health Check")
    async def health_check() -> HealthResponse:
        """Liveness probe; capability details live under /hybrid/status."""
        return HealthResponse(status="healthy", version=__version__, environment=environment.name)

    return app


def jsonable_errors(exc: RequestValidationError):
    """Validation errors with non-serializable context values stringified."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


app = create_app()
