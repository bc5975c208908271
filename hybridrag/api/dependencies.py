"""Request-scoped access to the shared engine."""

from fastapi import HTTPException, Request, status

from hybridrag.core.engine import HybridRAG


def get_engine(request: Request) -> HybridRAG:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Engine not initialized",
        )
    return engine
