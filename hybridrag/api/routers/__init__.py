from hybridrag.api.routers.hybrid import router as hybrid_router

__all__ = ["hybrid_router"]
