"""Core facade."""

from hybridrag.core.engine import HybridRAG, HybridRAGConfig

__all__ = ["HybridRAG", "HybridRAGConfig"]
