"""
Qdrant Configuration
====================

Environment Variables:
    QDRANT_HOST: Server host (default: localhost)
    QDRANT_PORT: HTTP port (default: 6333)
    QDRANT_COLLECTION_NAME: Chunk collection (default: hybrid_rag_chunks)
    QDRANT_API_KEY: API key for Qdrant Cloud (default: none)
    QDRANT_TIMEOUT: Request timeout in seconds (default: 30)
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _get_env_str(key: str, default: str) -> str:
    return os.environ.get(key, default)


def _get_env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


@dataclass
class QdrantConfig:
    """Connection settings for the Qdrant chunk collection."""
    host: str = field(default_factory=lambda: _get_env_str("QDRANT_HOST", "localhost"))
    port: int = field(default_factory=lambda: _get_env_int("QDRANT_PORT", 6333))
    collection_name: str = field(
        default_factory=lambda: _get_env_str("QDRANT_COLLECTION_NAME", "hybrid_rag_chunks")
    )
    api_key: Optional[str] = field(default_factory=lambda: _get_env_str("QDRANT_API_KEY", "") or None)
    timeout: int = field(default_factory=lambda: _get_env_int("QDRANT_TIMEOUT", 30))
