"""
Vector Storage
==============

Embedding clients and chunk stores.

Components:
- EmbeddingService: local sentence-transformers embeddings
- RemoteEmbeddings: OpenAI-compatible embeddings API
- QdrantVectorStore: production chunk store
- InMemoryVectorStore: numpy store for tests and development

Example:
    from hybridrag.storage.vectors import create_embedding_client

    embedder = create_embedding_client(EmbeddingConfig())
    vector = await embedder.embed("OpenAI GPT-4")
"""

from typing import Optional

from hybridrag.config.settings import EmbeddingConfig
from hybridrag.storage.vectors.config import QdrantConfig
from hybridrag.storage.vectors.memory import InMemoryVectorStore
from hybridrag.storage.vectors.qdrant_store import QdrantVectorStore


def create_embedding_client(config: Optional[EmbeddingConfig] = None):
    """
    Build the embedding client selected by ``config.backend``.

    The local backend is imported lazily so deployments using the remote
    API do not need torch installed.
    """
    config = config or EmbeddingConfig()
    if config.backend == "remote":
        from hybridrag.storage.vectors.remote import RemoteEmbeddings
        return RemoteEmbeddings(config)

    from hybridrag.storage.vectors.embeddings import EmbeddingService
    return EmbeddingService(config)


__all__ = [
    "QdrantConfig",
    "QdrantVectorStore",
    "InMemoryVectorStore",
    "create_embedding_client",
]
