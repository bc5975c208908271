"""
Settings
========

Environment-driven configuration for ingestion, embeddings and the LLM
used for entity extraction.

Every field can be overridden by an environment variable (a ``.env``
file in the working directory is loaded on import) or explicitly in the
constructor.

Environment Variables:
    CHUNK_SIZE: Target chunk length in characters (default: 1000)
    CHUNK_OVERLAP: Overlap between consecutive chunks (default: 200)
    MAX_TEXT_LENGTH: Cleaned text is truncated beyond this (default: 100000)
    EMBEDDING_BATCH_SIZE: Chunks per embedding request (default: 5)
    EMBEDDING_BATCH_DELAY: Seconds to wait between batches (default: 1.0)
    EXTRACTION_CONCURRENCY: Chunks extracted in parallel (default: 3)
    EMBEDDING_BACKEND: "local" (sentence-transformers) or "remote"
    EMBEDDING_MODEL: Model name (default: intfloat/multilingual-e5-small)
    EMBEDDING_DEVICE: cpu / cuda (default: auto)
    EMBEDDING_API_URL / EMBEDDING_API_KEY: Remote embeddings endpoint
    LLM_API_URL: OpenAI-compatible base url (default: OpenRouter)
    OPENROUTER_API_KEY: API key for the LLM endpoint
    LLM_EXTRACTION_MODEL: Model used for extraction
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _get_env_str(key: str, default: str) -> str:
    return os.environ.get(key, default)


def _get_env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


def _get_env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


def _get_env_bool(key: str, default: bool) -> bool:
    return os.environ.get(key, str(default)).lower() in ("1", "true", "yes")


@dataclass
class IngestionConfig:
    """
    Ingestion pipeline parameters.

    Attributes:
        chunk_size: Target chunk length in characters
        chunk_overlap: Characters shared by consecutive chunks
        max_text_length: Cap applied to cleaned text before splitting
        embedding_batch_size: Chunks sent per embedding call
        embedding_batch_delay: Pause between embedding batches (seconds)
        extraction_concurrency: Chunks sent to the extractor concurrently
    """
    chunk_size: int = field(default_factory=lambda: _get_env_int("CHUNK_SIZE", 1000))
    chunk_overlap: int = field(default_factory=lambda: _get_env_int("CHUNK_OVERLAP", 200))
    max_text_length: int = field(default_factory=lambda: _get_env_int("MAX_TEXT_LENGTH", 100000))
    embedding_batch_size: int = field(default_factory=lambda: _get_env_int("EMBEDDING_BATCH_SIZE", 5))
    embedding_batch_delay: float = field(default_factory=lambda: _get_env_float("EMBEDDING_BATCH_DELAY", 1.0))
    extraction_concurrency: int = field(default_factory=lambda: _get_env_int("EXTRACTION_CONCURRENCY", 3))

    def __post_init__(self):
        """Validate configuration values."""
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError(
                f"chunk_overlap must be in [0, chunk_size), got {self.chunk_overlap}"
            )
        if self.max_text_length < 1:
            raise ValueError(f"max_text_length must be >= 1, got {self.max_text_length}")
        if self.embedding_batch_size < 1:
            raise ValueError(f"embedding_batch_size must be >= 1, got {self.embedding_batch_size}")
        if self.embedding_batch_delay < 0:
            raise ValueError(f"embedding_batch_delay must be >= 0, got {self.embedding_batch_delay}")
        if self.extraction_concurrency < 1:
            raise ValueError(f"extraction_concurrency must be >= 1, got {self.extraction_concurrency}")


@dataclass
class EmbeddingConfig:
    """
    Embedding backend selection.

    ``local`` loads a sentence-transformers model in-process, ``remote``
    calls an OpenAI-compatible ``/embeddings`` endpoint.
    """
    backend: str = field(default_factory=lambda: _get_env_str("EMBEDDING_BACKEND", "local"))
    model_name: str = field(
        default_factory=lambda: _get_env_str("EMBEDDING_MODEL", "intfloat/multilingual-e5-small")
    )
    device: Optional[str] = field(default_factory=lambda: _get_env_str("EMBEDDING_DEVICE", "") or None)
    normalize: bool = field(default_factory=lambda: _get_env_bool("EMBEDDING_NORMALIZE", True))
    api_url: str = field(
        default_factory=lambda: _get_env_str("EMBEDDING_API_URL", "https://api.openai.com/v1")
    )
    api_key: Optional[str] = field(default_factory=lambda: _get_env_str("EMBEDDING_API_KEY", "") or None)
    timeout: int = field(default_factory=lambda: _get_env_int("EMBEDDING_TIMEOUT", 30))

    def __post_init__(self):
        if self.backend not in ("local", "remote"):
            raise ValueError(f"backend must be 'local' or 'remote', got {self.backend!r}")


@dataclass
class LLMConfig:
    """Chat-completions endpoint used by the entity extractor."""
    api_url: str = field(default_factory=lambda: _get_env_str("LLM_API_URL", "https://openrouter.ai/api/v1"))
    api_key: Optional[str] = field(default_factory=lambda: _get_env_str("OPENROUTER_API_KEY", "") or None)
    model: str = field(default_factory=lambda: _get_env_str("LLM_EXTRACTION_MODEL", "openai/gpt-3.5-turbo"))
    timeout: int = field(default_factory=lambda: _get_env_int("LLM_TIMEOUT", 30))
