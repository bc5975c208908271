"""
Local Embedding Service
=======================

sentence-transformers embeddings computed in-process.

Key Features:
- Lazy loading (model loaded on first use, not on construction)
- E5 prefix handling ("query: " for queries, "passage: " for chunks)
- Encoding runs in the default executor so the event loop keeps serving
- Thread-safe model initialization

Any model name accepted by sentence-transformers works; prefixes are
only added for E5-family models (name contains "e5").
"""

import asyncio
import logging
from threading import Lock
from typing import List, Optional

try:
    from sentence_transformers import SentenceTransformer
    import torch
except ImportError:
    raise ImportError(
        "sentence-transformers and torch are required for EmbeddingService. "
        "Install with: pip install sentence-transformers torch"
    )

from hybridrag.config.settings import EmbeddingConfig
from hybridrag.exceptions import EmbeddingServiceError

logger = logging.getLogger(__name__)


class EmbeddingService:
    """
    Embedding client backed by a local sentence-transformers model.

    Usage:
        service = EmbeddingService(EmbeddingConfig(model_name="intfloat/multilingual-e5-small"))
        vector = await service.embed("who built GPT-4?")
        vectors = await service.embed_batch(["chunk one", "chunk two"])
    """

    def __init__(self, config: Optional[EmbeddingConfig] = None):
        self.config = config or EmbeddingConfig()
        self.model_name = self.config.model_name
        self.device = self.config.device or ("cuda" if torch.cuda.is_available() else "cpu")
        self.normalize_embeddings = self.config.normalize
        self._model: Optional[SentenceTransformer] = None
        self._lock = Lock()

        logger.info(
            f"EmbeddingService configured - model={self.model_name}, "
            f"device={self.device}, normalize={self.normalize_embeddings}"
        )

    @property
    def uses_e5_prefixes(self) -> bool:
        return "e5" in self.model_name.lower()

    def _load_model(self) -> SentenceTransformer:
        """Load the model on first use."""
        if self._model is None:
            with self._lock:
                if self._model is None:
                    logger.info(f"Loading embedding model: {self.model_name} on device: {self.device}")
                    try:
                        self._model = SentenceTransformer(self.model_name, device=self.device)
                    except Exception as e:
                        logger.error(f"Failed to load model: {e}", exc_info=True)
                        raise EmbeddingServiceError(f"Failed to load embedding model: {e}", original_error=e)
                    logger.info(
                        f"Model loaded. Embedding dimension: "
                        f"{self._model.get_sentence_embedding_dimension()}"
                    )
        return self._model

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    @property
    def dimension(self) -> int:
        return self._load_model().get_sentence_embedding_dimension()

    def _prefixed(self, texts: List[str], is_query: bool) -> List[str]:
        if not self.uses_e5_prefixes:
            return texts
        prefix = "query: " if is_query else "passage: "
        return [f"{prefix}{text}" for text in texts]

    def encode_batch(self, texts: List[str], is_query: bool = False) -> List[List[float]]:
        """Synchronous batch encoding (called in executor)."""
        if not texts:
            return []

        model = self._load_model()
        try:
            embeddings = model.encode(
                self._prefixed(texts, is_query),
                normalize_embeddings=self.normalize_embeddings,
                convert_to_numpy=True,
                show_progress_bar=False,
            )
        except Exception as e:
            logger.error(f"Embedding failed for {len(texts)} texts: {e}")
            raise EmbeddingServiceError(f"Embedding failed: {e}", original_error=e)

        return embeddings.tolist()

    async def embed(self, text: str, is_query: bool = True) -> List[float]:
        """Embed a single text (a query unless ``is_query`` is False)."""
        vectors = await self.embed_batch([text], is_query=is_query)
        return vectors[0]

    async def embed_batch(self, texts: List[str], is_query: bool = False) -> List[List[float]]:
        """Embed several texts (passages unless ``is_query`` is True)."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.encode_batch, list(texts), is_query)

    async def close(self) -> None:
        """Nothing to release; the model is garbage collected with the service."""
