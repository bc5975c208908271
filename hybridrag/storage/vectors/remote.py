"""
Remote Embedding Client
=======================

Embeddings from an OpenAI-compatible ``/embeddings`` endpoint over aiohttp.
"""

import asyncio
from typing import List, Optional

import aiohttp
import structlog

from hybridrag.config.settings import EmbeddingConfig
from hybridrag.exceptions import EmbeddingServiceError

log = structlog.get_logger()

DEFAULT_REMOTE_MODEL = "text-embedding-3-small"


class RemoteEmbeddings:
    """
    Embedding client for hosted embedding APIs.

    The configured model name is used as-is; when it still holds the
    local default (an E5 model), ``text-embedding-3-small`` is requested.
    """

    def __init__(self, config: Optional[EmbeddingConfig] = None):
        self.config = config or EmbeddingConfig(backend="remote")
        self.model_name = (
            self.config.model_name
            if "e5" not in self.config.model_name.lower()
            else DEFAULT_REMOTE_MODEL
        )
        self.session: Optional[aiohttp.ClientSession] = None
        self._dimension: Optional[int] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout)
            )
        return self.session

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    @property
    def dimension(self) -> Optional[int]:
        """Known after the first successful call."""
        return self._dimension

    async def embed(self, text: str, is_query: bool = True) -> List[float]:
        vectors = await self.embed_batch([text], is_query=is_query)
        return vectors[0]

    async def embed_batch(self, texts: List[str], is_query: bool = False) -> List[List[float]]:
        if not texts:
            return []
        if not self.config.api_key:
            raise EmbeddingServiceError("EMBEDDING_API_KEY not configured")

        session = await self._get_session()
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        payload = {"model": self.model_name, "input": list(texts)}

        try:
            async with session.post(
                f"{self.config.api_url.rstrip('/')}/embeddings",
                json=payload,
                headers=headers,
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    log.error(f"Embedding API error {response.status}: {error_text[:200]}")
                    raise EmbeddingServiceError(
                        f"Embedding API error: {response.status} - {error_text[:200]}"
                    )
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise EmbeddingServiceError(f"Embedding API unreachable: {e}", original_error=e)

        rows = sorted(data.get("data", []), key=lambda row: row.get("index", 0))
        if len(rows) != len(texts):
            raise EmbeddingServiceError(
                f"Embedding API returned {len(rows)} vectors for {len(texts)} inputs"
            )

        vectors = [row["embedding"] for row in rows]
        self._dimension = len(vectors[0])
        log.debug("Embedded texts remotely", count=len(texts), model=self.model_name)
        return vectors
