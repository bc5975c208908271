"""
Test Embedding Clients
======================

EmbeddingService (sentence-transformers) with a patched model, and
RemoteEmbeddings with a mocked HTTP session.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import numpy as np
import pytest

from hybridrag.config.settings import EmbeddingConfig
from hybridrag.exceptions import EmbeddingServiceError
from hybridrag.storage.vectors import create_embedding_client
from hybridrag.storage.vectors.embeddings import EmbeddingService
from hybridrag.storage.vectors.remote import RemoteEmbeddings


@pytest.fixture
def mock_model():
    model = MagicMock()
    model.encode.side_effect = lambda texts, **kwargs: np.ones((len(texts), 4))
    model.get_sentence_embedding_dimension.return_value = 4
    return model


class TestEmbeddingService:
    """Test the local embedding client."""

    def test_lazy_loading(self, mock_model):
        with patch("hybridrag.storage.vectors.embeddings.SentenceTransformer", return_value=mock_model) as cls:
            service = EmbeddingService(EmbeddingConfig(model_name="intfloat/multilingual-e5-small", device="cpu"))
            assert service.is_loaded is False

            assert service.dimension == 4
            assert service.is_loaded is True
            cls.assert_called_once()

    @pytest.mark.asyncio
    async def test_e5_prefixes(self, mock_model):
        with patch("hybridrag.storage.vectors.embeddings.SentenceTransformer", return_value=mock_model):
            service = EmbeddingService(EmbeddingConfig(model_name="intfloat/multilingual-e5-small", device="cpu"))

            query_vector = await service.embed("OpenAI")
            await service.embed_batch(["chunk one", "chunk two"])

        assert query_vector == [1.0, 1.0, 1.0, 1.0]
        first, second = [c.args[0] for c in mock_model.encode.call_args_list]
        assert first == ["query: OpenAI"]
        assert second == ["passage: chunk one", "passage: chunk two"]

    @pytest.mark.asyncio
    async def test_no_prefix_for_other_models(self, mock_model):
        with patch("hybridrag.storage.vectors.embeddings.SentenceTransformer", return_value=mock_model):
            service = EmbeddingService(EmbeddingConfig(model_name="all-MiniLM-L6-v2", device="cpu"))
            await service.embed("OpenAI")

        assert mock_model.encode.call_args.args[0] == ["OpenAI"]

    @pytest.mark.asyncio
    async def test_encode_failure(self, mock_model):
        mock_model.encode.side_effect = RuntimeError("CUDA out of memory")
        with patch("hybridrag.storage.vectors.embeddings.SentenceTransformer", return_value=mock_model):
            service = EmbeddingService(EmbeddingConfig(device="cpu"))

            with pytest.raises(EmbeddingServiceError):
                await service.embed_batch(["x"])


class TestRemoteEmbeddings:
    """Test the OpenAI-compatible embedding client."""

    @staticmethod
    def _session(status=200, json_data=None, text=""):
        response = MagicMock()
        response.status = status
        response.json = AsyncMock(return_value=json_data)
        response.text = AsyncMock(return_value=text)
        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=response)
        context.__aexit__ = AsyncMock(return_value=False)
        session = MagicMock()
        session.closed = False
        session.post = MagicMock(return_value=context)
        return session

    def test_factory_selects_backend(self):
        client = create_embedding_client(EmbeddingConfig(backend="remote", api_key="k"))

        assert isinstance(client, RemoteEmbeddings)
        assert client.model_name == "text-embedding-3-small"

    @pytest.mark.asyncio
    async def test_rows_sorted_by_index(self):
        client = RemoteEmbeddings(EmbeddingConfig(backend="remote", api_key="k", model_name="custom-model"))
        client.session = self._session(json_data={"data": [
            {"index": 1, "embedding": [0.0, 1.0]},
            {"index": 0, "embedding": [1.0, 0.0]},
        ]})

        vectors = await client.embed_batch(["a", "b"])

        assert vectors == [[1.0, 0.0], [0.0, 1.0]]
        assert client.dimension == 2
        assert client.session.post.call_args.kwargs["json"]["model"] == "custom-model"

    @pytest.mark.asyncio
    async def test_http_error(self):
        client = RemoteEmbeddings(EmbeddingConfig(backend="remote", api_key="k"))
        client.session = self._session(status=500, text="boom")

        with pytest.raises(EmbeddingServiceError):
            await client.embed("a")

    @pytest.mark.asyncio
    async def test_missing_key(self):
        client = RemoteEmbeddings(EmbeddingConfig(backend="remote", api_key=None))

        with pytest.raises(EmbeddingServiceError):
            await client.embed("a")
