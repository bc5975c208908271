"""
Hybrid RAG Test Configuration
=============================

Shared fixtures: deterministic embeddings, a scripted LLM and in-memory stores.
"""

import re
import zlib
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from hybridrag.config.settings import IngestionConfig
from hybridrag.pipeline.extraction import EntityExtractor
from hybridrag.pipeline.ingestion import IngestionPipeline
from hybridrag.storage.graph.memory import InMemoryGraphStore
from hybridrag.storage.retriever.hybrid import HybridRetriever
from hybridrag.storage.vectors.memory import InMemoryVectorStore

EMBEDDING_DIM = 64

# Names the scripted LLM "recognizes", with their types
KNOWN_ENTITIES = {
    "OpenAI": "ORGANIZATION",
    "GPT-4": "TECHNOLOGY",
    "Microsoft": "ORGANIZATION",
    "Python": "TECHNOLOGY",
    "Guido van Rossum": "PERSON",
    "Amsterdam": "LOCATION",
}

KNOWN_RELATIONSHIPS = [
    ("OpenAI", "GPT-4", "RELATES_TO", "OpenAI released GPT-4"),
    ("OpenAI", "Microsoft", "RELATES_TO", "collaboration"),
    ("Guido van Rossum", "Python", "RELATES_TO", "created"),
    ("Guido van Rossum", "Amsterdam", "PART_OF", "born in"),
]


def hash_embedding(text: str) -> List[float]:
    """Bag-of-words vector with tokens hashed into a fixed number of buckets."""
    vector = [0.0] * EMBEDDING_DIM
    for token in re.findall(r"[a-z0-9]+", text.lower()):
        vector[zlib.crc32(token.encode("utf-8")) % EMBEDDING_DIM] += 1.0
    return vector


class FakeEmbedder:
    """Deterministic stand-in for the embedding client."""

    model_name = "fake-hash-64"
    dimension = EMBEDDING_DIM

    async def embed(self, text: str, is_query: bool = True) -> List[float]:
        return hash_embedding(text)

    async def embed_batch(self, texts: List[str], is_query: bool = False) -> List[List[float]]:
        return [hash_embedding(t) for t in texts]

    async def close(self) -> None:
        pass


def _mentioned(text: str) -> List[str]:
    lowered = text.lower()
    return [name for name in KNOWN_ENTITIES if name.lower() in lowered]


async def scripted_completion(prompt: str, **kwargs) -> Dict[str, Any]:
    """Answer extraction prompts from the KNOWN_ENTITIES catalogue."""
    if "QUERY:" in prompt:
        query = prompt.rsplit("QUERY:", 1)[1]
        return {"entities": _mentioned(query)}

    text = prompt.rsplit("TEXT:", 1)[1]
    names = _mentioned(text)
    return {
        "entities": [
            {"name": n, "type": KNOWN_ENTITIES[n], "description": f"{n} mentioned in text", "confidence": 0.9}
            for n in names
        ],
        "relationships": [
            {"from": src, "to": dst, "type": rel_type, "description": context, "confidence": 0.8}
            for src, dst, rel_type, context in KNOWN_RELATIONSHIPS
            if src in names and dst in names
        ],
    }


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()


@pytest.fixture
def scripted_llm():
    """LLM service mock answering from the entity catalogue."""
    llm = MagicMock()
    llm.generate_json_completion = AsyncMock(side_effect=scripted_completion)
    llm.is_configured = True
    llm.close = AsyncMock()
    return llm


@pytest.fixture
def extractor(scripted_llm):
    return EntityExtractor(scripted_llm)


@pytest.fixture
def vector_store():
    return InMemoryVectorStore()


@pytest.fixture
def graph_store():
    return InMemoryGraphStore()


@pytest.fixture
def ingestion_config():
    """Small chunks and no inter-batch delay."""
    return IngestionConfig(
        chunk_size=200,
        chunk_overlap=20,
        embedding_batch_size=5,
        embedding_batch_delay=0.0,
    )


@pytest.fixture
def pipeline(fake_embedder, extractor, vector_store, graph_store, ingestion_config):
    return IngestionPipeline(
        embedder=fake_embedder,
        extractor=extractor,
        vector_store=vector_store,
        graph_store=graph_store,
        config=ingestion_config,
    )


@pytest.fixture
def retriever(fake_embedder, extractor, vector_store, graph_store):
    return HybridRetriever(
        embedder=fake_embedder,
        extractor=extractor,
        vector_store=vector_store,
        graph_store=graph_store,
    )


@pytest.fixture
def sample_text():
    return "OpenAI released GPT-4 in collaboration with Microsoft."


@pytest.fixture
def unrelated_text():
    return (
        "Guido van Rossum created Python while working in Amsterdam. "
        "The language favours readable code and a small core."
    )
