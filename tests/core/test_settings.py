"""
Test Configuration
==================

Environment presets and env-driven settings dataclasses.
"""

import os
from unittest.mock import patch

import pytest

from hybridrag.config import (
    DEV_ENV,
    PROD_ENV,
    TEST_ENV,
    EmbeddingConfig,
    IngestionConfig,
    LLMConfig,
    get_current_environment,
    get_environment_config,
)


class TestEnvironments:
    """Test environment presets."""

    def test_presets(self):
        assert get_environment_config(TEST_ENV).vector_backend == "memory"
        assert get_environment_config(DEV_ENV).graph_backend == "falkordb"
        assert get_environment_config(PROD_ENV).json_logs is True

    def test_env_variable_selects_environment(self):
        with patch.dict(os.environ, {"HYBRIDRAG_ENV": "production"}):
            assert get_current_environment().name == "production"

    def test_unknown_env_variable_ignored(self):
        with patch.dict(os.environ, {"HYBRIDRAG_ENV": "staging"}):
            assert get_current_environment().name in ("development", "test", "production")


class TestIngestionConfig:
    """Test ingestion defaults and validation."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = IngestionConfig()

        assert config.chunk_size == 1000
        assert config.chunk_overlap == 200
        assert config.max_text_length == 100000
        assert config.embedding_batch_size == 5
        assert config.embedding_batch_delay == 1.0

    def test_environment_override(self):
        with patch.dict(os.environ, {"CHUNK_SIZE": "500", "CHUNK_OVERLAP": "50"}):
            config = IngestionConfig()

        assert (config.chunk_size, config.chunk_overlap) == (500, 50)

    def test_overlap_must_be_smaller_than_size(self):
        with pytest.raises(ValueError):
            IngestionConfig(chunk_size=100, chunk_overlap=100)

    def test_batch_size_positive(self):
        with pytest.raises(ValueError, match="embedding_batch_size"):
            IngestionConfig(embedding_batch_size=0)


class TestClientConfigs:
    """Test embedding and LLM settings."""

    def test_embedding_backend_validated(self):
        with pytest.raises(ValueError, match="backend must be"):
            EmbeddingConfig(backend="gpu-cluster")

    def test_llm_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = LLMConfig()

        assert config.api_url == "https://openrouter.ai/api/v1"
        assert config.api_key is None
        assert config.model == "openai/gpt-3.5-turbo"

    def test_llm_key_from_environment(self):
        with patch.dict(os.environ, {"OPENROUTER_API_KEY": "sk-test"}):
            assert LLMConfig().api_key == "sk-test"
