"""
Configuration module for the hybrid retrieval engine.
"""

from .environments import (
    EnvironmentConfig,
    Environment,
    get_environment_config,
    get_current_environment,
    set_current_environment,
    DEV_ENV,
    TEST_ENV,
    PROD_ENV,
)
from .logging_setup import configure_logging
from .settings import IngestionConfig, EmbeddingConfig, LLMConfig

__all__ = [
    "EnvironmentConfig",
    "Environment",
    "get_environment_config",
    "get_current_environment",
    "set_current_environment",
    "DEV_ENV",
    "TEST_ENV",
    "PROD_ENV",
    "configure_logging",
    "IngestionConfig",
    "EmbeddingConfig",
    "LLMConfig",
]
