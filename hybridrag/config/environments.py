"""
Environment Configuration
=========================

Named presets selecting storage backends and log format per deployment.

Usage:
    from hybridrag.config import get_current_environment, TEST_ENV

    config = get_current_environment()
    print(config.vector_backend)  # "qdrant"

    set_current_environment(TEST_ENV)
    print(get_current_environment().graph_backend)  # "memory"

The active preset can also be chosen with the HYBRIDRAG_ENV environment
variable (development, test, production).
"""

import os
from dataclasses import dataclass
from enum import Enum


class Environment(Enum):
    """Available environments."""
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


# Convenience aliases
DEV_ENV = Environment.DEVELOPMENT
TEST_ENV = Environment.TEST
PROD_ENV = Environment.PRODUCTION


@dataclass(frozen=True)
class EnvironmentConfig:
    """
    Configuration for a specific environment.

    Attributes:
        name: Environment name
        vector_backend: "qdrant" or "memory"
        graph_backend: "falkordb" or "memory"
        qdrant_collection: Qdrant collection holding document chunks
        falkordb_graph: FalkorDB graph name
        json_logs: Render logs as JSON lines instead of console output
        log_level: Root log level
        description: Human-readable description
    """
    name: str
    vector_backend: str
    graph_backend: str
    qdrant_collection: str
    falkordb_graph: str
    json_logs: bool
    log_level: str
    description: str


_ENVIRONMENTS = {
    Environment.DEVELOPMENT: EnvironmentConfig(
        name="development",
        vector_backend="qdrant",
        graph_backend="falkordb",
        qdrant_collection="hybrid_rag_dev_chunks",
        falkordb_graph="hybrid_rag_dev",
        json_logs=False,
        log_level="DEBUG",
        description="Local docker services, console logs",
    ),
    Environment.TEST: EnvironmentConfig(
        name="test",
        vector_backend="memory",
        graph_backend="memory",
        qdrant_collection="hybrid_rag_test_chunks",
        falkordb_graph="hybrid_rag_test",
        json_logs=False,
        log_level="WARNING",
        description="In-process stores, no external services",
    ),
    Environment.PRODUCTION: EnvironmentConfig(
        name="production",
        vector_backend="qdrant",
        graph_backend="falkordb",
        qdrant_collection="hybrid_rag_chunks",
        falkordb_graph="hybrid_rag",
        json_logs=True,
        log_level="INFO",
        description="Qdrant + FalkorDB, JSON logs",
    ),
}

# Current active environment
_current_environment: Environment = Environment.DEVELOPMENT


def get_environment_config(env: Environment) -> EnvironmentConfig:
    """Get configuration for a specific environment."""
    return _ENVIRONMENTS[env]


def get_current_environment() -> EnvironmentConfig:
    """
    Get configuration for the currently active environment.

    HYBRIDRAG_ENV takes precedence over set_current_environment().
    Unknown values are ignored.
    """
    env_var = os.environ.get("HYBRIDRAG_ENV", "").lower()
    for env in Environment:
        if env.value == env_var:
            return _ENVIRONMENTS[env]

    return _ENVIRONMENTS[_current_environment]


def set_current_environment(env: Environment) -> None:
    """Set the current active environment."""
    global _current_environment
    _current_environment = env
