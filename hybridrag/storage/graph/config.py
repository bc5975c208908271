"""
FalkorDB Configuration
======================

Usage:
    from hybridrag.storage.graph import FalkorDBConfig

    config = FalkorDBConfig()                       # env vars or defaults
    config = FalkorDBConfig(graph_name="hybrid_rag_test")

Environment Variables:
    FALKORDB_HOST: Server host (default: localhost)
    FALKORDB_PORT: Server port (default: 6380)
    FALKORDB_GRAPH_NAME: Graph name (default: hybrid_rag)
    FALKORDB_PASSWORD: Password (default: empty)
    FALKORDB_TIMEOUT_MS: Query timeout in ms (default: 5000)
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _get_env_str(key: str, default: str) -> str:
    return os.environ.get(key, default)


def _get_env_int(key: str, default: int) -> int:
    return int(os.environ.get(key, default))


@dataclass
class FalkorDBConfig:
    """
    FalkorDB connection settings.

    Attributes:
        host: FalkorDB host
        port: FalkorDB port (6380 for the docker-compose container)
        graph_name: Graph holding documents and entities
        timeout_ms: Per-query timeout in milliseconds
        password: Optional password
    """
    host: str = field(default_factory=lambda: _get_env_str("FALKORDB_HOST", "localhost"))
    port: int = field(default_factory=lambda: _get_env_int("FALKORDB_PORT", 6380))
    graph_name: str = field(default_factory=lambda: _get_env_str("FALKORDB_GRAPH_NAME", "hybrid_rag"))
    timeout_ms: int = field(default_factory=lambda: _get_env_int("FALKORDB_TIMEOUT_MS", 5000))
    password: Optional[str] = field(default_factory=lambda: _get_env_str("FALKORDB_PASSWORD", "") or None)
