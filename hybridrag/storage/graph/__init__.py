"""
Graph Storage
=============

Document/entity knowledge graph.

Components:
- FalkorDBClient: async wrapper over falkordb-py
- FalkorGraphStore: production GraphStore (Cypher)
- InMemoryGraphStore: networkx GraphStore for tests and development
"""

from hybridrag.storage.graph.client import FalkorDBClient
from hybridrag.storage.graph.config import FalkorDBConfig
from hybridrag.storage.graph.memory import InMemoryGraphStore
from hybridrag.storage.graph.store import FalkorGraphStore

__all__ = [
    "FalkorDBClient",
    "FalkorDBConfig",
    "FalkorGraphStore",
    "InMemoryGraphStore",
]
