"""
FalkorDB Client
===============

Async wrapper around the synchronous falkordb-py client.

FalkorDB speaks the Redis protocol and runs Cypher queries; every call is
dispatched to the default executor so the event loop is never blocked.
"""

import asyncio
from typing import Any, Dict, List, Optional

import structlog
from falkordb import FalkorDB, Graph

from hybridrag.exceptions import GraphUnavailableError
from hybridrag.storage.graph.config import FalkorDBConfig

log = structlog.get_logger()


class FalkorDBClient:
    """
    Async client for FalkorDB.

    Example:
        client = FalkorDBClient(config)
        await client.connect()

        rows = await client.query(
            "MATCH (d:Document {id: $id}) RETURN d.filename AS filename",
            {"id": document_id},
        )

        await client.close()
    """

    def __init__(self, config: Optional[FalkorDBConfig] = None):
        self.config = config or FalkorDBConfig()
        self._db: Optional[FalkorDB] = None
        self._graph: Optional[Graph] = None
        self._connected = False

        log.info(
            f"FalkorDBClient initialized - "
            f"host={self.config.host}:{self.config.port}, "
            f"graph={self.config.graph_name}"
        )

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self):
        """Establish connection to FalkorDB."""
        if self._connected:
            log.debug("Already connected to FalkorDB")
            return

        loop = asyncio.get_event_loop()
        try:
            await loop.run_in_executor(None, self._connect_sync)
        except Exception as e:
            log.error(f"Cannot connect to FalkorDB at {self.config.host}:{self.config.port}: {e}")
            raise GraphUnavailableError(f"FalkorDB unreachable: {e}", original_error=e)

        log.info(f"Connected to FalkorDB at {self.config.host}:{self.config.port}")

    def _connect_sync(self):
        """Synchronous connection (called in executor)."""
        self._db = FalkorDB(
            host=self.config.host,
            port=self.config.port,
            password=self.config.password,
        )
        self._graph = self._db.select_graph(self.config.graph_name)
        # select_graph is lazy; force a round trip so failures surface here
        self._graph.query("RETURN 1")
        self._connected = True

    async def close(self):
        """Close connection."""
        if not self._connected:
            return

        self._connected = False
        self._db = None
        self._graph = None
        log.info("Disconnected from FalkorDB")

    async def query(
        self,
        cypher: str,
        params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute a Cypher query.

        Args:
            cypher: Cypher query string
            params: Query parameters

        Returns:
            List of result records as dicts keyed by column alias
        """
        if not self._connected:
            raise GraphUnavailableError("Not connected to FalkorDB. Call connect() first.")

        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None,
            self._query_sync,
            cypher,
            params or {}
        )

    def _query_sync(self, cypher: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Execute query synchronously (called in executor)."""
        try:
            result = self._graph.query(cypher, params, timeout=self.config.timeout_ms)
        except Exception as e:
            log.error(f"Query failed: {cypher[:100]}... Error: {e}")
            raise

        records = []
        if result.result_set:
            # Header format is [[type, alias], ...]
            headers = [h[1] if len(h) > 1 else f"col_{i}" for i, h in enumerate(result.header)]
            for row in result.result_set:
                record = {}
                for col_name, value in zip(headers, row):
                    if hasattr(value, "properties"):
                        record[col_name] = {
                            "properties": value.properties,
                            "labels": getattr(value, "labels", []),
                            "id": getattr(value, "id", None),
                        }
                    else:
                        record[col_name] = value
                records.append(record)

        log.debug(
            f"Query executed: {cypher[:100]}... "
            f"(params={list(params.keys())}) -> {len(records)} records"
        )
        return records

    async def health_check(self) -> bool:
        """
        Check if FalkorDB is healthy and reachable.

        Returns:
            True if healthy, False otherwise
        """
        try:
            if not self._connected:
                await self.connect()

            await self.query("RETURN 1")
            return True

        except Exception as e:
            log.error(f"Health check failed: {e}")
            return False
