"""
In-Memory Graph Store
=====================

networkx-backed GraphStore for tests and local development.

Nodes are keyed by id and carry ``node_type`` ("document" or "entity");
edges are keyed by relationship type so repeated upserts merge.
Traversal ignores edge direction, as the Cypher implementation does.
"""

from typing import Dict, List, Sequence

import networkx as nx
import structlog

from hybridrag.pipeline.models import Document, Entity, Relationship
from hybridrag.storage.base import RELATED_CONTEXT_LIMIT, GraphStore, RelatedEntity

log = structlog.get_logger()


class InMemoryGraphStore(GraphStore):
    """GraphStore held in a networkx MultiDiGraph."""

    def __init__(self):
        self.graph = nx.MultiDiGraph()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_document(self, document: Document) -> None:
        self.graph.add_node(
            document.document_id,
            node_type="document",
            filename=document.filename,
            created_at=document.created_at.isoformat(),
            text_length=len(document.text),
        )

    async def upsert_entities(self, entities: Sequence[Entity]) -> None:
        for entity in entities:
            attrs = dict(entity.properties)
            attrs.update(
                node_type="entity",
                name=entity.name,
                name_lower=entity.name.strip().lower(),
                type=entity.entity_type.value,
            )
            self.graph.add_node(entity.entity_id, **attrs)

    async def upsert_relationships(self, relationships: Sequence[Relationship]) -> None:
        for rel in relationships:
            if not (self._is_entity(rel.source_id) and self._is_entity(rel.target_id)):
                log.debug(f"Skipping relationship with unknown endpoint: {rel.key}")
                continue
            self.graph.add_edge(
                rel.source_id,
                rel.target_id,
                key=rel.relationship_type.value,
                **rel.properties,
            )

    async def link_document_to_entities(self, document_id: str, entity_ids: Sequence[str]) -> None:
        if document_id not in self.graph:
            return
        for entity_id in entity_ids:
            if self._is_entity(entity_id):
                self.graph.add_edge(document_id, entity_id, key="MENTIONS")

    async def delete_document(self, document_id: str) -> None:
        if self.graph.nodes.get(document_id, {}).get("node_type") == "document":
            self.graph.remove_node(document_id)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _is_entity(self, node_id: str) -> bool:
        return self.graph.nodes.get(node_id, {}).get("node_type") == "entity"

    def _resolve_seeds(self, seeds: Sequence[str]) -> List[str]:
        ids = {s.strip() for s in seeds if s and s.strip()}
        names = {s.lower() for s in ids}
        return sorted(
            node for node, data in self.graph.nodes(data=True)
            if data.get("node_type") == "entity"
            and (node in ids or data.get("name_lower") in names)
        )

    def _label(self, node_id: str) -> str:
        data = self.graph.nodes[node_id]
        return data.get("name") or data.get("filename") or node_id

    async def related_context(self, seeds: Sequence[str], max_depth: int) -> List[RelatedEntity]:
        starts = self._resolve_seeds(seeds)
        if not starts or max_depth <= 0:
            return []

        undirected = self.graph.to_undirected(as_view=True)
        # Every edge counts as one hop whatever its properties
        distance, paths = nx.multi_source_dijkstra(
            undirected, set(starts), cutoff=max_depth, weight=lambda u, v, d: 1
        )

        results = []
        for node, hops in distance.items():
            if hops == 0 or not self._is_entity(node):
                continue
            data = self.graph.nodes[node]
            results.append(RelatedEntity(
                entity_id=node,
                entity_name=data.get("name", ""),
                entity_type=data.get("type", ""),
                distance=int(hops),
                path_names=[self._label(n) for n in paths[node]],
            ))

        results.sort(key=lambda r: (r.distance, r.entity_name))
        return results[:RELATED_CONTEXT_LIMIT]

    async def related_documents(self, seeds: Sequence[str]) -> List[str]:
        documents = set()
        for entity_id in self._resolve_seeds(seeds):
            for predecessor in self.graph.predecessors(entity_id):
                if self.graph.nodes[predecessor].get("node_type") == "document":
                    documents.add(predecessor)
        return sorted(documents)

    async def ping(self) -> bool:
        return True

    async def stats(self) -> Dict[str, int]:
        return {
            "nodes": self.graph.number_of_nodes(),
            "edges": self.graph.number_of_edges(),
        }
