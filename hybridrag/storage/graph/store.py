"""
FalkorDB Graph Store
====================

Document/Entity graph on FalkorDB.

Schema:
    (:Document {id, filename, created_at, text_length})
    (:Entity {id, name, name_lower, type, description, confidence,
              extracted_at, document_id})
    (:Document)-[:MENTIONS]->(:Entity)
    (:Entity)-[:RELATES_TO|PART_OF|MENTIONS|SIMILAR_TO|CONTAINS {confidence, context}]->(:Entity)

All writes use MERGE on ``id`` so re-running an ingestion is idempotent.
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from hybridrag.pipeline.models import Document, Entity, Relationship, RelationshipType
from hybridrag.storage.base import RELATED_CONTEXT_LIMIT, GraphStore, RelatedEntity
from hybridrag.storage.graph.client import FalkorDBClient
from hybridrag.storage.graph.config import FalkorDBConfig

log = structlog.get_logger()

INDEX_QUERIES = [
    "CREATE INDEX FOR (d:Document) ON (d.id)",
    "CREATE INDEX FOR (e:Entity) ON (e.id)",
    "CREATE INDEX FOR (e:Entity) ON (e.name_lower)",
]

UPSERT_DOCUMENT = """
MERGE (d:Document {id: $id})
SET d.filename = $filename, d.created_at = $created_at, d.text_length = $text_length
"""

UPSERT_ENTITIES = """
UNWIND $entities AS e
MERGE (n:Entity {id: e.id})
SET n.name = e.name,
    n.name_lower = e.name_lower,
    n.type = e.type,
    n.description = e.description,
    n.confidence = e.confidence,
    n.extracted_at = e.extracted_at,
    n.document_id = e.document_id
"""

# Relationship type is interpolated; callers pass RelationshipType values only
UPSERT_RELATIONSHIPS = """
UNWIND $relationships AS r
MATCH (a:Entity {{id: r.source}})
MATCH (b:Entity {{id: r.target}})
MERGE (a)-[x:{rel_type}]->(b)
SET x.confidence = r.confidence, x.context = r.context
"""

LINK_DOCUMENT = """
MATCH (d:Document {id: $document_id})
UNWIND $entity_ids AS eid
MATCH (e:Entity {id: eid})
MERGE (d)-[:MENTIONS]->(e)
"""

RELATED_CONTEXT = """
MATCH (start:Entity)
WHERE start.id IN $seed_ids OR start.name_lower IN $seed_names
WITH collect(start) AS starts, collect(start.id) AS start_ids
UNWIND starts AS s
MATCH path = (s)-[*1..{max_depth}]-(related:Entity)
WHERE NOT related.id IN start_ids
WITH related, path
ORDER BY length(path) ASC
WITH related, collect(path)[0] AS shortest
RETURN related.id AS entity_id,
       related.name AS entity_name,
       related.type AS entity_type,
       length(shortest) AS distance,
       [n IN nodes(shortest) | coalesce(n.name, n.filename, n.id)] AS path_names
ORDER BY distance ASC, entity_name ASC
LIMIT {limit}
"""

RELATED_DOCUMENTS = """
MATCH (d:Document)-[:MENTIONS]->(e:Entity)
WHERE e.id IN $seed_ids OR e.name_lower IN $seed_names
RETURN DISTINCT d.id AS document_id
ORDER BY document_id
"""

DELETE_DOCUMENT = """
MATCH (d:Document {id: $id})
DETACH DELETE d
"""


def _split_seeds(seeds: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Seeds as ids (verbatim) and as case-insensitive names."""
    cleaned = [s.strip() for s in seeds if s and s.strip()]
    return cleaned, [s.lower() for s in cleaned]


class FalkorGraphStore(GraphStore):
    """
    GraphStore backed by FalkorDB.

    Example:
        store = FalkorGraphStore(FalkorDBConfig(graph_name="hybrid_rag"))
        await store.connect()
        related = await store.related_context(["OpenAI"], max_depth=2)
    """

    def __init__(
        self,
        config: Optional[FalkorDBConfig] = None,
        client: Optional[FalkorDBClient] = None,
    ):
        self.client = client or FalkorDBClient(config)

    async def connect(self) -> None:
        await self.client.connect()
        for cypher in INDEX_QUERIES:
            try:
                await self.client.query(cypher)
            except Exception as e:
                # FalkorDB errors when the index already exists
                log.debug(f"Index not created ({cypher}): {e}")

    async def close(self) -> None:
        await self.client.close()

    async def ping(self) -> bool:
        return await self.client.health_check()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_document(self, document: Document) -> None:
        await self.client.query(UPSERT_DOCUMENT, {
            "id": document.document_id,
            "filename": document.filename,
            "created_at": document.created_at.isoformat(),
            "text_length": len(document.text),
        })

    async def upsert_entities(self, entities: Sequence[Entity]) -> None:
        if not entities:
            return

        rows = [
            {
                "id": e.entity_id,
                "name": e.name,
                "name_lower": e.name.strip().lower(),
                "type": e.entity_type.value,
                "description": str(e.properties.get("description", "")),
                "confidence": float(e.properties.get("confidence", 0.0)),
                "extracted_at": str(e.properties.get("extracted_at", "")),
                "document_id": str(e.properties.get("document_id", "")),
            }
            for e in entities
        ]
        await self.client.query(UPSERT_ENTITIES, {"entities": rows})
        log.debug(f"Upserted {len(rows)} entities")

    async def upsert_relationships(self, relationships: Sequence[Relationship]) -> None:
        by_type: Dict[RelationshipType, List[Dict[str, Any]]] = defaultdict(list)
        for rel in relationships:
            by_type[RelationshipType(rel.relationship_type)].append({
                "source": rel.source_id,
                "target": rel.target_id,
                "confidence": float(rel.properties.get("confidence", 0.0)),
                "context": str(rel.properties.get("context", "")),
            })

        for rel_type, rows in by_type.items():
            await self.client.query(
                UPSERT_RELATIONSHIPS.format(rel_type=rel_type.value),
                {"relationships": rows},
            )
            log.debug(f"Upserted {len(rows)} {rel_type.value} relationships")

    async def link_document_to_entities(self, document_id: str, entity_ids: Sequence[str]) -> None:
        if not entity_ids:
            return
        await self.client.query(LINK_DOCUMENT, {
            "document_id": document_id,
            "entity_ids": list(entity_ids),
        })

    async def delete_document(self, document_id: str) -> None:
        await self.client.query(DELETE_DOCUMENT, {"id": document_id})
        log.info(f"Deleted document node {document_id}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def related_context(self, seeds: Sequence[str], max_depth: int) -> List[RelatedEntity]:
        seed_ids, seed_names = _split_seeds(seeds)
        if not seed_ids or max_depth <= 0:
            return []

        cypher = RELATED_CONTEXT.format(max_depth=int(max_depth), limit=RELATED_CONTEXT_LIMIT)
        rows = await self.client.query(cypher, {"seed_ids": seed_ids, "seed_names": seed_names})

        return [
            RelatedEntity(
                entity_id=row["entity_id"],
                entity_name=row.get("entity_name") or "",
                entity_type=row.get("entity_type") or "",
                distance=int(row["distance"]),
                path_names=[str(name) for name in (row.get("path_names") or []) if name],
            )
            for row in rows
        ]

    async def related_documents(self, seeds: Sequence[str]) -> List[str]:
        seed_ids, seed_names = _split_seeds(seeds)
        if not seed_ids:
            return []

        rows = await self.client.query(
            RELATED_DOCUMENTS, {"seed_ids": seed_ids, "seed_names": seed_names}
        )
        return [row["document_id"] for row in rows]

    async def stats(self) -> Dict[str, int]:
        nodes = await self.client.query("MATCH (n) RETURN count(n) AS count")
        edges = await self.client.query("MATCH ()-[r]->() RETURN count(r) AS count")
        return {
            "nodes": nodes[0]["count"] if nodes else 0,
            "edges": edges[0]["count"] if edges else 0,
        }
