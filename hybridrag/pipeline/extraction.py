"""
Entity Extraction
=================

LLM-based extraction of typed entities and relationships.

Prompts and sampling parameters live in ``hybridrag/config/extraction.yaml``
so they can be tuned without touching code.

Extraction is best-effort enrichment: a piece whose LLM call fails or
returns unusable JSON contributes nothing, and relationships whose
endpoints are not among the extracted entities are dropped rather than
creating placeholder nodes.
"""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from hybridrag.exceptions import ExtractionError
from hybridrag.llm.openrouter import OpenRouterService
from hybridrag.pipeline.chunking import TextChunker
from hybridrag.pipeline.models import (
    Entity,
    EntityType,
    ExtractionResult,
    Relationship,
    RelationshipType,
)
from hybridrag.pipeline.normalization import make_entity_id, normalize_name

logger = logging.getLogger(__name__)

_CONFIG_CACHE: Optional[Dict[str, Any]] = None


def load_extraction_config() -> Dict[str, Any]:
    """Load (once) the packaged extraction.yaml."""
    global _CONFIG_CACHE

    if _CONFIG_CACHE is None:
        config_path = Path(__file__).parent.parent / "config" / "extraction.yaml"
        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                _CONFIG_CACHE = yaml.safe_load(f) or {}
        else:
            logger.warning(f"Config file not found: {config_path}")
            _CONFIG_CACHE = {}

    return _CONFIG_CACHE


def _confidence(value: Any, default: float) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return default
    return min(max(score, 0.0), 1.0)


def merge_extractions(results: Iterable[ExtractionResult]) -> ExtractionResult:
    """
    Combine per-piece results into one batch.

    Entities are deduplicated by normalized name (first occurrence wins,
    a later description fills an empty one). Relationships are kept only
    when both endpoints are in the merged batch and are deduplicated by
    (source, type, target).
    """
    entities: Dict[str, Entity] = {}
    relationships: Dict[tuple, Relationship] = {}

    results = list(results)
    for result in results:
        for entity in result.entities:
            key = normalize_name(entity.name)
            existing = entities.get(key)
            if existing is None:
                entities[key] = entity
            elif not existing.properties.get("description") and entity.properties.get("description"):
                existing.properties["description"] = entity.properties["description"]

    entity_ids = {e.entity_id for e in entities.values()}
    for result in results:
        for rel in result.relationships:
            if rel.source_id in entity_ids and rel.target_id in entity_ids:
                relationships.setdefault(rel.key, rel)

    return ExtractionResult(
        entities=list(entities.values()),
        relationships=list(relationships.values()),
    )


class EntityExtractor:
    """
    Extracts entities/relationships from document text and entity names
    from search queries.

    Example:
        >>> extractor = EntityExtractor(OpenRouterService())
        >>> result = await extractor.extract_entities(text, document_id="doc-1")
        >>> names = await extractor.extract_query_entities("OpenAI GPT-4")
    """

    def __init__(self, llm_service: OpenRouterService, config: Optional[Dict[str, Any]] = None):
        self.llm = llm_service
        self._config = config if config is not None else load_extraction_config()
        llm_config = self._config.get("llm", {})
        self.temperature = llm_config.get("temperature", 0.3)
        self.max_tokens = llm_config.get("max_tokens", 1000)
        self.query_temperature = llm_config.get("query_temperature", 0.1)
        self.query_max_tokens = llm_config.get("query_max_tokens", 200)
        self.max_input_chars = llm_config.get("max_input_chars", 2000)
        self.default_confidence = llm_config.get("default_confidence", 0.8)
        self._splitter = TextChunker(chunk_size=self.max_input_chars, chunk_overlap=0)

    @property
    def system_prompt(self) -> str:
        return self._config.get(
            "system_prompt",
            "You extract entities and relationships. Always answer with valid JSON.",
        )

    def _document_prompt(self, text: str) -> str:
        template = self._config.get(
            "document_prompt",
            'Extract entities and relationships as JSON '
            '{{"entities": [...], "relationships": [...]}}.\n\nTEXT:\n{text}',
        )
        return template.format(text=text)

    def _query_prompt(self, query: str) -> str:
        template = self._config.get(
            "query_prompt",
            'List the entities in this query as JSON {{"entities": [...]}}.\n\nQUERY:\n{query}',
        )
        return template.format(query=query)

    async def extract_entities(self, text: str, document_id: str) -> ExtractionResult:
        """
        Extract entities and relationships from ``text``.

        Text longer than ``max_input_chars`` is split and each piece sent
        separately; the pieces are merged and deduplicated.

        Args:
            text: Chunk text
            document_id: Owning document (part of every entity id)

        Returns:
            ExtractionResult, empty when every call failed
        """
        if not text or not text.strip():
            return ExtractionResult()

        pieces = self._splitter.split(text) if len(text) > self.max_input_chars else [text]
        results = []
        for piece in pieces:
            results.append(await self._extract_piece(piece, document_id))

        return merge_extractions(results)

    async def _extract_piece(self, text: str, document_id: str) -> ExtractionResult:
        try:
            data = await self.llm.generate_json_completion(
                prompt=self._document_prompt(text),
                system_prompt=self.system_prompt,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            return self.parse_response(data, document_id)
        except ExtractionError as e:
            logger.warning(f"Entity extraction failed for document {document_id}: {e}")
        except Exception as e:
            logger.error(f"Unexpected extraction error for document {document_id}: {e}", exc_info=True)
        return ExtractionResult()

    def parse_response(self, data: Dict[str, Any], document_id: str) -> ExtractionResult:
        """
        Turn an LLM JSON payload into typed records.

        Malformed items are skipped; relationship endpoints are resolved by
        normalized name against the entities of the same payload.
        """
        extracted_at = datetime.now(timezone.utc).isoformat()
        raw_entities = data.get("entities") if isinstance(data, dict) else None
        raw_relationships = data.get("relationships") if isinstance(data, dict) else None

        entities: Dict[str, Entity] = {}
        for item in raw_entities if isinstance(raw_entities, list) else []:
            if not isinstance(item, dict):
                continue
            name = str(item.get("name") or "").strip()
            key = normalize_name(name)
            if not key or key in entities:
                continue
            entities[key] = Entity(
                entity_id=make_entity_id(document_id, name),
                name=name,
                entity_type=EntityType.coerce(item.get("type")),
                properties={
                    "description": str(item.get("description") or ""),
                    "confidence": _confidence(item.get("confidence"), self.default_confidence),
                    "extracted_at": extracted_at,
                    "document_id": document_id,
                },
            )

        relationships = []
        for item in raw_relationships if isinstance(raw_relationships, list) else []:
            if not isinstance(item, dict):
                continue
            source = entities.get(normalize_name(str(item.get("from") or item.get("source") or "")))
            target = entities.get(normalize_name(str(item.get("to") or item.get("target") or "")))
            if source is None or target is None or source is target:
                continue
            relationships.append(Relationship(
                source_id=source.entity_id,
                target_id=target.entity_id,
                relationship_type=RelationshipType.coerce(item.get("type")),
                properties={
                    "confidence": _confidence(item.get("confidence"), self.default_confidence),
                    "context": str(item.get("description") or item.get("context") or ""),
                },
            ))

        return ExtractionResult(entities=list(entities.values()), relationships=relationships)

    async def extract_query_entities(self, query: str) -> List[str]:
        """
        Entity names mentioned in a search query.

        Returns:
            Distinct names in the order the model listed them; [] on failure
        """
        if not query or not query.strip():
            return []

        try:
            data = await self.llm.generate_json_completion(
                prompt=self._query_prompt(query),
                system_prompt=self.system_prompt,
                temperature=self.query_temperature,
                max_tokens=self.query_max_tokens,
            )
        except Exception as e:
            logger.warning(f"Query entity extraction failed: {e}")
            return []

        raw = data.get("entities", data.get("results", [])) if isinstance(data, dict) else []
        names: List[str] = []
        seen = set()
        for item in raw if isinstance(raw, list) else []:
            name = item.get("name") if isinstance(item, dict) else item
            name = str(name or "").strip()
            key = normalize_name(name)
            if key and key not in seen:
                seen.add(key)
                names.append(name)
        return names

    async def extract_many(
        self,
        texts: List[str],
        document_id: str,
        concurrency: int = 3,
    ) -> List[ExtractionResult]:
        """Extract several texts with at most ``concurrency`` calls in flight."""
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def _one(text: str) -> ExtractionResult:
            async with semaphore:
                return await self.extract_entities(text, document_id)

        return list(await asyncio.gather(*(_one(t) for t in texts)))
