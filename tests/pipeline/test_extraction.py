"""
Test EntityExtractor
====================

Parsing, merging and failure handling of LLM-based extraction.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from hybridrag.exceptions import ExtractionError
from hybridrag.llm.openrouter import parse_json_response
from hybridrag.pipeline.extraction import EntityExtractor, merge_extractions
from hybridrag.pipeline.models import Entity, EntityType, ExtractionResult, Relationship, RelationshipType


def _failing_llm():
    llm = MagicMock()
    llm.generate_json_completion = AsyncMock(side_effect=ExtractionError("LLM down"))
    return llm


class TestParseResponse:
    """Test conversion of LLM JSON into typed records."""

    def test_entities_and_relationships(self, extractor):
        data = {
            "entities": [
                {"name": "OpenAI", "type": "ORGANIZATION", "description": "AI lab"},
                {"name": "GPT-4", "type": "TECHNOLOGY"},
            ],
            "relationships": [
                {"from": "OpenAI", "to": "GPT-4", "type": "RELATES_TO", "description": "released"},
            ],
        }
        result = extractor.parse_response(data, "doc-1")

        assert [e.entity_id for e in result.entities] == ["doc-1_entity_openai", "doc-1_entity_gpt_4"]
        assert result.entities[0].entity_type == EntityType.ORGANIZATION
        assert result.entities[1].properties["confidence"] == 0.8
        assert len(result.relationships) == 1
        rel = result.relationships[0]
        assert rel.source_id == "doc-1_entity_openai"
        assert rel.target_id == "doc-1_entity_gpt_4"
        assert rel.properties["context"] == "released"

    def test_unknown_types_are_coerced(self, extractor):
        data = {
            "entities": [{"name": "A", "type": "WIDGET"}, {"name": "B", "type": "PERSON"}],
            "relationships": [{"source": "A", "target": "B", "type": "LOVES"}],
        }
        result = extractor.parse_response(data, "d")

        assert result.entities[0].entity_type == EntityType.CONCEPT
        assert result.relationships[0].relationship_type == RelationshipType.RELATES_TO

    def test_dangling_and_self_relationships_dropped(self, extractor):
        data = {
            "entities": [{"name": "OpenAI", "type": "ORGANIZATION"}],
            "relationships": [
                {"from": "OpenAI", "to": "Nobody", "type": "RELATES_TO"},
                {"from": "OpenAI", "to": "OpenAI", "type": "RELATES_TO"},
            ],
        }
        assert extractor.parse_response(data, "d").relationships == []

    def test_duplicate_names_collapse(self, extractor):
        data = {"entities": [{"name": "GPT-4"}, {"name": "gpt 4"}, {"name": ""}, "junk"]}
        result = extractor.parse_response(data, "d")

        assert len(result.entities) == 1

    def test_non_latin_names_kept(self, extractor):
        data = {
            "entities": [
                {"name": "Москва", "type": "LOCATION"},
                {"name": "北京", "type": "LOCATION"},
            ],
            "relationships": [{"from": "москва", "to": "北京", "type": "RELATES_TO"}],
        }
        result = extractor.parse_response(data, "d")

        assert [e.name for e in result.entities] == ["Москва", "北京"]
        assert result.entities[0].entity_id == "d_entity_москва"
        assert len(result.relationships) == 1
        assert result.relationships[0].target_id == "d_entity_北京"

    def test_confidence_is_clamped(self, extractor):
        data = {"entities": [{"name": "A", "confidence": 7}, {"name": "B", "confidence": "high"}]}
        result = extractor.parse_response(data, "d")

        assert result.entities[0].properties["confidence"] == 1.0
        assert result.entities[1].properties["confidence"] == 0.8


class TestExtractEntities:
    """Test document extraction through the LLM."""

    @pytest.mark.asyncio
    async def test_openai_scenario(self, extractor, sample_text):
        result = await extractor.extract_entities(sample_text, "doc-1")

        names = {e.name for e in result.entities}
        assert {"OpenAI", "GPT-4", "Microsoft"} <= names
        assert len(result.entities) >= 2
        assert len(result.relationships) >= 1

    @pytest.mark.asyncio
    async def test_uses_document_sampling_parameters(self, extractor, scripted_llm, sample_text):
        await extractor.extract_entities(sample_text, "doc-1")

        kwargs = scripted_llm.generate_json_completion.call_args.kwargs
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 1000

    @pytest.mark.asyncio
    async def test_long_text_is_split(self, scripted_llm):
        extractor = EntityExtractor(scripted_llm, config={"llm": {"max_input_chars": 100}})
        text = "OpenAI builds models. " * 10 + "Microsoft invests. " * 10

        result = await extractor.extract_entities(text, "doc-1")

        assert scripted_llm.generate_json_completion.await_count > 1
        assert sorted(e.name for e in result.entities) == ["Microsoft", "OpenAI"]

    @pytest.mark.asyncio
    async def test_llm_failure_yields_empty_result(self):
        extractor = EntityExtractor(_failing_llm())

        result = await extractor.extract_entities("OpenAI released GPT-4.", "doc-1")

        assert result.entities == []
        assert result.relationships == []

    @pytest.mark.asyncio
    async def test_empty_text_skips_llm(self, extractor, scripted_llm):
        result = await extractor.extract_entities("   ", "doc-1")

        assert len(result) == 0
        scripted_llm.generate_json_completion.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_extract_many(self, extractor):
        results = await extractor.extract_many(["OpenAI", "Python", "nothing"], "doc-1", concurrency=2)

        assert [len(r) for r in results] == [1, 1, 0]

    @pytest.mark.asyncio
    async def test_failing_chunk_keeps_other_chunks(self, scripted_llm):
        scripted = scripted_llm.generate_json_completion.side_effect

        async def flaky(prompt, **kwargs):
            if "Microsoft" in prompt:
                raise ValueError("Expecting value: line 1 column 1 (char 0)")
            return await scripted(prompt, **kwargs)

        scripted_llm.generate_json_completion.side_effect = flaky
        extractor = EntityExtractor(scripted_llm)

        results = await extractor.extract_many(
            ["OpenAI released GPT-4.", "Microsoft invested heavily."], "doc-1"
        )

        assert sorted(e.name for e in results[0].entities) == ["GPT-4", "OpenAI"]
        assert len(results[1]) == 0


class TestExtractQueryEntities:
    """Test query entity extraction."""

    @pytest.mark.asyncio
    async def test_query_names(self, extractor, scripted_llm):
        names = await extractor.extract_query_entities("OpenAI GPT-4")

        assert names == ["OpenAI", "GPT-4"]
        assert scripted_llm.generate_json_completion.call_args.kwargs["temperature"] == 0.1

    @pytest.mark.asyncio
    async def test_accepts_objects_and_results_key(self):
        llm = MagicMock()
        llm.generate_json_completion = AsyncMock(
            return_value={"results": [{"name": "OpenAI"}, "openai", "GPT-4"]}
        )
        names = await EntityExtractor(llm).extract_query_entities("anything")

        assert names == ["OpenAI", "GPT-4"]

    @pytest.mark.asyncio
    async def test_non_latin_query_names(self):
        llm = MagicMock()
        llm.generate_json_completion = AsyncMock(return_value={"entities": ["Москва", "北京", "москва"]})

        assert await EntityExtractor(llm).extract_query_entities("anything") == ["Москва", "北京"]

    @pytest.mark.asyncio
    async def test_failure_returns_empty_list(self):
        assert await EntityExtractor(_failing_llm()).extract_query_entities("OpenAI") == []

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_empty_list(self):
        llm = MagicMock()
        llm.generate_json_completion = AsyncMock(side_effect=AttributeError("no get"))

        assert await EntityExtractor(llm).extract_query_entities("OpenAI") == []


class TestMergeExtractions:
    """Test cross-piece deduplication."""

    def test_merge_dedupes_and_fills_description(self):
        first = ExtractionResult(entities=[Entity("d_entity_openai", "OpenAI", properties={"description": ""})])
        second = ExtractionResult(
            entities=[
                Entity("d_entity_openai", "openai", properties={"description": "AI lab"}),
                Entity("d_entity_gpt_4", "GPT-4"),
            ],
            relationships=[
                Relationship("d_entity_openai", "d_entity_gpt_4"),
                Relationship("d_entity_openai", "d_entity_gpt_4"),
                Relationship("d_entity_openai", "d_entity_missing"),
            ],
        )
        merged = merge_extractions([first, second])

        assert [e.name for e in merged.entities] == ["OpenAI", "GPT-4"]
        assert merged.entities[0].properties["description"] == "AI lab"
        assert len(merged.relationships) == 1


class TestParseJsonResponse:
    """Test tolerant JSON extraction from completions."""

    def test_fenced_json(self):
        assert parse_json_response('```json\n{"entities": []}\n```') == {"entities": []}

    def test_json_inside_prose(self):
        assert parse_json_response('Sure! {"entities": ["A"]} Hope this helps.') == {"entities": ["A"]}

    def test_bare_list_is_wrapped(self):
        assert parse_json_response('["A", "B"]') == {"results": ["A", "B"]}

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_json_response("no json here")
