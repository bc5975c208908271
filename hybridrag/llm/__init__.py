"""LLM access for entity extraction."""

from hybridrag.llm.openrouter import OpenRouterService, parse_json_response

__all__ = ["OpenRouterService", "parse_json_response"]
