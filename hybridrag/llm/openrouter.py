"""
OpenRouter Chat Client
======================

Async client for OpenAI-compatible chat-completion endpoints (OpenRouter
by default), used for entity extraction.

JSON responses are parsed defensively: models frequently wrap the object
in prose or markdown fences, or return a bare array.
"""

import asyncio
import json
import re
from typing import Any, Dict, List, Optional

import aiohttp
import structlog

from hybridrag.config.settings import LLMConfig
from hybridrag.exceptions import ExtractionError

log = structlog.get_logger()


def _scan_balanced(text: str, open_char: str, close_char: str) -> List[str]:
    """Top-level balanced ``open_char ... close_char`` spans in ``text``."""
    spans = []
    depth = 0
    start_idx = None
    for i, char in enumerate(text):
        if char == open_char:
            if depth == 0:
                start_idx = i
            depth += 1
        elif char == close_char and depth > 0:
            depth -= 1
            if depth == 0 and start_idx is not None:
                spans.append(text[start_idx:i + 1])
                start_idx = None
    return spans


def parse_json_response(completion: str) -> Dict[str, Any]:
    """
    Extract a JSON object from a model completion.

    Tries, in order: the whole string, each balanced ``{...}`` span, each
    balanced ``[...]`` span (wrapped as ``{"results": [...]}``).

    Raises:
        ValueError: if no valid JSON can be recovered
    """
    text = re.sub(r"```(?:json)?", "", completion or "").strip()

    try:
        result = json.loads(text)
        return result if isinstance(result, dict) else {"results": result}
    except json.JSONDecodeError:
        pass

    for candidate in _scan_balanced(text, "{", "}"):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue

    for candidate in _scan_balanced(text, "[", "]"):
        try:
            return {"results": json.loads(candidate)}
        except json.JSONDecodeError:
            continue

    raise ValueError(f"No JSON found in completion: {text[:200]}")


class OpenRouterService:
    """
    Chat-completions client.

    Example:
        llm = OpenRouterService(LLMConfig())
        data = await llm.generate_json_completion(prompt, system_prompt="Answer in JSON")
        await llm.close()
    """

    def __init__(self, config: Optional[LLMConfig] = None):
        self.config = config or LLMConfig()
        self.session: Optional[aiohttp.ClientSession] = None
        self._last_usage: Dict[str, int] = {}

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout)
            )
        return self.session

    async def close(self):
        """Close the aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()

    async def generate_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 1000,
        json_mode: bool = False,
    ) -> str:
        """
        Run one chat completion and return the message content.

        Raises:
            ExtractionError: on missing API key, HTTP errors or malformed responses
        """
        if not self.config.api_key:
            raise ExtractionError("LLM API key not configured (OPENROUTER_API_KEY)")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "X-Title": "Hybrid RAG",
        }

        session = await self._get_session()
        try:
            async with session.post(
                f"{self.config.api_url.rstrip('/')}/chat/completions",
                json=payload,
                headers=headers,
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    log.error(f"LLM API error {response.status}: {error_text[:200]}")
                    raise ExtractionError(f"LLM API error: {response.status} - {error_text[:200]}")

                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ExtractionError(f"LLM API unreachable: {e}", original_error=e)
        except ValueError as e:
            log.error(f"LLM API returned invalid JSON: {e}")
            raise ExtractionError(f"Invalid JSON from LLM API: {e}", original_error=e)

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices, list) or not isinstance(choices[0], dict):
            log.error(f"Invalid LLM response: {str(data)[:200]}")
            raise ExtractionError("Invalid response from LLM API")

        self._last_usage = data.get("usage", {})
        message = choices[0].get("message")
        if not isinstance(message, dict):
            return ""
        return message.get("content") or ""

    async def generate_json_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: int = 1000,
    ) -> Dict[str, Any]:
        """
        Run a completion in JSON mode and parse it.

        Raises:
            ExtractionError: when the call fails or no JSON can be recovered
        """
        completion = await self.generate_completion(
            prompt,
            system_prompt=system_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=True,
        )
        try:
            return parse_json_response(completion)
        except ValueError as e:
            log.warning(f"Failed to parse JSON response: {e}")
            raise ExtractionError(str(e), original_error=e)
